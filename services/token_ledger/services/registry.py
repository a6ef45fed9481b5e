"""
Verification Key Registry
=========================

Authenticated map from operation id to the hash of the verification key
that sideloaded proofs for that operation must be checked against.

Only the root is stored on-chain. Callers keep a full replica and present
it with every proof-gated call.

Version: 0.1.0
"""

from shared.blockchain import IndexedMerkleMap
from shared.config import settings

from services.token_ledger.models.errors import ConfigurationError, ErrorCode
from services.token_ledger.models.operations import OperationId


def parse_operation_id(value: int) -> OperationId:
    """
    Validate a raw operation id.

    Raises:
        ConfigurationError: Unless ``value`` is 1, 2, 3 or 4
    """
    if isinstance(value, bool):
        raise ConfigurationError(ErrorCode.INVALID_OPERATION_ID, operation_id=value)
    try:
        return OperationId(value)
    except ValueError:
        raise ConfigurationError(ErrorCode.INVALID_OPERATION_ID, operation_id=value) from None


class KeyRegistry:
    """
    Replica of the on-chain verification key registry.

    Usage:
        registry = KeyRegistry()
        root = registry.set(OperationId.MINT, key.hash)

        assert registry.get(OperationId.MINT) == key.hash
        assert registry.root_matches(root)
    """

    def __init__(self, tree: IndexedMerkleMap | None = None) -> None:
        self._tree = tree if tree is not None else IndexedMerkleMap(
            height=settings.token.registry_height
        )
        if self._tree.capacity <= max(OperationId):
            raise ConfigurationError(
                ErrorCode.INVALID_REGISTRY_HEIGHT,
                height=self._tree.height,
            )

    @classmethod
    def from_entries(cls, entries: dict[int, str]) -> "KeyRegistry":
        """Rebuild a replica from ``{operation_id: key_hash}``."""
        registry = cls()
        for operation_id, key_hash in entries.items():
            registry.set(operation_id, key_hash)
        return registry

    @property
    def root(self) -> str:
        return self._tree.root

    def get(self, operation_id: int) -> str | None:
        return self._tree.get(parse_operation_id(operation_id).value)

    def set(self, operation_id: int, key_hash: str) -> str:
        """
        Register ``key_hash`` for an operation.

        Returns:
            The new root
        """
        op = parse_operation_id(operation_id)
        return self._tree.set(op.value, key_hash)

    def with_entry(self, operation_id: int, key_hash: str) -> "KeyRegistry":
        """Copy of this replica with one entry changed; this replica is untouched."""
        updated = self.clone()
        updated.set(operation_id, key_hash)
        return updated

    def root_matches(self, candidate: str) -> bool:
        return self.root == candidate

    def clone(self) -> "KeyRegistry":
        return KeyRegistry(self._tree.clone())

    def entries(self) -> dict[int, str]:
        return self._tree.entries()

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._tree

    def __len__(self) -> int:
        return len(self._tree)

    def __repr__(self) -> str:
        return f"KeyRegistry(root={self.root[:16]}..., entries={len(self)})"


def empty_registry_root() -> str:
    """Root of a registry with no keys."""
    return KeyRegistry().root
