"""
Batch Approver
==============

Validates a forest of account updates before it is accepted atomically.

The forest is walked in post-order. Every node on this contract's token
contributes its balance change to a running total, which must never become
positive (a credit may not precede the debit funding it) and must end at
exactly zero.

Version: 0.1.0
"""

from dataclasses import dataclass, field

from shared.logging import get_logger

from services.token_ledger.models.errors import (
    ErrorCode,
    InvariantViolationError,
    PolicyMismatchError,
)
from services.token_ledger.models.forest import AccountUpdate, iter_post_order
from services.token_ledger.models.operations import OperationId
from services.token_ledger.services.codec import PolicyRecord


logger = get_logger(__name__)


@dataclass
class BatchApprovalResult:
    """Accepted batch."""

    token_updates: list[AccountUpdate] = field(default_factory=list)
    nodes_visited: int = 0

    @property
    def debited_owners(self) -> list[str]:
        """Owners of every debiting token update, in traversal order, without repeats."""
        return list(dict.fromkeys(u.owner for u in self.token_updates if u.balance_change < 0))


class BatchApprover:
    """
    Checks token-level invariants of a batch.

    Args:
        token_id: Id of this contract's token
        circulation_address: Account tracking the circulating supply
    """

    def __init__(self, token_id: int, circulation_address: str) -> None:
        self.token_id = token_id
        self.circulation_address = circulation_address

    def _reject(self, code: ErrorCode, index: int, node: AccountUpdate) -> None:
        logger.warning(
            "batch_rejected",
            error_code=code.value,
            node_index=index,
            owner=node.owner,
        )
        raise InvariantViolationError(
            code,
            operation=OperationId.BATCH_APPROVE,
            node_index=index,
            owner=node.owner,
        )

    def approve(
        self,
        forest: list[AccountUpdate],
        record: PolicyRecord,
        proof_verified: bool = False,
    ) -> BatchApprovalResult:
        """
        Validate ``forest``.

        Args:
            forest: Trees of account updates, in order
            record: BatchApprove policy record
            proof_verified: True once a sideloaded proof passed the policy check

        Returns:
            BatchApprovalResult listing token updates in traversal order

        Raises:
            PolicyMismatchError: If proof verification is enabled and no proof was verified
            InvariantViolationError: On the first invariant broken by the forest
        """
        if record.should_verify and not proof_verified:
            logger.warning(
                "batch_rejected",
                error_code=ErrorCode.SIDELOAD_REQUIRED_USE_PROOF_VARIANT.value,
            )
            raise PolicyMismatchError(
                ErrorCode.SIDELOAD_REQUIRED_USE_PROOF_VARIANT,
                operation=OperationId.BATCH_APPROVE,
            )

        result = BatchApprovalResult()
        total = 0

        for index, node in enumerate(iter_post_order(forest)):
            result.nodes_visited += 1

            if node.touches_token(self.token_id):
                if node.permissions is not None and node.permissions.restricts_token_flow:
                    self._reject(ErrorCode.PERMISSION_CHANGE_NOT_ALLOWED, index, node)
                if node.owner == self.circulation_address:
                    self._reject(ErrorCode.NO_TRANSFER_FROM_CIRCULATION, index, node)
                total += node.balance_change
                result.token_updates.append(node)

            if total > 0:
                self._reject(ErrorCode.FLASH_MINT_DETECTED, index, node)

        if total != 0:
            logger.warning(
                "batch_rejected",
                error_code=ErrorCode.UNBALANCED_BATCH.value,
                total=total,
            )
            raise InvariantViolationError(
                ErrorCode.UNBALANCED_BATCH,
                operation=OperationId.BATCH_APPROVE,
                total=total,
            )

        logger.info(
            "batch_approved",
            nodes=result.nodes_visited,
            token_updates=len(result.token_updates),
        )

        return result
