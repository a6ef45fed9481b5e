"""
Account Update Forest
=====================

Tree-shaped batches of proposed balance changes.

A forest is an ordered list of trees. Its canonical traversal visits each
tree in order and, within a tree, every child subtree (in order) before the
node that encloses it.

Version: 0.1.0
"""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, Field

from services.token_ledger.models.operations import AuthRequired


class PermissionsUpdate(BaseModel):
    """Requested change to an account's authorization settings; None leaves a setting as is."""

    access: AuthRequired | None = None
    receive: AuthRequired | None = None
    send: AuthRequired | None = None

    @property
    def restricts_token_flow(self) -> bool:
        """True if ``access`` or ``receive`` is set to anything but NONE."""
        return any(
            setting is not None and setting != AuthRequired.NONE
            for setting in (self.access, self.receive)
        )


class AccountUpdate(BaseModel):
    """One proposed balance change and its nested updates."""

    owner: str = Field(..., min_length=1)
    token_id: int = Field(..., ge=0)
    balance_change: int = 0
    permissions: PermissionsUpdate | None = None
    children: list[AccountUpdate] = Field(default_factory=list)

    def touches_token(self, token_id: int) -> bool:
        return self.token_id == token_id


AccountUpdate.model_rebuild()


def iter_post_order(forest: list[AccountUpdate]) -> Iterator[AccountUpdate]:
    """Yield every node, children before the parent that references them."""
    # Explicit stack so deep trees do not hit the recursion limit
    for tree in forest:
        stack: list[tuple[AccountUpdate, bool]] = [(tree, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                yield node
                continue
            stack.append((node, True))
            for child in reversed(node.children):
                stack.append((child, False))
