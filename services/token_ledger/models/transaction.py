"""
Transaction Context
===================

Signers and commitment of the transaction an operation executes in.

Version: 0.1.0
"""

from dataclasses import dataclass, field

from shared.auth import verify_signature
from shared.logging import get_logger

from services.token_ledger.models.errors import AuthorizationError, ErrorCode


logger = get_logger(__name__)


@dataclass(frozen=True)
class TransactionContext:
    """
    Authorization environment of one transaction.

    Attributes:
        fee_payer: Account sequencing the transaction
        fee_payer_nonce: Fee payer's native nonce the commitment was built on
        commitment: Full transaction commitment every balance change binds to
        signers: Principals whose signatures over ``commitment`` were verified
    """

    fee_payer: str
    fee_payer_nonce: int
    commitment: str
    signers: frozenset[str] = field(default_factory=frozenset)

    def require_authorization(self, principal: str) -> None:
        """
        Raises:
            AuthorizationError: If ``principal`` did not sign the commitment
        """
        if principal not in self.signers:
            logger.warning(
                "authorization_missing",
                principal=principal,
                commitment=self.commitment,
            )
            raise AuthorizationError(ErrorCode.MISSING_SIGNATURE, principal=principal)

    @classmethod
    def from_signatures(
        cls,
        fee_payer: str,
        fee_payer_nonce: int,
        commitment: str,
        signatures: list[str],
    ) -> "TransactionContext":
        """
        Build a context from raw signature tokens.

        Every token must sign ``commitment`` and the fee payer must be among
        the signers.

        Raises:
            AuthorizationError: On any invalid signature or a missing fee payer signature
        """
        signers: set[str] = set()
        for index, token in enumerate(signatures):
            principal = verify_signature(token, commitment)
            if principal is None:
                raise AuthorizationError(ErrorCode.INVALID_SIGNATURE, signature_index=index)
            signers.add(principal)

        if fee_payer not in signers:
            raise AuthorizationError(ErrorCode.MISSING_SIGNATURE, principal=fee_payer)

        return cls(
            fee_payer=fee_payer,
            fee_payer_nonce=fee_payer_nonce,
            commitment=commitment,
            signers=frozenset(signers),
        )
