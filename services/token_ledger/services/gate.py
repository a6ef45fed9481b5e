"""
Fungible Token Contract
=======================

Operation gate of the token contract.

Every balance-changing operation comes in two modes:
- direct: allowed only while the operation's policy has verification off
- proof: the sideloaded proof must pass the operation's policy first

Authorization:
- mint: the admin
- burn / transfer: the debited account
- batch approve: every account the batch debits
- configuration updates: the admin
- initialize: the contract account

Each call validates everything up front and then commits its balance
changes as one ledger transaction bound to the caller's commitment.

Version: 0.1.0
"""

from collections.abc import Sequence
from typing import Any

from shared.blockchain import (
    NATIVE_ASSET_ID,
    BalanceChange,
    LedgerClient,
    LedgerError,
    LedgerEvent,
    LedgerTransaction,
    derive_token_id,
)
from shared.logging import get_logger
from shared.zk import DigestProofBackend, ProofBackend, SideloadedProof, VerificationKey

from services.token_ledger.models.errors import (
    AuthorizationError,
    ConfigurationError,
    ErrorCode,
    InvariantViolationError,
    PolicyMismatchError,
)
from services.token_ledger.models.forest import AccountUpdate
from services.token_ledger.models.operations import EMPTY_ADDRESS, OperationId
from services.token_ledger.models.state import TokenState
from services.token_ledger.models.transaction import TransactionContext
from services.token_ledger.services.batch import BatchApprovalResult, BatchApprover
from services.token_ledger.services.codec import PackedPolicy, PolicyFlag, PolicyRecord
from services.token_ledger.services.proof_policy import ProofPolicyOutcome, ProofPolicyVerifier
from services.token_ledger.services.registry import (
    KeyRegistry,
    empty_registry_root,
    parse_operation_id,
)


logger = get_logger(__name__)


class FungibleToken:
    """
    Token contract bound to one address on a ledger.

    The contract's own account on its token tracks the circulating supply.

    Usage:
        token = FungibleToken(ledger, address="B62q...")
        token.initialize(tx, admin="B62qadmin...", decimals=9)
        token.mint(tx, recipient="B62qalice...", amount=1000)
    """

    def __init__(
        self,
        ledger: LedgerClient,
        address: str,
        backend: ProofBackend | None = None,
    ) -> None:
        self.ledger = ledger
        self.address = address
        self.token_id = derive_token_id(address)
        self.backend = backend or DigestProofBackend()
        self.verifier = ProofPolicyVerifier(ledger, self.backend)
        self.batch_approver = BatchApprover(self.token_id, address)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def is_initialized(self) -> bool:
        return self.ledger.read_state(self.address) is not None

    def _load_state(self) -> TokenState:
        data = self.ledger.read_state(self.address)
        if data is None:
            raise ConfigurationError(ErrorCode.NOT_INITIALIZED, address=self.address)
        return TokenState.from_ledger(data)

    def _save_state(self, state: TokenState) -> None:
        self.ledger.write_state(self.address, state.to_ledger())

    def _check_sequence(self, tx: TransactionContext) -> None:
        current = self.ledger.read_nonce(tx.fee_payer, NATIVE_ASSET_ID)
        if current != tx.fee_payer_nonce:
            logger.warning(
                "transaction_stale",
                fee_payer=tx.fee_payer,
                expected_nonce=current,
                actual_nonce=tx.fee_payer_nonce,
            )
            raise AuthorizationError(
                ErrorCode.STALE_TRANSACTION,
                expected_nonce=current,
                actual_nonce=tx.fee_payer_nonce,
            )

    def _begin(self, tx: TransactionContext) -> TokenState:
        state = self._load_state()
        self._check_sequence(tx)
        return state

    # =========================================================================
    # Validation helpers
    # =========================================================================

    @staticmethod
    def _check_amount(amount: int, operation: OperationId) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ConfigurationError(ErrorCode.INVALID_AMOUNT, operation=operation, amount=amount)

    def _check_not_circulation(self, operation: OperationId, *owners: str) -> None:
        for owner in owners:
            if owner == self.address:
                logger.warning(
                    "circulation_account_rejected",
                    operation=operation.name,
                    owner=owner,
                )
                raise InvariantViolationError(
                    ErrorCode.NO_TRANSFER_FROM_CIRCULATION,
                    operation=operation,
                    owner=owner,
                )

    @staticmethod
    def _require_direct_mode(record: PolicyRecord, operation: OperationId) -> None:
        if record.should_verify:
            logger.warning(
                "direct_call_rejected",
                operation=operation.name,
                error_code=ErrorCode.SIDELOAD_REQUIRED_USE_PROOF_VARIANT.value,
            )
            raise PolicyMismatchError(
                ErrorCode.SIDELOAD_REQUIRED_USE_PROOF_VARIANT,
                operation=operation,
            )

    def _check_funds(self, changes: Sequence[BalanceChange], operation: OperationId) -> None:
        running: dict[tuple[str, int], int] = {}
        for index, change in enumerate(changes):
            account = (change.owner, change.token_id)
            balance = running.get(account, self.ledger.read_balance(*account)) + change.amount
            if balance < 0:
                logger.warning(
                    "insufficient_balance",
                    operation=operation.name,
                    owner=change.owner,
                    index=index,
                    shortfall=-balance,
                )
                raise InvariantViolationError(
                    ErrorCode.INSUFFICIENT_BALANCE,
                    operation=operation,
                    owner=change.owner,
                    shortfall=-balance,
                )
            running[account] = balance

    def _verify_proof(
        self,
        state: TokenState,
        operation: OperationId,
        recipient: str,
        proof: SideloadedProof,
        key: VerificationKey,
        registry: KeyRegistry,
    ) -> ProofPolicyOutcome:
        record = PackedPolicy(state.packed_policy).record_for(operation)
        return self.verifier.verify(
            record=record,
            operation_id=operation,
            registry_root=state.registry_root,
            registry_replica=registry,
            proof=proof,
            candidate_key=key,
            expected_recipient=recipient,
            expected_token_id=self.token_id,
        )

    def _commit(
        self,
        tx: TransactionContext,
        changes: Sequence[BalanceChange] = (),
    ) -> int:
        try:
            return self.ledger.commit(
                LedgerTransaction(
                    commitment=tx.commitment,
                    fee_payer=tx.fee_payer,
                    changes=list(changes),
                )
            )
        except LedgerError as e:
            logger.warning("transaction_refused", commitment=tx.commitment, reason=str(e))
            raise AuthorizationError(ErrorCode.STALE_TRANSACTION, reason=str(e)) from e

    def _emit(self, tx: TransactionContext, name: str, payload: dict[str, Any]) -> LedgerEvent:
        return self.ledger.emit_event(self.address, name, payload, commitment=tx.commitment)

    def _token_change(self, owner: str, amount: int) -> BalanceChange:
        return BalanceChange(owner=owner, token_id=self.token_id, amount=amount)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(
        self,
        tx: TransactionContext,
        admin: str,
        decimals: int,
        records: Sequence[PolicyRecord] | None = None,
    ) -> TokenState:
        """
        Deploy the token's state. Callable once, by the contract account.

        Args:
            tx: Transaction context
            admin: Initial admin
            decimals: Display decimals (0-255)
            records: Four policy records; per-operation defaults when omitted

        Returns:
            The stored TokenState
        """
        if self.is_initialized:
            raise ConfigurationError(ErrorCode.ALREADY_INITIALIZED, address=self.address)
        self._check_sequence(tx)

        if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= 255:
            raise ConfigurationError(ErrorCode.INVALID_DECIMALS, decimals=decimals)
        policy = PackedPolicy.default() if records is None else PackedPolicy.pack(records)

        tx.require_authorization(self.address)

        state = TokenState(
            address=self.address,
            token_id=self.token_id,
            decimals=decimals,
            admin=admin,
            packed_policy=policy.value,
            registry_root=empty_registry_root(),
        )

        self._commit(tx)
        self._save_state(state)
        self._emit(tx, "Initialization", {"admin": admin, "decimals": decimals})

        logger.info(
            "token_initialized",
            address=self.address,
            token_id=str(self.token_id),
            admin=admin,
            decimals=decimals,
        )

        return state

    def set_admin(self, tx: TransactionContext, new_admin: str) -> None:
        """Hand the admin role to ``new_admin``."""
        state = self._begin(tx)
        tx.require_authorization(state.admin)

        self._commit(tx)
        self._save_state(state.model_copy(update={"admin": new_admin}))
        self._emit(tx, "SetAdmin", {"admin_key": new_admin})

        logger.info("admin_changed", previous=state.admin, admin=new_admin)

    # =========================================================================
    # Mint
    # =========================================================================

    def _mint(
        self,
        tx: TransactionContext,
        recipient: str,
        amount: int,
        proof_args: tuple[SideloadedProof, VerificationKey, KeyRegistry] | None,
    ) -> int:
        operation = OperationId.MINT
        state = self._begin(tx)
        self._check_amount(amount, operation)
        self._check_not_circulation(operation, recipient)
        tx.require_authorization(state.admin)

        if proof_args is None:
            self._require_direct_mode(PackedPolicy(state.packed_policy).record_for(operation), operation)
        else:
            self._verify_proof(state, operation, recipient, *proof_args)

        changes = [
            self._token_change(recipient, amount),
            self._token_change(self.address, amount),
        ]
        block_number = self._commit(tx, changes)
        self._emit(tx, "Mint", {"recipient": recipient, "amount": amount})

        logger.info(
            "token_minted",
            recipient=recipient,
            amount=amount,
            with_proof=proof_args is not None,
            block_number=block_number,
        )

        return block_number

    def mint(self, tx: TransactionContext, recipient: str, amount: int) -> int:
        """Mint ``amount`` to ``recipient``. Returns the block number."""
        return self._mint(tx, recipient, amount, None)

    def mint_with_proof(
        self,
        tx: TransactionContext,
        recipient: str,
        amount: int,
        proof: SideloadedProof,
        key: VerificationKey,
        registry: KeyRegistry,
    ) -> int:
        """Mint after the Mint policy accepted ``proof``; the admin must still sign."""
        return self._mint(tx, recipient, amount, (proof, key, registry))

    # =========================================================================
    # Burn
    # =========================================================================

    def _burn(
        self,
        tx: TransactionContext,
        from_: str,
        amount: int,
        proof_args: tuple[SideloadedProof, VerificationKey, KeyRegistry] | None,
    ) -> int:
        operation = OperationId.BURN
        state = self._begin(tx)
        self._check_amount(amount, operation)
        self._check_not_circulation(operation, from_)
        tx.require_authorization(from_)

        if proof_args is None:
            self._require_direct_mode(PackedPolicy(state.packed_policy).record_for(operation), operation)
        else:
            self._verify_proof(state, operation, from_, *proof_args)

        changes = [
            self._token_change(from_, -amount),
            self._token_change(self.address, -amount),
        ]
        self._check_funds(changes, operation)
        block_number = self._commit(tx, changes)
        self._emit(tx, "Burn", {"from": from_, "amount": amount})

        logger.info(
            "token_burned",
            owner=from_,
            amount=amount,
            with_proof=proof_args is not None,
            block_number=block_number,
        )

        return block_number

    def burn(self, tx: TransactionContext, from_: str, amount: int) -> int:
        """Burn ``amount`` from ``from_``. Returns the block number."""
        return self._burn(tx, from_, amount, None)

    def burn_with_proof(
        self,
        tx: TransactionContext,
        from_: str,
        amount: int,
        proof: SideloadedProof,
        key: VerificationKey,
        registry: KeyRegistry,
    ) -> int:
        return self._burn(tx, from_, amount, (proof, key, registry))

    # =========================================================================
    # Transfer
    # =========================================================================

    def _transfer(
        self,
        tx: TransactionContext,
        from_: str,
        to: str,
        amount: int,
        proof_args: tuple[SideloadedProof, VerificationKey, KeyRegistry] | None,
    ) -> int:
        operation = OperationId.TRANSFER
        state = self._begin(tx)
        self._check_amount(amount, operation)
        self._check_not_circulation(operation, from_, to)
        tx.require_authorization(from_)

        if proof_args is None:
            self._require_direct_mode(PackedPolicy(state.packed_policy).record_for(operation), operation)
        else:
            self._verify_proof(state, operation, from_, *proof_args)

        changes = [
            self._token_change(from_, -amount),
            self._token_change(to, amount),
        ]
        self._check_funds(changes, operation)
        block_number = self._commit(tx, changes)
        self._emit(tx, "Transfer", {"from": from_, "to": to, "amount": amount})

        logger.info(
            "token_transferred",
            sender=from_,
            receiver=to,
            amount=amount,
            with_proof=proof_args is not None,
            block_number=block_number,
        )

        return block_number

    def transfer(self, tx: TransactionContext, from_: str, to: str, amount: int) -> int:
        """Move ``amount`` from ``from_`` to ``to``. Returns the block number."""
        return self._transfer(tx, from_, to, amount, None)

    def transfer_with_proof(
        self,
        tx: TransactionContext,
        from_: str,
        to: str,
        amount: int,
        proof: SideloadedProof,
        key: VerificationKey,
        registry: KeyRegistry,
    ) -> int:
        return self._transfer(tx, from_, to, amount, (proof, key, registry))

    # =========================================================================
    # Batch approve
    # =========================================================================

    def _approve_batch(
        self,
        tx: TransactionContext,
        forest: list[AccountUpdate],
        proof_args: tuple[SideloadedProof, VerificationKey, KeyRegistry] | None,
    ) -> BatchApprovalResult:
        operation = OperationId.BATCH_APPROVE
        state = self._begin(tx)
        record = PackedPolicy(state.packed_policy).record_for(operation)

        proof_verified = False
        if proof_args is not None:
            outcome = self._verify_proof(state, operation, EMPTY_ADDRESS, *proof_args)
            proof_verified = outcome.verified

        result = self.batch_approver.approve(forest, record, proof_verified=proof_verified)

        for owner in result.debited_owners:
            tx.require_authorization(owner)

        changes = [
            self._token_change(update.owner, update.balance_change)
            for update in result.token_updates
            if update.balance_change != 0
        ]
        self._check_funds(changes, operation)
        block_number = self._commit(tx, changes)
        for change in changes:
            self._emit(tx, "BalanceChange", {"address": change.owner, "amount": change.amount})

        logger.info(
            "batch_committed",
            token_updates=len(result.token_updates),
            with_proof=proof_args is not None,
            block_number=block_number,
        )

        return result

    def approve_batch(
        self,
        tx: TransactionContext,
        forest: list[AccountUpdate],
    ) -> BatchApprovalResult:
        """Validate and apply a forest of account updates."""
        return self._approve_batch(tx, forest, None)

    def approve_batch_with_proof(
        self,
        tx: TransactionContext,
        forest: list[AccountUpdate],
        proof: SideloadedProof,
        key: VerificationKey,
        registry: KeyRegistry,
    ) -> BatchApprovalResult:
        return self._approve_batch(tx, forest, (proof, key, registry))

    # =========================================================================
    # Configuration
    # =========================================================================

    def update_registry_entry(
        self,
        tx: TransactionContext,
        operation_id: int,
        key_hash: str,
        replica: KeyRegistry,
    ) -> KeyRegistry:
        """
        Register a verification key hash for an operation.

        Args:
            tx: Transaction context signed by the admin
            operation_id: Operation (1-4)
            key_hash: Hash of the new verification key
            replica: Caller's registry replica, matching the on-chain root

        Returns:
            Updated replica; ``replica`` itself is left unchanged
        """
        operation = parse_operation_id(operation_id)
        state = self._begin(tx)
        tx.require_authorization(state.admin)

        if not replica.root_matches(state.registry_root):
            logger.warning(
                "registry_update_rejected",
                operation=operation.name,
                error_code=ErrorCode.REGISTRY_OUT_OF_SYNC.value,
            )
            raise PolicyMismatchError(
                ErrorCode.REGISTRY_OUT_OF_SYNC,
                operation=operation,
                expected_root=state.registry_root,
                replica_root=replica.root,
            )

        updated = replica.with_entry(operation, key_hash)

        self._commit(tx)
        self._save_state(state.model_copy(update={"registry_root": updated.root}))
        self._emit(
            tx,
            "RegistryUpdate",
            {"operation_id": operation.value, "key_hash": key_hash, "root": updated.root},
        )

        logger.info(
            "registry_entry_updated",
            operation=operation.name,
            key_hash=key_hash,
            root=updated.root,
        )

        return updated

    def update_policy_record(
        self,
        tx: TransactionContext,
        operation_id: int,
        record: PolicyRecord,
    ) -> PackedPolicy:
        """Replace one operation's policy record. Returns the new packed policy."""
        operation = parse_operation_id(operation_id)
        state = self._begin(tx)
        tx.require_authorization(state.admin)

        policy = PackedPolicy(state.packed_policy).replace_segment(operation.segment_index, record)

        self._commit(tx)
        self._save_state(state.model_copy(update={"packed_policy": policy.value}))
        self._emit(
            tx,
            "PolicyUpdate",
            {"operation_id": operation.value, "packed_policy": policy.value},
        )

        logger.info(
            "policy_record_updated",
            operation=operation.name,
            should_verify=record.should_verify,
            packed_policy=policy.value,
        )

        return policy

    def update_policy_flag(
        self,
        tx: TransactionContext,
        operation_id: int,
        flag: PolicyFlag | str,
        value: bool,
    ) -> PackedPolicy:
        """Set a single flag of one operation's policy record."""
        operation = parse_operation_id(operation_id)
        selected = PolicyFlag.parse(flag)
        record = self.get_policy_record(operation).with_flag(selected, value)
        return self.update_policy_record(tx, operation, record)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_packed_policy(self) -> PackedPolicy:
        return PackedPolicy(self._load_state().packed_policy)

    def get_policy_record(self, operation_id: int) -> PolicyRecord:
        return self.get_packed_policy().record_for(parse_operation_id(operation_id))

    def get_registry_root(self) -> str:
        return self._load_state().registry_root

    def get_balance_of(self, owner: str) -> int:
        return self.ledger.read_balance(owner, self.token_id)

    def get_circulating(self) -> int:
        """Circulating supply, tracked on the contract's own account."""
        return self.ledger.read_balance(self.address, self.token_id)

    def get_decimals(self) -> int:
        return self._load_state().decimals

    def get_admin(self) -> str:
        return self._load_state().admin

    def get_token_id(self) -> int:
        return self.token_id

    def get_events(self, limit: int = 100) -> list[LedgerEvent]:
        return self.ledger.get_events(self.address, limit=limit)
