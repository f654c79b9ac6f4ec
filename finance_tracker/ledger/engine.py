"""
Ledger Engine

The single authoritative owner of the LedgerState. Every read and write
of balance, income, expense, the transaction log and the category limits
goes through one LedgerEngine instance.

DESIGN DECISION: Mutators are synchronous, persistence is not awaited.
A mutator commits a new in-memory snapshot, schedules a full persist of
all five stored fields and notifies observers. The persist runs later on
the event loop. A crash before it settles can lose the latest write;
the engine does not try to close that window.

DESIGN DECISION: Storage failures never escape the engine.
They are logged and the in-memory state stays authoritative for the rest
of the session. Nothing is rolled back and nothing is retried here
(the store applies its own retry policy).

DESIGN DECISION: The engine never produces user-facing text.
A rejected transaction is reported as False; wording the warning is the
caller's job.
"""

import asyncio
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, Union

import structlog
from pydantic import TypeAdapter, ValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.ledger.limits import check_category_limit
from finance_tracker.models.transaction import (
    INCOME_CATEGORY,
    CategoryLimit,
    LedgerState,
    LimitPolicy,
    Transaction,
    default_category_limits,
)
from finance_tracker.services.storage import (
    BALANCE_KEY,
    CATEGORY_LIMITS_KEY,
    EXPENSE_KEY,
    EXPENSES_KEY,
    INCOME_KEY,
    LEDGER_KEYS,
    KeyValueStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

LedgerListener = Callable[[LedgerState], None]

_transactions_adapter = TypeAdapter(tuple[Transaction, ...])
_stored_list_adapter = TypeAdapter(list[Any])
_limits_adapter = TypeAdapter(tuple[CategoryLimit, ...])


class LedgerEngine:
    """
    Owns the ledger state and keeps it in step with durable storage.

    Lifecycle:
        engine = LedgerEngine(store)
        await engine.init()       # hydrate from storage
        engine.add_income(...)    # mutate, persist in the background
        await engine.teardown()   # wait for pending writes

    or simply `async with LedgerEngine(store) as engine: ...`.

    Observers registered with `subscribe` are called synchronously with
    the new snapshot after every committed mutation.
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        limit_policy: LimitPolicy = LimitPolicy.SINGLE_AMOUNT,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._limit_policy = LimitPolicy(limit_policy)
        self._audit_logger = audit_logger or AuditLogger()
        self._state = LedgerState.default()
        self._hydrated = False
        self._listeners: list[LedgerListener] = []

        # Persistence bookkeeping
        self._pending: set[asyncio.Task] = set()
        self._persist_lock: Optional[asyncio.Lock] = None
        self._deferred = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def init(self) -> LedgerState:
        """Hydrate from storage. Call once at session start."""
        return await self.load_balance_data()

    async def teardown(self) -> None:
        """Write out everything still pending and drop all observers."""
        await self.flush()
        self._listeners.clear()

    async def __aenter__(self) -> "LedgerEngine":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.teardown()

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        """The current immutable snapshot."""
        return self._state

    @property
    def balance(self) -> Decimal:
        return self._state.balance

    @property
    def income(self) -> Decimal:
        return self._state.income

    @property
    def expense(self) -> Decimal:
        return self._state.expense

    @property
    def expenses(self) -> tuple[Transaction, ...]:
        """Every transaction, income and expense, in insertion order."""
        return self._state.expenses

    @property
    def category_limits(self) -> dict[str, Decimal]:
        return self._state.limits_by_name()

    @property
    def limit_policy(self) -> LimitPolicy:
        return self._limit_policy

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        """
        Register an observer.

        Returns a callable that unregisters it again. Calling that more
        than once is harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_transaction(self, tx: Transaction) -> bool:
        """
        Append a transaction if its category limit allows it.

        Returns False (state untouched, nothing persisted, no observers
        called) when the configured limit policy rejects it.
        """
        check = check_category_limit(self._state, tx.category, tx.amount, self._limit_policy)
        if check.exceeded:
            self._audit_logger.log_transaction_rejected(
                tx.id, tx.category, tx.amount, check.limit, self._limit_policy.value
            )
            return False

        self._commit(self._apply(self._state, tx, sign=1))
        self._audit_logger.log_transaction_added(tx.id, tx.category, tx.amount)
        return True

    def add_income(
        self,
        name: str,
        amount: Decimal,
        date: Union[datetime, str],
    ) -> Transaction:
        """Record income. Never limit checked, always succeeds."""
        tx = Transaction(name=name, amount=amount, category=INCOME_CATEGORY, date=date)
        self._commit(self._apply(self._state, tx, sign=1))
        self._audit_logger.log_income_added(tx.id, tx.amount)
        return tx

    def remove_expense(self, position: int) -> Transaction:
        """
        Remove the entry at a zero-based position in `expenses`.

        The position is read against the log as it is right now; a stale
        index from an old render removes whatever sits there today.

        Raises:
            IndexError: If position is outside the current log
        """
        if position < 0 or position >= len(self._state.expenses):
            raise IndexError(
                f"ledger position {position} out of range "
                f"(log has {len(self._state.expenses)} entries)"
            )
        return self._remove_at(position)

    def remove_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Remove a transaction by id. Unknown ids are a no-op returning None."""
        for position, tx in enumerate(self._state.expenses):
            if tx.id == transaction_id:
                return self._remove_at(position)
        return None

    def update_category_limit(self, category: str, limit: Decimal) -> None:
        """
        Set a category's limit, appending the category if it is new.

        Raises:
            ValidationError: If limit is negative
        """
        new_limit = CategoryLimit(name=category, limit=limit)
        limits = list(self._state.category_limits)
        created = True
        for index, item in enumerate(limits):
            if item.name == category:
                limits[index] = new_limit
                created = False
        if created:
            limits.append(new_limit)

        self._commit(self._state.model_copy(update={"category_limits": tuple(limits)}))
        self._audit_logger.log_category_limit_updated(category, new_limit.limit, created)

    # -------------------------------------------------------------------------
    # Load / clear
    # -------------------------------------------------------------------------

    async def load_balance_data(self) -> LedgerState:
        """
        Replace the in-memory state wholesale with what storage holds.

        Absent or unreadable fields fall back to their defaults. If the
        store itself fails, the current in-memory state is kept.
        Never raises.
        """
        await self._wait_for_pending()

        try:
            raw = {key: await self._store.get_item(key) for key in LEDGER_KEYS}
        except StorageError as e:
            logger.error("ledger_load_failed", error=str(e))
            self._audit_logger.log_storage_failed("load", str(e))
            return self._state

        income = self._parse_decimal(INCOME_KEY, raw[INCOME_KEY])
        expense = self._parse_decimal(EXPENSE_KEY, raw[EXPENSE_KEY])
        balance = self._parse_decimal(BALANCE_KEY, raw[BALANCE_KEY])
        if balance != income - expense:
            # Reported, not corrected
            logger.warning(
                "ledger_balance_mismatch",
                balance=str(balance),
                income=str(income),
                expense=str(expense),
            )

        state = LedgerState(
            balance=balance,
            income=income,
            expense=expense,
            expenses=self._parse_transactions(raw[EXPENSES_KEY]),
            category_limits=self._parse_limits(raw[CATEGORY_LIMITS_KEY]),
        )
        self._hydrated = True
        self._state = state
        self._notify(state)
        self._audit_logger.log_ledger_loaded(len(state.expenses), state.balance)
        return state

    async def clear_balance_data(self) -> None:
        """
        Erase the stored ledger and reset to zero totals and default limits.

        Memory is reset before the first key is removed, and removal holds
        the persist lock. A mutation made while the keys are being removed
        therefore builds on the cleared state and is written after the
        removal finishes.
        """
        await self._wait_for_pending()
        self._deferred = False

        state = LedgerState.default()
        self._state = state
        self._notify(state)

        async with self._get_persist_lock():
            try:
                for key in LEDGER_KEYS:
                    await self._store.remove_item(key)
            except StorageError as e:
                logger.error("ledger_clear_failed", error=str(e))
                self._audit_logger.log_storage_failed("clear", str(e))

        self._audit_logger.log_ledger_cleared()

    async def flush(self) -> None:
        """Wait for scheduled persists and write any deferred one."""
        await self._wait_for_pending()
        if self._deferred:
            self._deferred = False
            await self._persist(self._state)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _apply(state: LedgerState, tx: Transaction, sign: int) -> LedgerState:
        """
        Add (sign=1) or take back (sign=-1) a transaction's effect on the totals.

        Does not touch the log itself except for appending on sign=1.
        """
        amount = tx.amount * sign
        update: dict = {"balance": state.balance + tx.signed_amount * sign}
        if tx.is_income:
            update["income"] = state.income + amount
        else:
            update["expense"] = state.expense + amount
        if sign > 0:
            update["expenses"] = state.expenses + (tx,)
        return state.model_copy(update=update)

    def _remove_at(self, position: int) -> Transaction:
        removed = self._state.expenses[position]
        remaining = self._state.expenses[:position] + self._state.expenses[position + 1:]
        state = self._apply(self._state, removed, sign=-1)
        self._commit(state.model_copy(update={"expenses": remaining}))
        self._audit_logger.log_transaction_removed(
            removed.id, removed.category, removed.amount, position
        )
        return removed

    def _commit(self, state: LedgerState) -> None:
        self._state = state
        self._schedule_persist(state)
        self._notify(state)

    def _notify(self, state: LedgerState) -> None:
        for listener in list(self._listeners):
            listener(state)

    def _schedule_persist(self, state: LedgerState) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run on; the next flush() writes the latest state.
            self._deferred = True
            logger.debug("ledger_persist_deferred")
            return

        task = loop.create_task(self._persist(state))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _get_persist_lock(self) -> asyncio.Lock:
        # Created lazily so the engine can be built outside an event loop
        if self._persist_lock is None:
            self._persist_lock = asyncio.Lock()
        return self._persist_lock

    async def _wait_for_pending(self) -> None:
        while True:
            pending = [task for task in self._pending if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    async def _persist(self, state: LedgerState) -> bool:
        """Write all five fields of one snapshot. Returns False on storage failure."""
        async with self._get_persist_lock():
            try:
                await self._store.set_item(BALANCE_KEY, str(state.balance))
                await self._store.set_item(INCOME_KEY, str(state.income))
                await self._store.set_item(EXPENSE_KEY, str(state.expense))
                await self._store.set_item(
                    EXPENSES_KEY,
                    _transactions_adapter.dump_json(state.expenses).decode("utf-8"),
                )
                await self._store.set_item(
                    CATEGORY_LIMITS_KEY,
                    _limits_adapter.dump_json(state.category_limits).decode("utf-8"),
                )
            except StorageError as e:
                logger.error("ledger_persist_failed", error=str(e))
                self._audit_logger.log_storage_failed("persist", str(e))
                return False
        return True

    def _parse_decimal(self, key: str, raw: Optional[str]) -> Decimal:
        if raw is None:
            return Decimal("0")
        try:
            value = Decimal(raw.strip())
        except (InvalidOperation, ValueError) as e:
            self._audit_logger.log_stored_data_invalid(key, str(e) or repr(raw))
            return Decimal("0")
        if not value.is_finite():
            self._audit_logger.log_stored_data_invalid(key, f"non-finite value {raw!r}")
            return Decimal("0")
        return value

    def _parse_transactions(self, raw: Optional[str]) -> tuple[Transaction, ...]:
        """
        Decode the stored log entry by entry.

        A bad entry is skipped on its own; the rest of the log survives.
        Only unparsable JSON or a non-array value loses the whole log.
        """
        if raw is None:
            return ()
        try:
            items = _stored_list_adapter.validate_json(raw)
        except ValidationError as e:
            self._audit_logger.log_stored_data_invalid(EXPENSES_KEY, str(e))
            return ()

        transactions = []
        for position, item in enumerate(items):
            try:
                transactions.append(Transaction.model_validate(item))
            except ValidationError as e:
                self._audit_logger.log_stored_data_invalid(
                    EXPENSES_KEY, f"entry {position} skipped: {e}"
                )
        return tuple(transactions)

    def _parse_limits(self, raw: Optional[str]) -> tuple[CategoryLimit, ...]:
        if raw is None:
            return default_category_limits()
        try:
            return _limits_adapter.validate_json(raw)
        except ValidationError as e:
            self._audit_logger.log_stored_data_invalid(CATEGORY_LIMITS_KEY, str(e))
            return default_category_limits()
