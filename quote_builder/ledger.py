"""Quote ledger: append-only history of committed quotes."""
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import ValidationError

from quote_builder.cart import WorkingQuote
from quote_builder.config import settings
from quote_builder.exceptions import QuoteNotFoundError, StoreUnavailableError
from quote_builder.logging_conf import log_quote_committed, log_store_backup, log_store_degraded
from quote_builder.schemas import HISTORY_SCHEMA_VERSION, Quote, QuoteFields, QuoteHistoryEnvelope


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuoteLedger:
    """Committed quotes, newest first, persisted as one store value.

    The store is read once at construction (or on ``refresh``); an
    unreadable or corrupt value yields an empty history instead of an error.
    Every commit rewrites the full history under ``key``, but never over a
    value that could not be read: a store that stays unavailable makes the
    commit fail, and an unparseable value is first copied to a backup key.
    """

    def __init__(self, store, key: Optional[str] = None, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._key = key or settings.history_key
        self._clock = clock
        self._history: List[Quote] = []
        self._last_id = 0
        self._degraded = False
        self._unreadable_value: Optional[str] = None
        self.refresh()

    def __len__(self) -> int:
        return len(self._history)

    @property
    def degraded(self) -> bool:
        """True when the last read could not load the stored history."""
        return self._degraded

    def backup_key(self, now: datetime) -> str:
        return f"{self._key}.unreadable.{int(now.timestamp() * 1000)}"

    def _read(self) -> List[Quote]:
        self._degraded = False
        self._unreadable_value = None
        try:
            raw = self._store.get_item(self._key)
        except StoreUnavailableError as e:
            log_store_degraded(self._key, str(e))
            self._degraded = True
            return []

        if raw is None:
            return []

        try:
            envelope = QuoteHistoryEnvelope.model_validate_json(raw)
        except ValidationError as e:
            log_store_degraded(self._key, f"invalid history: {e.error_count()} validation errors")
            self._degraded = True
            self._unreadable_value = raw
            return []

        if envelope.version != HISTORY_SCHEMA_VERSION:
            log_store_degraded(self._key, f"unsupported history version {envelope.version}")
            self._degraded = True
            self._unreadable_value = raw
            return []

        return envelope.quotes

    def _recover(self, now: datetime, trace_id: Optional[str] = None):
        """Make the stored value safe to overwrite after a degraded read.

        Re-reads the store first. Raises ``StoreUnavailableError`` if it is
        still unavailable; an unparseable value is copied to ``backup_key``.
        """
        self.refresh()
        if not self._degraded:
            return
        if self._unreadable_value is None:
            raise StoreUnavailableError(
                f"Quote history under '{self._key}' could not be read; not overwriting it"
            )

        backup_key = self.backup_key(now)
        self._store.set_item(backup_key, self._unreadable_value)
        log_store_backup(self._key, backup_key, trace_id)
        self._degraded = False
        self._unreadable_value = None

    def _write(self, history: List[Quote]):
        envelope = QuoteHistoryEnvelope(version=HISTORY_SCHEMA_VERSION, quotes=history)
        self._store.set_item(self._key, envelope.model_dump_json(by_alias=True))

    def _next_id(self, now: datetime) -> int:
        candidate = int(now.timestamp() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        return candidate

    def refresh(self):
        """Reload history from the store."""
        self._history = self._read()
        self._last_id = max((quote.id for quote in self._history), default=0)

    def commit(self, working_quote: WorkingQuote, trace_id: Optional[str] = None) -> Optional[Quote]:
        """Snapshot ``working_quote`` into history.

        Returns ``None`` without touching history when the quote has no
        line items. The in-memory history only changes after the store
        write succeeds.
        """
        if working_quote.is_empty:
            return None

        now = self._clock()
        if self._degraded:
            self._recover(now, trace_id)

        fields = working_quote.fields()
        quote = Quote(
            id=self._next_id(now),
            created_at=now,
            customer_name=fields.customer_name,
            customer_email=fields.customer_email,
            line_items=fields.line_items,
            total=working_quote.total()
        )

        updated = [quote] + self._history
        self._write(updated)
        self._history = updated
        self._last_id = quote.id

        log_quote_committed(quote.id, quote.total, len(quote.line_items), trace_id)
        return quote.model_copy(deep=True)

    def list(self) -> List[Quote]:
        """Full history, newest first."""
        return [quote.model_copy(deep=True) for quote in self._history]

    def get(self, quote_id: int) -> Optional[Quote]:
        for quote in self._history:
            if quote.id == quote_id:
                return quote.model_copy(deep=True)
        return None

    def load(self, quote_id: int) -> QuoteFields:
        """Copy of a committed quote's editable fields; the record itself is kept."""
        quote = self.get(quote_id)
        if quote is None:
            raise QuoteNotFoundError(f"Quote with ID {quote_id} not found")
        return QuoteFields(
            customer_name=quote.customer_name,
            customer_email=quote.customer_email,
            line_items=quote.line_items
        )
