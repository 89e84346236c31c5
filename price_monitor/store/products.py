"""Product store: canonical in-memory collection persisted to the durable slot."""
import logging
from typing import Callable, Iterable, Optional

import orjson
from pydantic import ValidationError

from price_monitor.config import config
from price_monitor.errors import MalformedPersistedState, UnknownProduct
from price_monitor.parse.models import ProductRecord
from price_monitor.store.slot import DurableSlot

logger = logging.getLogger(__name__)

RemovalListener = Callable[[set[str]], None]


class ProductStore:
    """Owns the product collection. All mutation goes through this API.

    Every mutator writes the full collection back to the slot before
    returning, so memory and slot never disagree once a call completes.
    Records are immutable; updates replace them by id, keeping their position.
    """

    def __init__(self, slot: DurableSlot, key: str = config.STATE_KEY):
        self.slot = slot
        self.key = key
        self._records: list[ProductRecord] = []
        self._removal_listeners: list[RemovalListener] = []

    def on_remove(self, listener: RemovalListener) -> None:
        """Register a callback invoked with the ids removed by remove_many."""
        self._removal_listeners.append(listener)

    # Lifecycle

    def load(self, defaults: Iterable[ProductRecord] = ()) -> list[ProductRecord]:
        """Restore from the slot, falling back to defaults if absent or malformed."""
        try:
            restored = self._decode(self.slot.read(self.key))
        except MalformedPersistedState as e:
            logger.warning(f"Ignoring persisted products: {e}")
            restored = None

        if restored is None:
            self._records = _dedupe(defaults)
            logger.info(f"Loaded {len(self._records)} default products")
        else:
            self._records = restored
            logger.info(f"Restored {len(self._records)} products from {self.slot.db_path}")
        return self.records()

    def persist(self) -> None:
        """Overwrite the slot with the current collection."""
        self.slot.write(self.key, _encode(self._records))

    def _commit(self, records: list[ProductRecord]) -> None:
        """Write records to the slot, then make them current.

        If the write raises, memory keeps the previous collection.
        """
        self.slot.write(self.key, _encode(records))
        self._records = records

    # Mutators

    def replace_all(self, records: Iterable[ProductRecord]) -> None:
        """Swap the entire collection."""
        self._commit(_dedupe(records))

    def upsert_one(self, record: ProductRecord, prepend: bool = False) -> None:
        """Insert a record, or replace the record with the same id in place."""
        records = list(self._records)
        index = self._index_of(record.id)
        if index is not None:
            records[index] = record
        elif prepend:
            records.insert(0, record)
        else:
            records.append(record)
        self._commit(records)

    def remove_many(self, ids: Iterable[str]) -> set[str]:
        """Remove every record whose id is in ids. Absent ids are ignored."""
        wanted = set(ids)
        removed = {r.id for r in self._records if r.id in wanted}
        self._commit([r for r in self._records if r.id not in wanted])
        for listener in self._removal_listeners:
            listener(wanted)
        if removed:
            logger.debug(f"Removed {len(removed)} products")
        return removed

    # Reads

    def snapshot(self) -> tuple[ProductRecord, ...]:
        """Immutable copy of the current collection."""
        return tuple(self._records)

    def records(self) -> list[ProductRecord]:
        return list(self._records)

    def get(self, product_id: str) -> ProductRecord:
        index = self._index_of(product_id)
        if index is None:
            raise UnknownProduct(product_id)
        return self._records[index]

    def ids(self) -> list[str]:
        return [r.id for r in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, product_id: object) -> bool:
        return any(r.id == product_id for r in self._records)

    # Internals

    def _index_of(self, product_id: str) -> Optional[int]:
        for index, record in enumerate(self._records):
            if record.id == product_id:
                return index
        return None

    @staticmethod
    def _decode(raw: Optional[bytes]) -> Optional[list[ProductRecord]]:
        if raw is None:
            return None
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise MalformedPersistedState(f"Invalid JSON: {e}") from e
        if not isinstance(data, list):
            raise MalformedPersistedState(f"Expected a list, got {type(data).__name__}")
        try:
            records = [ProductRecord.model_validate(item) for item in data]
        except ValidationError as e:
            raise MalformedPersistedState(f"Invalid product: {e.errors()[0]['msg']}") from e
        ids = [r.id for r in records]
        if len(ids) != len(set(ids)):
            raise MalformedPersistedState("Duplicate product ids")
        return records


def _dedupe(records: Iterable[ProductRecord]) -> list[ProductRecord]:
    """Keep the first record per id."""
    seen: set[str] = set()
    result = []
    for record in records:
        if record.id in seen:
            logger.warning(f"Dropping duplicate product id {record.id}")
            continue
        seen.add(record.id)
        result.append(record)
    return result


def _encode(records: list[ProductRecord]) -> bytes:
    return orjson.dumps([r.model_dump(mode="json") for r in records])
