"""Keyed in-memory record collections with a list-of-pairs persistence form."""

import logging
from collections.abc import Iterator
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordStore(Generic[RecordT]):
    """Insertion-ordered mapping of record id to pydantic record.

    Subclasses set ``model`` and ``key_field``. Records are mutated in
    place by their owners; the store only tracks membership.
    """

    model: type[BaseModel]
    key_field: str

    def __init__(self) -> None:
        self._records: dict[str, RecordT] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RecordT]:
        return iter(list(self._records.values()))

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def get(self, key: str) -> RecordT | None:
        return self._records.get(key)

    def add(self, record: RecordT) -> RecordT:
        self._records[getattr(record, self.key_field)] = record
        return record

    def remove(self, key: str) -> RecordT | None:
        return self._records.pop(key, None)

    def clear(self) -> None:
        self._records.clear()

    def to_pairs(self) -> list[tuple[str, dict]]:
        """Serialize as ``[(key, record_json), ...]`` in insertion order."""
        return [
            (key, record.model_dump(mode="json", by_alias=True))
            for key, record in self._records.items()
        ]

    def load_pairs(self, pairs) -> int:
        """Replace contents from ``to_pairs`` output, skipping invalid entries.

        Returns the number of records loaded.
        """
        self.clear()
        for key, data in pairs:
            try:
                self.add(self.model.model_validate(data))
            except (ValidationError, ValueError):
                logger.warning("Skipping unreadable %s record %s", self.model.__name__, key)
        return len(self._records)
