"""Canonical visitor records with a fingerprint secondary index."""

from leadtrace.schemas.visitor import Visitor
from leadtrace.services.store import RecordStore


class IdentityStore(RecordStore[Visitor]):
    """Visitors keyed by visitor id, indexed by fingerprint hash.

    The fingerprint index is updated together with the primary map, so a
    lookup by fingerprint never has to scan. Collisions between distinct
    people who share a fingerprint are accepted: they resolve to one visitor.
    """

    model = Visitor
    key_field = "visitor_id"

    def __init__(self) -> None:
        super().__init__()
        self._by_fingerprint: dict[str, str] = {}

    def find_by_fingerprint(self, fingerprint_hash: str) -> Visitor | None:
        visitor_id = self._by_fingerprint.get(fingerprint_hash)
        if visitor_id is None:
            return None
        return self.get(visitor_id)

    def add(self, record: Visitor) -> Visitor:
        existing = self._by_fingerprint.get(record.fingerprint_hash)
        if existing is not None and existing != record.visitor_id:
            raise ValueError(
                f"fingerprint {record.fingerprint_hash!r} already belongs to {existing}"
            )
        super().add(record)
        self._by_fingerprint[record.fingerprint_hash] = record.visitor_id
        return record

    def remove(self, key: str) -> Visitor | None:
        visitor = super().remove(key)
        if visitor is not None:
            self._by_fingerprint.pop(visitor.fingerprint_hash, None)
        return visitor

    def clear(self) -> None:
        super().clear()
        self._by_fingerprint.clear()
