"""
Purpose: The record store the engine reads and writes through.
What it does:
- Describes the store interface (RecordStore / Collection protocols) so a
  database backed store can be plugged in later.
- Ships InMemoryRecordStore, a thread safe reference implementation used by
  tests, scripts and single process deployments.

Filters are plain dicts mapping a field path ("pickup_location.address") to:
- a value            -> equality
- Contains(text)     -> case-insensitive substring (literal, not a regex)
- In(values)         -> field value is one of values
- AnyOf(values)      -> list field shares at least one member with values
- Ne(value)          -> not equal

Results are copies ordered newest first. Callers persist changes with save(),
update_many() or the atomic conditional update update_if().

Rule: The store owns record state and atomicity, never business rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from threading import RLock
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Protocol, TypeVar
import copy
import logging

from .errors import NotFoundError
from .models import Ride, RideGroup

logger = logging.getLogger(__name__)

R = TypeVar("R")
Filter = Mapping[str, Any]


# ---- filter operators ----

@dataclass(frozen=True)
class Contains:
    text: str


@dataclass(frozen=True)
class In:
    values: Iterable[Any]


@dataclass(frozen=True)
class AnyOf:
    values: Iterable[Any]


@dataclass(frozen=True)
class Ne:
    value: Any


def resolve_field(record: Any, path: str) -> Any:
    value = record
    for part in path.split("."):
        if value is None:
            return None
        value = getattr(value, part)
    return value


def matches(record: Any, query: Filter) -> bool:
    for path, expected in query.items():
        actual = resolve_field(record, path)

        if isinstance(expected, Contains):
            if not isinstance(actual, str) or expected.text.lower() not in actual.lower():
                return False
        elif isinstance(expected, In):
            if actual not in list(expected.values):
                return False
        elif isinstance(expected, AnyOf):
            if not set(actual or ()) & set(expected.values):
                return False
        elif isinstance(expected, Ne):
            if actual == expected.value:
                return False
        elif actual != expected:
            return False
    return True


# ---- interface ----

class Collection(Protocol[R]):
    def get(self, record_id: str) -> Optional[R]: ...
    def find_one(self, query: Filter) -> Optional[R]: ...
    def find(self, query: Filter) -> List[R]: ...
    def create(self, record: R) -> R: ...
    def save(self, record: R) -> R: ...
    def delete(self, record_id: str) -> None: ...
    def update_many(self, query: Filter, patch: Mapping[str, Any]) -> int: ...
    def update_if(self, record_id: str, expected: Filter, patch: Mapping[str, Any]) -> Optional[R]: ...


class RecordStore(Protocol):
    rides: Collection[Ride]
    groups: Collection[RideGroup]


# ---- in-memory reference implementation ----

@dataclass
class InMemoryCollection(Generic[R]):
    """
    Dict backed collection. Every public method holds the collection lock,
    so each single call (including update_many and update_if) is atomic.
    """
    name: str
    _records: Dict[str, Any] = field(default_factory=dict)
    _sequence: Dict[str, int] = field(default_factory=dict)  # insertion order for ties
    _counter: int = 0
    _lock: RLock = field(default_factory=RLock)

    def get(self, record_id: str) -> Optional[R]:
        with self._lock:
            record = self._records.get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def find(self, query: Filter) -> List[R]:
        with self._lock:
            found = [record for record in self._records.values() if matches(record, query)]
            found.sort(
                key=lambda record: (record.created_at, self._sequence[record.id]),
                reverse=True,
            )
            return [copy.deepcopy(record) for record in found]

    def find_one(self, query: Filter) -> Optional[R]:
        found = self.find(query)
        return found[0] if found else None

    def create(self, record: R) -> R:
        with self._lock:
            if record.id in self._records:
                raise ValueError(f"{self.name}: duplicate id {record.id}")
            self._counter += 1
            self._sequence[record.id] = self._counter
            self._records[record.id] = copy.deepcopy(record)
            return copy.deepcopy(record)

    def save(self, record: R) -> R:
        with self._lock:
            if record.id not in self._records:
                raise NotFoundError(f"{self.name}: {record.id} not found")
            self._records[record.id] = copy.deepcopy(record)
            return copy.deepcopy(record)

    def delete(self, record_id: str) -> None:
        with self._lock:
            self._records.pop(record_id, None)
            self._sequence.pop(record_id, None)

    def update_many(self, query: Filter, patch: Mapping[str, Any]) -> int:
        with self._lock:
            updated = 0
            for record_id, record in list(self._records.items()):
                if matches(record, query):
                    self._records[record_id] = replace(record, **patch)
                    updated += 1
            logger.debug("%s: update_many matched %d record(s)", self.name, updated)
            return updated

    def update_if(self, record_id: str, expected: Filter, patch: Mapping[str, Any]) -> Optional[R]:
        """
        Conditional update: apply `patch` only if the stored record still
        satisfies `expected`. Returns the updated copy, or None when the
        record is missing or no longer matches.
        """
        with self._lock:
            record = self._records.get(record_id)
            if record is None or not matches(record, expected):
                return None
            updated = replace(record, **patch)
            self._records[record_id] = updated
            return copy.deepcopy(updated)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class InMemoryRecordStore:
    def __init__(self):
        self.rides: InMemoryCollection[Ride] = InMemoryCollection("rides")
        self.groups: InMemoryCollection[RideGroup] = InMemoryCollection("groups")
