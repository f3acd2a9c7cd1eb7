"""Keyed record stores with journalled writes.

Every protocol store is addressed by a tuple (or scalar) key. The store
interface offers two write paths:
- put(): unconditional set.
- insert(): atomic check-absence-then-insert. Raises KeyError if the key
  already exists. This is the guard that makes "one identity per account"
  and "one vote per (proposal, voter)" hold under any serialization.

While a journal is open, the first write to each key records the key's
prior value (or its absence). rollback() restores exactly those keys.
"""

from __future__ import annotations

import abc
from typing import Generic, Hashable, Iterator, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_ABSENT = object()


class KeyedStore(abc.ABC, Generic[K, V]):
    """Abstract keyed store."""

    @abc.abstractmethod
    def get(self, key: K) -> Optional[V]:
        ...

    @abc.abstractmethod
    def put(self, key: K, value: V) -> None:
        ...

    @abc.abstractmethod
    def insert(self, key: K, value: V) -> None:
        ...

    @abc.abstractmethod
    def items(self) -> Iterator[tuple[K, V]]:
        ...

    @abc.abstractmethod
    def __len__(self) -> int:
        ...

    def contains(self, key: K) -> bool:
        return self.get(key) is not None

    # Journal hooks; no-ops for stores that have their own transactions.
    def begin(self) -> None:
        pass

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass


class MemoryKeyedStore(KeyedStore[K, V]):
    """Dict-backed store with a single-level write journal."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._data: dict[K, V] = {}
        self._journal: Optional[dict[K, object]] = None

    def get(self, key: K) -> Optional[V]:
        return self._data.get(key)

    def put(self, key: K, value: V) -> None:
        self._remember(key)
        self._data[key] = value

    def insert(self, key: K, value: V) -> None:
        if key in self._data:
            raise KeyError(f"{self.name}: key already present: {key!r}")
        self.put(key, value)

    def items(self) -> Iterator[tuple[K, V]]:
        return iter(list(self._data.items()))

    def __len__(self) -> int:
        return len(self._data)

    def begin(self) -> None:
        if self._journal is not None:
            raise RuntimeError(f"{self.name}: transaction already open")
        self._journal = {}

    def commit(self) -> None:
        self._journal = None

    def rollback(self) -> None:
        if self._journal is None:
            return
        for key, prior in self._journal.items():
            if prior is _ABSENT:
                self._data.pop(key, None)
            else:
                self._data[key] = prior  # type: ignore[assignment]
        self._journal = None

    def _remember(self, key: K) -> None:
        if self._journal is not None and key not in self._journal:
            self._journal[key] = self._data.get(key, _ABSENT)
