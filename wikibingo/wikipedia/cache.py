"""
Bounded in-memory cache with first-in-first-out eviction.

Used for redirect resolutions and article content. Instances are owned by
(or injected into) a resolver/fetcher rather than living at module level,
so tests and concurrent sessions can each have their own.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Generic, Iterator, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class BoundedCache(Generic[V]):
    """
    String-keyed cache holding at most `maxsize` entries.

    When full, inserting a new key evicts the oldest inserted entry.
    Overwriting an existing key keeps its original position.
    """

    def __init__(self, maxsize: int, name: str = "cache") -> None:
        if maxsize < 1:
            raise ValueError(f"maxsize must be >= 1, got {maxsize}")
        self._maxsize = maxsize
        self._name = name
        self._data: OrderedDict[str, V] = OrderedDict()

    @property
    def maxsize(self) -> int:
        return self._maxsize

    def get(self, key: str) -> V | None:
        return self._data.get(key)

    def put(self, key: str, value: V) -> None:
        if key in self._data:
            self._data[key] = value
            return

        while len(self._data) >= self._maxsize:
            evicted, _ = self._data.popitem(last=False)
            logger.debug(f"{self._name}: evicted '{evicted}'")

        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        """Keys in insertion order, oldest first."""
        return list(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __repr__(self) -> str:
        return f"BoundedCache(name={self._name!r}, size={len(self)}, maxsize={self._maxsize})"
