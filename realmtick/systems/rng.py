"""Domain-separated deterministic RNG using xxhash.

A day's rolls depend ONLY on WorldSeed + Domain + subject + game day, so a
re-run of the same day over the same state produces the same encounters.

Formula: RNG_Value = Hash(WorldSeed, Domain, EntityID, Day, Salt)
"""

from __future__ import annotations

import struct
from typing import Sequence, TypeVar

import xxhash

from realmtick.core.enums import Domain

T = TypeVar("T")


class DeterministicRNG:
    """Stateless domain-separated pseudo-random number generator.

    Each call is a pure function of its arguments. No internal mutable
    state, therefore fully thread-safe.
    """

    __slots__ = ("_seed",)

    _MAX_UINT64 = (1 << 64) - 1

    def __init__(self, seed: int) -> None:
        self._seed = seed

    @property
    def seed(self) -> int:
        return self._seed

    def _hash(self, domain: Domain, entity_id: int, day: int, salt: int) -> int:
        payload = struct.pack("<qiqqi", self._seed, domain.value, entity_id, day, salt)
        return xxhash.xxh64(payload).intdigest()

    def next_float(self, domain: Domain, entity_id: int, day: int, salt: int = 0) -> float:
        """Return a deterministic float in [0.0, 1.0)."""
        return self._hash(domain, entity_id, day, salt) / (self._MAX_UINT64 + 1)

    def next_int(self, domain: Domain, entity_id: int, day: int, low: int, high: int, salt: int = 0) -> int:
        """Return a deterministic integer in [low, high] inclusive."""
        f = self.next_float(domain, entity_id, day, salt)
        return low + int(f * (high - low + 1))

    def next_bool(self, domain: Domain, entity_id: int, day: int, probability: float = 0.5, salt: int = 0) -> bool:
        """Return True with the given probability."""
        return self.next_float(domain, entity_id, day, salt) < probability

    def choice(self, domain: Domain, entity_id: int, day: int, items: Sequence[T], salt: int = 0) -> T:
        """Pick one element of a non-empty sequence uniformly."""
        if not items:
            raise ValueError("choice() from an empty sequence")
        return items[self.next_int(domain, entity_id, day, 0, len(items) - 1, salt)]
