from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")


def seed_to_uint32(seed: int | str) -> int:
    text = str(seed).encode("utf-8")
    digest = hashlib.sha256(text).hexdigest()
    value = int(digest[:8], 16)
    return value if value != 0 else 0x9E3779B9


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def generate_date_seed(date: str) -> int:
    """Rolling ``h * 31 + code`` hash of a ``YYYY-MM-DD`` string.

    The accumulator wraps to a signed 32-bit integer after every character and
    the absolute value is returned, so the same date always yields the same seed.
    """
    hash_value = 0
    for char in date:
        hash_value = _to_int32(hash_value * 31 + ord(char))
    return abs(hash_value)


def fresh_seed() -> int:
    return random.randrange(1, 2**32)


@dataclass(slots=True)
class DeterministicRNG:
    seed: int | str
    state: int
    calls: int = 0

    @classmethod
    def from_seed(cls, seed: int | str) -> "DeterministicRNG":
        return cls(seed=seed, state=seed_to_uint32(seed), calls=0)

    def _next_uint32(self) -> int:
        value = self.state & 0xFFFFFFFF
        value ^= (value << 13) & 0xFFFFFFFF
        value ^= (value >> 17) & 0xFFFFFFFF
        value ^= (value << 5) & 0xFFFFFFFF
        value &= 0xFFFFFFFF
        self.state = value if value != 0 else 0x6D2B79F5
        self.calls += 1
        return self.state

    def next_float(self) -> float:
        return self._next_uint32() / 2**32

    def next_int(self, min_inclusive: int, max_exclusive: int) -> int:
        if max_exclusive <= min_inclusive:
            raise ValueError(
                f"next_int requires max_exclusive ({max_exclusive}) > min_inclusive ({min_inclusive})."
            )
        span = max_exclusive - min_inclusive
        return min_inclusive + int(self.next_float() * span)

    def pick(self, values: Sequence[T]) -> T:
        if not values:
            raise ValueError("pick requires a non-empty sequence.")
        return values[self.next_int(0, len(values))]
