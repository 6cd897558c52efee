"""Seedable ChaCha stream generator with eight rounds.

Seeding from a 64-bit integer expands the integer into a 32-byte key with a
PCG32 step. The keystream is read word by word: 64-bit draws take two
consecutive 32-bit words, low word first. Bounded integers are drawn by
widening multiplication with a single bias-reducing correction step.
"""

from __future__ import annotations

import struct
from typing import Iterator, List, Sequence

__all__ = ["ChaCha8Rng"]

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF
_CONSTANTS = (0x61707865, 0x3320646E, 0x79622D32, 0x6B206574)
_ROUNDS = 8
_SEED_LEN = 32

_PCG_MUL = 6364136223846793005
_PCG_INC = 11634580027462260723


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) & _MASK32) | (value >> (32 - shift))


def _quarter_round(x: List[int], a: int, b: int, c: int, d: int) -> None:
    x[a] = (x[a] + x[b]) & _MASK32
    x[d] = _rotl(x[d] ^ x[a], 16)
    x[c] = (x[c] + x[d]) & _MASK32
    x[b] = _rotl(x[b] ^ x[c], 12)
    x[a] = (x[a] + x[b]) & _MASK32
    x[d] = _rotl(x[d] ^ x[a], 8)
    x[c] = (x[c] + x[d]) & _MASK32
    x[b] = _rotl(x[b] ^ x[c], 7)


def _block(key: Sequence[int], counter: int) -> List[int]:
    """One 16-word keystream block for ``counter`` with a zero stream id."""
    state = [*_CONSTANTS, *key, counter & _MASK32, counter >> 32, 0, 0]
    x = list(state)
    for _ in range(_ROUNDS // 2):
        _quarter_round(x, 0, 4, 8, 12)
        _quarter_round(x, 1, 5, 9, 13)
        _quarter_round(x, 2, 6, 10, 14)
        _quarter_round(x, 3, 7, 11, 15)
        _quarter_round(x, 0, 5, 10, 15)
        _quarter_round(x, 1, 6, 11, 12)
        _quarter_round(x, 2, 7, 8, 13)
        _quarter_round(x, 3, 4, 9, 14)
    return [(mixed + original) & _MASK32 for mixed, original in zip(x, state)]


def _pcg32(state: int) -> tuple[int, int]:
    """Advance the PCG state and return ``(new_state, output_word)``."""
    state = (state * _PCG_MUL + _PCG_INC) & _MASK64
    xorshifted = (((state >> 18) ^ state) >> 27) & _MASK32
    rot = state >> 59
    word = ((xorshifted >> rot) | (xorshifted << ((32 - rot) % 32))) & _MASK32
    return state, word


class ChaCha8Rng:
    """Deterministic random generator over the ChaCha8 keystream."""

    def __init__(self, seed: bytes) -> None:
        if len(seed) != _SEED_LEN:
            raise ValueError(f"seed must be {_SEED_LEN} bytes, got {len(seed)}")
        self._key = struct.unpack("<8I", bytes(seed))
        self._words = self._keystream()

    @classmethod
    def seed_from_u64(cls, seed: int) -> "ChaCha8Rng":
        """Create a generator from a 64-bit integer seed."""
        if not 0 <= seed <= _MASK64:
            raise ValueError(f"seed must fit in 64 bits, got {seed}")
        state = seed
        words = []
        for _ in range(_SEED_LEN // 4):
            state, word = _pcg32(state)
            words.append(word)
        return cls(struct.pack("<8I", *words))

    def _keystream(self) -> Iterator[int]:
        counter = 0
        while True:
            yield from _block(self._key, counter)
            counter = (counter + 1) & _MASK64

    def next_u32(self) -> int:
        """The next 32-bit word of the keystream."""
        return next(self._words)

    def next_u64(self) -> int:
        """Two consecutive keystream words, the first as the low half."""
        low = next(self._words)
        high = next(self._words)
        return (high << 32) | low

    def random_range(self, start: int, stop: int) -> int:
        """A uniform 64-bit integer in ``[start, stop)``."""
        if not 0 <= start < stop <= _MASK64 + 1:
            raise ValueError(f"empty or out-of-range interval {start}..{stop}")
        span = (stop - start) & _MASK64
        if span == 0:
            return self.next_u64()
        product = self.next_u64() * span
        result, low_order = product >> 64, product & _MASK64
        if low_order > (-span) & _MASK64:
            new_high = (self.next_u64() * span) >> 64
            if low_order + new_high > _MASK64:
                result += 1
        return start + result