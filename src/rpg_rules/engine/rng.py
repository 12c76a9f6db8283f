"""Seeded pseudo-random number generation with an audit roll log.

All randomness in the rules core comes from SeededRng, a mulberry32
generator over 32-bit state. Every draw is appended to an ordered roll
log (index, label, value, metadata); replaying the same seed against the
same inputs reproduces the log and the outcome exactly.

Sub-seeds are derived from a parent seed and a label with a keyed hash,
so independent streams (one per loot item, for example) never share a
sub-seed as long as their labels differ.

Example:
    >>> rng = SeededRng(42)
    >>> value = rng.next_float("hit", attacker="a")
    >>> rng.roll_log[0].label
    'hit'
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from rpg_rules.core.constants import MULBERRY32_INCREMENT, UINT32_MASK, UINT32_RANGE
from rpg_rules.core.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RollRecord:
    """One logged draw.

    Attributes:
        index: Position of the draw in the generator's sequence.
        label: Caller-supplied purpose of the draw (e.g., 'a:strike:hit').
        value: The float drawn, in [0, 1).
        metadata: Optional caller context.
    """

    index: int
    label: str
    value: float
    metadata: dict[str, Any] = field(default_factory=dict)


def _imul(a: int, b: int) -> int:
    return (a * b) & UINT32_MASK


def normalize_seed(seed: int | float | str) -> int:
    """Coerce a seed into an unsigned 32-bit integer.

    Strings are hashed; numbers are truncated and masked; anything that
    cannot be converted becomes 0.

    Args:
        seed: Raw seed value.

    Returns:
        Seed in [0, 2**32).
    """
    if isinstance(seed, str):
        return int.from_bytes(hashlib.blake2b(seed.encode("utf-8"), digest_size=4).digest(), "big")
    try:
        value = int(seed)
    except (TypeError, ValueError, OverflowError):
        return 0
    return value & UINT32_MASK


def derive_seed(seed: int | float | str, label: str) -> int:
    """Derive an independent 32-bit sub-seed from a seed and a label.

    Args:
        seed: Parent seed.
        label: Purpose of the sub-stream (e.g., 'loot:3').

    Returns:
        Sub-seed in [0, 2**32).
    """
    payload = f"{normalize_seed(seed)}:{label}".encode("utf-8")
    return int.from_bytes(hashlib.blake2b(payload, digest_size=4).digest(), "big")


class SeededRng:
    """Deterministic mulberry32 generator with an append-only roll log.

    Instances are cheap and meant to be owned by a single operation;
    they hold mutable state and are not shared between call sites.
    """

    def __init__(self, seed: int | float | str) -> None:
        """Initialize the generator.

        Args:
            seed: Integer seed; other types are normalized.
        """
        self._seed = normalize_seed(seed)
        self._state = self._seed
        self._log: list[RollRecord] = []

    @property
    def seed(self) -> int:
        """Normalized seed the generator started from."""
        return self._seed

    @property
    def roll_log(self) -> tuple[RollRecord, ...]:
        """Every draw made so far, in order."""
        return tuple(self._log)

    @property
    def draws(self) -> int:
        """Number of draws made so far."""
        return len(self._log)

    def _next_raw(self) -> float:
        self._state = (self._state + MULBERRY32_INCREMENT) & UINT32_MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t = ((t + _imul(t ^ (t >> 7), t | 61)) & UINT32_MASK) ^ t
        return ((t ^ (t >> 14)) & UINT32_MASK) / UINT32_RANGE

    def next_float(self, label: str = "roll", **metadata: Any) -> float:
        """Draw the next float in [0, 1) and log it.

        Args:
            label: Purpose of the draw.
            **metadata: Extra context stored with the record.

        Returns:
            The drawn value.
        """
        value = self._next_raw()
        self._log.append(RollRecord(index=len(self._log), label=label, value=value, metadata=metadata))
        return value

    def chance(self, probability: float, label: str = "chance", **metadata: Any) -> bool:
        """Draw once and succeed when the value falls below a probability."""
        return self.next_float(label, probability=probability, **metadata) < probability

    def uniform(self, low: float, high: float, label: str = "uniform", **metadata: Any) -> float:
        """Draw a float in [low, high)."""
        return low + (high - low) * self.next_float(label, **metadata)

    def randint(self, low: int, high: int, label: str = "randint", **metadata: Any) -> int:
        """Draw an integer in [low, high], both inclusive.

        Args:
            low: Smallest value.
            high: Largest value.
            label: Purpose of the draw.
            **metadata: Extra context stored with the record.

        Returns:
            The drawn integer; ``low`` if the range is empty.
        """
        if high <= low:
            return low
        span = high - low + 1
        return low + min(span - 1, int(self.next_float(label, **metadata) * span))

    def pick(self, options: Sequence[T], label: str = "pick", **metadata: Any) -> T:
        """Pick one element uniformly.

        Raises:
            IndexError: If ``options`` is empty.
        """
        if not options:
            raise IndexError("cannot pick from an empty sequence")
        return options[self.randint(0, len(options) - 1, label, **metadata)]

    def weighted_pick(
        self,
        weighted: Sequence[tuple[T, float]],
        label: str = "weighted_pick",
        **metadata: Any,
    ) -> T:
        """Pick an option from cumulative weight buckets.

        The draw is scaled onto the total weight and the first bucket whose
        cumulative upper bound lies above it wins. Zero and negative weights
        never win; ties fall to declaration order.

        Args:
            weighted: (option, weight) pairs in declaration order.
            label: Purpose of the draw.
            **metadata: Extra context stored with the record.

        Returns:
            The chosen option.

        Raises:
            IndexError: If no option has positive weight.
        """
        positive = [(option, float(weight)) for option, weight in weighted if weight > 0]
        if not positive:
            raise IndexError("weighted_pick needs at least one positive weight")

        total = sum(weight for _, weight in positive)
        target = self.next_float(label, **metadata) * total
        cursor = 0.0
        for option, weight in positive:
            cursor += weight
            if target < cursor:
                return option
        return positive[-1][0]

    def fork(self, label: str) -> SeededRng:
        """Create an independent child generator with its own roll log."""
        child = SeededRng(derive_seed(self._seed, label))
        logger.debug("rng forked", parent_seed=self._seed, child_seed=child.seed, label=label)
        return child


def seeded_float(seed: int | float | str, label: str) -> float:
    """Draw a single float from the sub-stream of ``(seed, label)``."""
    return SeededRng(derive_seed(seed, label)).next_float(label)


__all__ = [
    "RollRecord",
    "SeededRng",
    "normalize_seed",
    "derive_seed",
    "seeded_float",
]
