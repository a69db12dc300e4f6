from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Hashable, List, Mapping, Optional, Protocol, TypeVar

from .errors import InvalidWeightMap

K = TypeVar("K", bound=Hashable)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp01(value: float) -> float:
    return clamp(float(value), 0.0, 1.0)


class WeightedSelectorProtocol(Protocol):
    def select(self, weights: Mapping[K, float]) -> K:
        """Return one key of ``weights`` with probability weight / total."""


def validate_weights(weights: Mapping[K, float]) -> tuple[List[K], List[float]]:
    """Split a weight map into parallel key/weight lists, rejecting bad maps."""

    if not isinstance(weights, Mapping):
        raise InvalidWeightMap(f"expected a mapping, got {type(weights).__name__}", weights)
    if not weights:
        raise InvalidWeightMap("no outcomes", weights)
    keys: List[K] = []
    values: List[float] = []
    for key, raw in weights.items():
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise InvalidWeightMap(f"weight for {key!r} is not a number: {raw!r}", weights)
        value = float(raw)
        if math.isnan(value) or value < 0 or math.isinf(value):
            raise InvalidWeightMap(f"weight for {key!r} must be finite and non-negative", weights)
        keys.append(key)
        values.append(value)
    if sum(values) <= 0:
        raise InvalidWeightMap("all weights are zero", weights)
    return keys, values


@dataclass(slots=True)
class RandomWeightedSelector:
    """Weighted selector backed by a private :class:`random.Random`.

    Each instance owns its generator, so one selector per worker keeps
    concurrent resolutions independent.
    """

    seed: Optional[int] = None
    rng: Optional[random.Random] = None
    _random: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._random = self.rng if self.rng is not None else random.Random(self.seed)

    def select(self, weights: Mapping[K, float]) -> K:
        keys, values = validate_weights(weights)
        if len(keys) == 1:
            return keys[0]
        return self._random.choices(keys, weights=values, k=1)[0]


def roll(selector: WeightedSelectorProtocol, probability: float) -> bool:
    """Bernoulli trial expressed as a two-outcome weight map."""

    p = clamp01(probability)
    return bool(selector.select({True: p, False: 1.0 - p}))


__all__ = [
    "RandomWeightedSelector",
    "WeightedSelectorProtocol",
    "clamp",
    "clamp01",
    "roll",
    "validate_weights",
]
