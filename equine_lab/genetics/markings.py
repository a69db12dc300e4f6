"""Face, leg and leopard-complex marking draws."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from ..errors import MissingBreedProfile, PhenotypeError
from ..randomization import WeightedSelectorProtocol, clamp01, roll

if TYPE_CHECKING:
    from ..profiles import AdvancedMarkingsBias, MarkingBias

LOGGER = logging.getLogger("equine.markings")

LEG_ORDER: Tuple[str, ...] = ("LF", "RF", "LH", "RH")
NO_MARKING = "none"
ADVANCED_EFFECTS: Tuple[str, ...] = ("snowflake", "frost", "bloody_shoulder")


@dataclass(frozen=True)
class AdvancedRate:
    max_age: Optional[float]
    snowflake: float
    frost: float
    bloody_shoulder: float

    def rate(self, effect: str) -> float:
        return float(getattr(self, effect))


@dataclass(frozen=True)
class AdvancedRateTable:
    """Intrinsic per-age probabilities of the leopard-complex secondary effects."""

    rows: Tuple[AdvancedRate, ...]

    def __post_init__(self) -> None:
        if not self.rows or self.rows[-1].max_age is not None:
            raise PhenotypeError("advanced marking rates need a final open-ended row (max_age: null)")

    def row_for(self, age: float) -> AdvancedRate:
        for row in self.rows:
            if row.max_age is None or age <= row.max_age:
                return row
        return self.rows[-1]

    def rate_for(self, effect: str, age: float) -> float:
        if effect not in ADVANCED_EFFECTS:
            raise KeyError(effect)
        return self.row_for(age).rate(effect)

    @classmethod
    def from_mapping(cls, raw: Any) -> "AdvancedRateTable":
        if isinstance(raw, AdvancedRateTable):
            return raw
        rows_raw = raw.get("base_rates", []) if isinstance(raw, Mapping) else raw
        rows = []
        for row in rows_raw or []:
            if not isinstance(row, Mapping):
                raise PhenotypeError(f"invalid advanced marking rate entry: {row!r}")
            max_age = row.get("max_age")
            rows.append(
                AdvancedRate(
                    max_age=None if max_age is None else float(max_age),
                    snowflake=clamp01(float(row.get("snowflake", 0.0))),
                    frost=clamp01(float(row.get("frost", 0.0))),
                    bloody_shoulder=clamp01(float(row.get("bloody_shoulder", 0.0))),
                )
            )
        return cls(rows=tuple(rows))


DEFAULT_ADVANCED_RATES = AdvancedRateTable(
    rows=(
        AdvancedRate(4, snowflake=0.15, frost=0.10, bloody_shoulder=0.001),
        AdvancedRate(8, snowflake=0.30, frost=0.25, bloody_shoulder=0.002),
        AdvancedRate(None, snowflake=0.45, frost=0.40, bloody_shoulder=0.004),
    )
)


@dataclass(frozen=True)
class PhenotypicMarkings:
    face: str = NO_MARKING
    legs: Tuple[str, ...] = (NO_MARKING,) * len(LEG_ORDER)
    mottling: Optional[bool] = None
    striping: Optional[bool] = None
    snowflake: Optional[bool] = None
    frost: Optional[bool] = None
    bloody_shoulder: Optional[bool] = None

    @property
    def legs_by_position(self) -> Dict[str, str]:
        return dict(zip(LEG_ORDER, self.legs))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"face": self.face, "legs": list(self.legs)}
        for flag in ("mottling", "striping", *ADVANCED_EFFECTS):
            value = getattr(self, flag)
            if value is not None:
                data[flag] = value
        return data


def draw_legs(bias: "MarkingBias", selector: WeightedSelectorProtocol, *, breed: str | None = None) -> List[str]:
    probability = clamp01(bias.legs_general_probability)
    if probability <= 0.0 or bias.max_legs_marked <= 0:
        return [NO_MARKING] * len(LEG_ORDER)
    if not bias.leg_specific_probabilities:
        raise MissingBreedProfile("marking_bias.leg_specific_probabilities", breed=breed)

    legs: List[str] = []
    marked = 0
    for position in LEG_ORDER:
        if marked >= bias.max_legs_marked or not roll(selector, probability):
            legs.append(NO_MARKING)
            continue
        marking = selector.select(bias.leg_specific_probabilities)
        if marking != NO_MARKING:
            marked += 1
        LOGGER.debug("leg %s marked %s", position, marking)
        legs.append(marking)
    return legs


def draw_advanced(
    bias: "AdvancedMarkingsBias",
    selector: WeightedSelectorProtocol,
    *,
    age_years: float,
    rates: AdvancedRateTable = DEFAULT_ADVANCED_RATES,
) -> Dict[str, bool]:
    results: Dict[str, bool] = {}
    for effect in ADVANCED_EFFECTS:
        multiplier = bias.multiplier(effect)
        probability = clamp01(rates.rate_for(effect, age_years) * multiplier)
        results[effect] = probability > 0.0 and roll(selector, probability)
    return results


def generate_markings(
    marking_bias: Optional["MarkingBias"],
    advanced_bias: "AdvancedMarkingsBias",
    selector: WeightedSelectorProtocol,
    *,
    age_years: float,
    leopard_complex: bool = False,
    rates: AdvancedRateTable = DEFAULT_ADVANCED_RATES,
    breed: str | None = None,
) -> PhenotypicMarkings:
    if marking_bias is None or not marking_bias.face:
        raise MissingBreedProfile("marking_bias.face", breed=breed)

    face = selector.select(marking_bias.face)
    legs = tuple(draw_legs(marking_bias, selector, breed=breed))
    if not leopard_complex:
        return PhenotypicMarkings(face=face, legs=legs)
    advanced = draw_advanced(advanced_bias, selector, age_years=age_years, rates=rates)
    return PhenotypicMarkings(face=face, legs=legs, mottling=True, striping=True, **advanced)


__all__ = [
    "ADVANCED_EFFECTS",
    "AdvancedRate",
    "AdvancedRateTable",
    "DEFAULT_ADVANCED_RATES",
    "LEG_ORDER",
    "NO_MARKING",
    "PhenotypicMarkings",
    "draw_advanced",
    "draw_legs",
    "generate_markings",
]
