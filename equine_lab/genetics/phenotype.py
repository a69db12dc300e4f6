"""Phenotype assembly.

``resolve`` runs the fixed pipeline: base pigment, dilution cascade, pattern
overlay (Dominant White short-circuit and age-gated Gray included), shade
draw and, unless the horse is white, the marking draw.  All randomness goes
through the injected selector.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from ..config import EngineConfig
from ..profiles import BreedGeneticProfile
from ..randomization import RandomWeightedSelector, WeightedSelectorProtocol
from .dilution import DilutionResult, resolve_dilutions
from .loci import Genotype
from .markings import PhenotypicMarkings, generate_markings
from .patterns import OverlayContext, OverlayResult, resolve_overlay
from .pigment import BasePigment, resolve_base_pigment
from .rules import RuleTable

LOGGER = logging.getLogger("equine.phenotype")


@dataclass(frozen=True)
class PhenotypeResult:
    final_display_color: str
    determined_shade: str
    phenotypic_markings: PhenotypicMarkings
    shade_key: str
    base_pigment: BasePigment
    applied_rules: Tuple[str, ...] = field(default=(), repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final_display_color": self.final_display_color,
            "determined_shade": self.determined_shade,
            "phenotypic_markings": self.phenotypic_markings.to_dict(),
            "shade_key": self.shade_key,
        }


def _check_age(age_years: Any) -> float:
    if isinstance(age_years, bool) or not isinstance(age_years, (int, float)):
        raise TypeError(f"age_years must be a number, got {type(age_years).__name__}")
    age = float(age_years)
    if math.isnan(age) or age < 0:
        raise ValueError(f"age_years must be a non-negative number, got {age_years!r}")
    return age


def _shade_label(shade: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in shade.split())


@dataclass
class PhenotypeEngine:
    """Resolver bound to a configuration, a naming table and a selector."""

    config: EngineConfig = field(default_factory=EngineConfig)
    selector: Optional[WeightedSelectorProtocol] = None
    rule_table: Optional[RuleTable] = None

    def __post_init__(self) -> None:
        if self.selector is None:
            self.selector = RandomWeightedSelector(seed=self.config.seed)
        if self.rule_table is None:
            self.rule_table = self.config.rule_table()

    def resolve(
        self,
        genotype: Mapping[str, Any] | Genotype,
        breed_profile: Mapping[str, Any] | BreedGeneticProfile,
        age_years: float,
        *,
        selector: Optional[WeightedSelectorProtocol] = None,
    ) -> PhenotypeResult:
        age = _check_age(age_years)
        selector = selector or self.selector
        parsed = Genotype.parse(genotype)
        profile = BreedGeneticProfile.from_mapping(breed_profile)

        base = resolve_base_pigment(parsed)
        dilution = resolve_dilutions(parsed, base, self.rule_table)
        overlay = resolve_overlay(
            OverlayContext(
                genotype=parsed,
                dilution=dilution,
                age_years=age,
                selector=selector,
                fully_white_alleles=profile.fully_white_alleles,
                gray_stages=self.config.gray_stages,
            )
        )

        shade_key, weights = profile.shade_table(overlay.shade_keys)
        shade = selector.select(weights)
        display = self._display_name(overlay, shade, shade_key)

        if overlay.short_circuit:
            # white coats carry no face or leg markings, but LP still mottles and stripes
            markings = PhenotypicMarkings(
                mottling=overlay.flags.get("mottling"),
                striping=overlay.flags.get("striping"),
            )
        else:
            markings = generate_markings(
                profile.marking_bias,
                profile.advanced_markings_bias,
                selector,
                age_years=age,
                leopard_complex=bool(overlay.flags.get("mottling")),
                rates=self.config.advanced_rates,
                breed=profile.name,
            )

        LOGGER.debug(
            "resolved %s (shade=%s via %s) for breed %s at age %s",
            display,
            shade,
            shade_key,
            profile.name or "<inline>",
            age,
        )
        return PhenotypeResult(
            final_display_color=display,
            determined_shade=shade,
            phenotypic_markings=markings,
            shade_key=shade_key,
            base_pigment=base,
            applied_rules=dilution.applied_rules + overlay.applied_rules,
        )

    def _display_name(self, overlay: OverlayResult, shade: str, shade_key: str) -> str:
        shades = self.config.shades
        if (
            overlay.short_circuit
            or overlay.is_gray
            or not shades.prefix_display_name
            or shades.is_neutral(shade)
        ):
            return overlay.display_name()
        label = _shade_label(shade)
        if shade_key in overlay.pattern_keys:
            # pattern-keyed shades qualify the pattern suffix
            suffixes = [f"{label} {text}" if text == shade_key else text for text in overlay.suffixes]
            return " ".join([overlay.color, *suffixes])
        return overlay.display_name(f"{label} {overlay.color}")

    def dilute(self, genotype: Mapping[str, Any] | Genotype) -> DilutionResult:
        parsed = Genotype.parse(genotype)
        return resolve_dilutions(parsed, resolve_base_pigment(parsed), self.rule_table)


def resolve(
    genotype: Mapping[str, Any] | Genotype,
    breed_profile: Mapping[str, Any] | BreedGeneticProfile,
    age_years: float,
    selector: Optional[WeightedSelectorProtocol] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> PhenotypeResult:
    """Resolve a genotype into its displayed color, shade and markings."""

    engine = PhenotypeEngine(config=config or EngineConfig(), selector=selector)
    return engine.resolve(genotype, breed_profile, age_years)


__all__ = ["PhenotypeEngine", "PhenotypeResult", "resolve"]
