"""Fresh genotypes for store horses, drawn from a breed's allele weights."""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from ..config import DEFAULT_STORE_ATTEMPTS
from ..errors import InvalidWeightMap, UnknownLocus
from ..profiles import BreedGeneticProfile
from ..randomization import RandomWeightedSelector, WeightedSelectorProtocol, roll
from .loci import DEFAULT_LOCI, DEFAULT_MODIFIERS, AllelePair, Genotype, LocusSpec

LOGGER = logging.getLogger("equine.store")


def _locus_spec(locus: str, catalog: Mapping[str, LocusSpec]) -> LocusSpec:
    spec = catalog.get(locus)
    if spec is not None:
        return spec
    for candidate in catalog.values():
        if locus in candidate.key_aliases:
            return candidate
    raise UnknownLocus(locus)


def _pair_key(pair: AllelePair) -> AllelePair:
    return tuple(sorted(pair))  # type: ignore[return-value]


def draw_locus(
    spec: LocusSpec,
    weights: Mapping[str, float],
    disallowed: tuple[str, ...],
    selector: WeightedSelectorProtocol,
    *,
    max_attempts: int = DEFAULT_STORE_ATTEMPTS,
) -> str:
    """Draw one allele pair, redrawing when it lands on a disallowed combination."""

    blocked = {_pair_key(spec.parse(pair)) for pair in disallowed}
    for _ in range(max(1, max_attempts)):
        choice = selector.select(weights)
        if _pair_key(spec.parse(choice)) not in blocked:
            return choice
        LOGGER.debug("redrawing disallowed pair %s for %s", choice, spec.key)

    allowed = {
        pair: weight for pair, weight in weights.items() if _pair_key(spec.parse(pair)) not in blocked
    }
    if not allowed:
        raise InvalidWeightMap(f"every weighted pair for {spec.key} is disallowed", weights)
    LOGGER.warning("falling back to allowed pairs for %s after %d attempts", spec.key, max_attempts)
    return selector.select(allowed)


def generate_store_genotype(
    profile: Mapping[str, Any] | BreedGeneticProfile,
    selector: Optional[WeightedSelectorProtocol] = None,
    *,
    max_attempts: int = DEFAULT_STORE_ATTEMPTS,
    catalog: Mapping[str, LocusSpec] = DEFAULT_LOCI,
) -> Dict[str, Any]:
    """Sample a genotype mapping: one pair per weighted locus plus modifier rolls."""

    profile = BreedGeneticProfile.from_mapping(profile)
    selector = selector or RandomWeightedSelector()
    genotype: Dict[str, Any] = {}

    for locus, weights in profile.allele_weights.items():
        spec = _locus_spec(locus, catalog)
        genotype[spec.key] = draw_locus(
            spec,
            weights,
            profile.disallowed_combinations.get(locus, ()),
            selector,
            max_attempts=max_attempts,
        )

    for modifier, prevalence in profile.boolean_modifiers_prevalence.items():
        if modifier not in DEFAULT_MODIFIERS:
            raise UnknownLocus(modifier)
        genotype[modifier] = roll(selector, prevalence)

    # Validate the assembled mapping the same way resolution will.
    Genotype.parse(genotype, catalog=catalog)
    LOGGER.debug("generated store genotype for %s: %s", profile.name or "<inline>", genotype)
    return genotype


__all__ = ["draw_locus", "generate_store_genotype"]
