"""Breed genetic profiles: shade, marking and generation bias tables."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from .config import read_document
from .errors import MissingBreedProfile, ProfileValidationError
from .genetics.patterns import DEFAULT_FULLY_WHITE
from .schema import validate_breed_profile

LOGGER = logging.getLogger("equine.profiles")

DEFAULT_SHADE_KEY = "Default"
PROFILE_SUFFIXES = (".yaml", ".yml", ".json", ".jsonc")


def _weights(value: Any) -> Dict[str, float]:
    if not isinstance(value, Mapping):
        return {}
    return {str(key): float(weight) for key, weight in value.items()}


@dataclass(frozen=True)
class MarkingBias:
    face: Dict[str, float] = field(default_factory=dict)
    legs_general_probability: float = 0.0
    max_legs_marked: int = 4
    leg_specific_probabilities: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> Optional["MarkingBias"]:
        if raw is None:
            return None
        return cls(
            face=_weights(raw.get("face")),
            legs_general_probability=float(raw.get("legs_general_probability", 0.0)),
            max_legs_marked=int(raw.get("max_legs_marked", 4)),
            leg_specific_probabilities=_weights(raw.get("leg_specific_probabilities")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "face": dict(self.face),
            "legs_general_probability": self.legs_general_probability,
            "max_legs_marked": self.max_legs_marked,
            "leg_specific_probabilities": dict(self.leg_specific_probabilities),
        }


@dataclass(frozen=True)
class AdvancedMarkingsBias:
    snowflake_probability_multiplier: float = 1.0
    frost_probability_multiplier: float = 1.0
    bloody_shoulder_probability_multiplier: float = 1.0

    def multiplier(self, effect: str) -> float:
        return float(getattr(self, f"{effect}_probability_multiplier"))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "AdvancedMarkingsBias":
        if not raw:
            return cls()
        return cls(
            snowflake_probability_multiplier=float(raw.get("snowflake_probability_multiplier", 1.0)),
            frost_probability_multiplier=float(raw.get("frost_probability_multiplier", 1.0)),
            bloody_shoulder_probability_multiplier=float(
                raw.get("bloody_shoulder_probability_multiplier", 1.0)
            ),
        )

    def as_dict(self) -> Dict[str, float]:
        return {
            "snowflake_probability_multiplier": self.snowflake_probability_multiplier,
            "frost_probability_multiplier": self.frost_probability_multiplier,
            "bloody_shoulder_probability_multiplier": self.bloody_shoulder_probability_multiplier,
        }


@dataclass(frozen=True)
class BreedGeneticProfile:
    """Per-breed probability tables consumed by the resolver and store generator."""

    shade_bias: Dict[str, Dict[str, float]]
    marking_bias: Optional[MarkingBias] = None
    advanced_markings_bias: AdvancedMarkingsBias = field(default_factory=AdvancedMarkingsBias)
    name: Optional[str] = None
    fully_white_alleles: FrozenSet[str] = DEFAULT_FULLY_WHITE
    allele_weights: Dict[str, Dict[str, float]] = field(default_factory=dict)
    disallowed_combinations: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    boolean_modifiers_prevalence: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls,
        raw: Mapping[str, Any] | "BreedGeneticProfile",
        *,
        name: str | None = None,
        source: str | None = None,
        validate: bool = True,
    ) -> "BreedGeneticProfile":
        if isinstance(raw, BreedGeneticProfile):
            return raw
        if not isinstance(raw, Mapping):
            raise ProfileValidationError(
                f"breed profile must be a mapping, got {type(raw).__name__}", source=source
            )
        if validate:
            validate_breed_profile(raw, source=source)
        fully_white = raw.get("fully_white_alleles")
        return cls(
            shade_bias={str(color): _weights(shades) for color, shades in (raw.get("shade_bias") or {}).items()},
            marking_bias=MarkingBias.from_mapping(raw.get("marking_bias")),
            advanced_markings_bias=AdvancedMarkingsBias.from_mapping(raw.get("advanced_markings_bias")),
            name=raw.get("name") or name,
            fully_white_alleles=DEFAULT_FULLY_WHITE if fully_white is None else frozenset(map(str, fully_white)),
            allele_weights={str(locus): _weights(pairs) for locus, pairs in (raw.get("allele_weights") or {}).items()},
            disallowed_combinations={
                str(locus): tuple(str(pair) for pair in pairs)
                for locus, pairs in (raw.get("disallowed_combinations") or {}).items()
            },
            boolean_modifiers_prevalence=_weights(raw.get("boolean_modifiers_prevalence")),
        )

    def shade_table(self, candidates: Iterable[str]) -> Tuple[str, Dict[str, float]]:
        """Return the first bias entry among ``candidates``, then ``Default``."""

        tried: List[str] = []
        for key in [*candidates, DEFAULT_SHADE_KEY]:
            if key in tried:
                continue
            tried.append(key)
            weights = self.shade_bias.get(key)
            if weights:
                return key, weights
        raise MissingBreedProfile("shade_bias", tried, breed=self.name)

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "shade_bias": {color: dict(shades) for color, shades in self.shade_bias.items()},
            "advanced_markings_bias": self.advanced_markings_bias.as_dict(),
        }
        if self.name:
            data["name"] = self.name
        if self.marking_bias is not None:
            data["marking_bias"] = self.marking_bias.as_dict()
        if self.fully_white_alleles != DEFAULT_FULLY_WHITE:
            data["fully_white_alleles"] = sorted(self.fully_white_alleles)
        if self.allele_weights:
            data["allele_weights"] = {locus: dict(pairs) for locus, pairs in self.allele_weights.items()}
        if self.disallowed_combinations:
            data["disallowed_combinations"] = {
                locus: list(pairs) for locus, pairs in self.disallowed_combinations.items()
            }
        if self.boolean_modifiers_prevalence:
            data["boolean_modifiers_prevalence"] = dict(self.boolean_modifiers_prevalence)
        return data


def _profiles_from_document(document: Any, *, source: str, default_name: str) -> Dict[str, BreedGeneticProfile]:
    if not isinstance(document, Mapping):
        raise ProfileValidationError("profile document must contain a mapping", source=source)
    if "shade_bias" in document:
        profile = BreedGeneticProfile.from_mapping(document, name=default_name, source=source)
        return {profile.name or default_name: profile}
    breeds = document.get("breeds", document)
    if not isinstance(breeds, Mapping):
        raise ProfileValidationError("'breeds' must map breed names to profiles", source=source)
    return {
        str(breed): BreedGeneticProfile.from_mapping(raw, name=str(breed), source=f"{source}#{breed}")
        for breed, raw in breeds.items()
    }


def load_breed_profiles(path: Path) -> Dict[str, BreedGeneticProfile]:
    """Load profiles from a YAML/JSON file or a directory of such files.

    A file holds either a single profile (named after the file unless it has
    a ``name``) or a ``breeds`` mapping of name to profile.
    """

    path = Path(path)
    if path.is_dir():
        files = sorted(p for p in path.iterdir() if p.suffix.lower() in PROFILE_SUFFIXES)
    elif path.is_file():
        files = [path]
    else:
        raise FileNotFoundError(f"Breed profile path not found: {path}")

    profiles: Dict[str, BreedGeneticProfile] = {}
    for file in files:
        loaded = _profiles_from_document(read_document(file), source=file.name, default_name=file.stem)
        for breed, profile in loaded.items():
            if breed in profiles:
                LOGGER.warning("breed profile '%s' from %s overrides an earlier definition", breed, file.name)
            profiles[breed] = profile
    LOGGER.info("loaded %d breed profile(s) from %s", len(profiles), path)
    return profiles


def get_profile(profiles: Mapping[str, BreedGeneticProfile], breed: str) -> BreedGeneticProfile:
    try:
        return profiles[breed]
    except KeyError:
        lowered = {name.lower(): profile for name, profile in profiles.items()}
        profile = lowered.get(breed.lower())
        if profile is None:
            raise MissingBreedProfile("breed", sorted(profiles), breed=breed) from None
        return profile


__all__ = [
    "AdvancedMarkingsBias",
    "BreedGeneticProfile",
    "DEFAULT_SHADE_KEY",
    "MarkingBias",
    "get_profile",
    "load_breed_profiles",
]
