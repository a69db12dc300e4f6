"""Locus catalog and genotype parsing.

Every locus declares its allele alphabet, the pair assumed when a genotype
omits it, and how its allele pairs resolve.  Genotypes referencing loci or
alleles outside the catalog are rejected instead of being ignored.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Sequence, Tuple

from ..errors import UnknownLocus

AllelePair = Tuple[str, str]


class Dominance(str, Enum):
    """How the two alleles of a locus combine into a phenotype."""

    DOMINANT = "dominant"
    RECESSIVE = "recessive"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class LocusSpec:
    key: str
    alleles: Tuple[str, ...]
    default: AllelePair
    dominance: Dominance
    aliases: Mapping[str, str] = field(default_factory=dict)
    key_aliases: Tuple[str, ...] = ()
    description: str = ""

    def canonical(self, allele: str) -> str:
        token = str(allele).strip()
        if token in self.alleles:
            return token
        mapped = self.aliases.get(token)
        if mapped is not None:
            return mapped
        raise UnknownLocus(self.key, token)

    def parse(self, value: Any) -> AllelePair:
        if isinstance(value, str):
            parts = value.split("/")
        elif isinstance(value, Sequence):
            parts = list(value)
        else:
            raise UnknownLocus(self.key, value=value)
        if len(parts) != 2 or not all(isinstance(p, str) and p.strip() for p in parts):
            raise UnknownLocus(self.key, value=value)
        return self.canonical(parts[0]), self.canonical(parts[1])


@dataclass(frozen=True)
class ModifierSpec:
    key: str
    description: str = ""


def _numbered(prefix: str, count: int) -> Tuple[str, ...]:
    return tuple(f"{prefix}{index}" for index in range(1, count + 1))


_WILD_N = {"N": "n"}

DOMINANT_WHITE_ALLELES: Tuple[str, ...] = ("W",) + _numbered("W", 39)
MINIMAL_WHITE_ALLELES: Tuple[str, ...] = ("W20",)

DEFAULT_LOCI: Mapping[str, LocusSpec] = MappingProxyType(
    {
        spec.key: spec
        for spec in (
            LocusSpec("E_Extension", ("E", "e"), ("E", "E"), Dominance.DOMINANT,
                      description="Extension; e/e blocks black pigment"),
            LocusSpec("A_Agouti", ("A", "At", "a"), ("a", "a"), Dominance.DOMINANT,
                      description="Agouti; restricts black pigment to the points"),
            LocusSpec("Cr_Cream", ("Cr", "n"), ("n", "n"), Dominance.INCOMPLETE,
                      aliases={**_WILD_N, "cr": "Cr", "CR": "Cr"}),
            LocusSpec("D_Dun", ("D", "nd1", "nd2", "n"), ("nd2", "nd2"), Dominance.DOMINANT,
                      aliases=_WILD_N),
            LocusSpec("CH_Champagne", ("Ch", "n"), ("n", "n"), Dominance.DOMINANT,
                      aliases={**_WILD_N, "CH": "Ch", "ch": "Ch"}, key_aliases=("Ch_Champagne",)),
            LocusSpec("Z_Silver", ("Z", "n"), ("n", "n"), Dominance.DOMINANT, aliases=_WILD_N),
            LocusSpec("PRL_Pearl", ("prl", "n"), ("n", "n"), Dominance.INCOMPLETE,
                      aliases={**_WILD_N, "Prl": "prl", "PRL": "prl"}, key_aliases=("Prl_Pearl",)),
            LocusSpec("MFSD12_Mushroom", ("Mu", "n"), ("n", "n"), Dominance.RECESSIVE,
                      aliases={**_WILD_N, "mu": "Mu"}),
            LocusSpec("W_DominantWhite", ("w",) + DOMINANT_WHITE_ALLELES, ("w", "w"), Dominance.DOMINANT,
                      aliases={"n": "w", "N": "w"}),
            LocusSpec("LP_LeopardComplex", ("LP", "lp"), ("lp", "lp"), Dominance.INCOMPLETE,
                      aliases={"n": "lp", "N": "lp"}),
            LocusSpec("PATN1_Pattern1", ("PATN1", "n"), ("n", "n"), Dominance.DOMINANT,
                      aliases={**_WILD_N, "patn1": "n"}),
            LocusSpec("TO_Tobiano", ("TO", "to"), ("to", "to"), Dominance.DOMINANT,
                      aliases={"n": "to", "N": "to"}),
            LocusSpec("Rn_Roan", ("Rn", "rn"), ("rn", "rn"), Dominance.DOMINANT,
                      aliases={"n": "rn", "N": "rn", "RN": "Rn"}),
            LocusSpec("G_Gray", ("G", "g"), ("g", "g"), Dominance.DOMINANT,
                      aliases={"n": "g", "N": "g"}),
            LocusSpec("O_FrameOvero", ("O", "n"), ("n", "n"), Dominance.DOMINANT, aliases=_WILD_N),
            LocusSpec("SB1_Sabino1", ("SB1", "n"), ("n", "n"), Dominance.INCOMPLETE, aliases=_WILD_N),
            LocusSpec("SW_SplashWhite", _numbered("SW", 10) + ("n",), ("n", "n"), Dominance.DOMINANT,
                      aliases=_WILD_N),
            LocusSpec("EDXW", _numbered("EDXW", 3) + ("n",), ("n", "n"), Dominance.DOMINANT,
                      aliases=_WILD_N),
        )
    }
)

DEFAULT_MODIFIERS: Mapping[str, ModifierSpec] = MappingProxyType(
    {
        spec.key: spec
        for spec in (
            ModifierSpec("sooty", "dark hairs over the body coat"),
            ModifierSpec("flaxen", "lightened mane and tail on red coats"),
            ModifierSpec("pangare", "mealy light areas on muzzle and belly"),
            ModifierSpec("rabicano", "white ticking on flanks and tail head"),
        )
    }
)


def _key_index(catalog: Mapping[str, LocusSpec]) -> Dict[str, LocusSpec]:
    index: Dict[str, LocusSpec] = {}
    for spec in catalog.values():
        index[spec.key] = spec
        for alias in spec.key_aliases:
            index[alias] = spec
    return index


def _coerce_flag(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise UnknownLocus(key, value=value)


@dataclass(frozen=True)
class Genotype:
    """Validated, read-only view over a horse's genotype mapping."""

    pairs: Mapping[str, AllelePair]
    modifiers: Mapping[str, bool]
    catalog: Mapping[str, LocusSpec] = field(default_factory=lambda: DEFAULT_LOCI, repr=False)

    @classmethod
    def parse(
        cls,
        raw: Mapping[str, Any] | "Genotype",
        *,
        catalog: Mapping[str, LocusSpec] = DEFAULT_LOCI,
        modifiers: Mapping[str, ModifierSpec] = DEFAULT_MODIFIERS,
    ) -> "Genotype":
        if isinstance(raw, Genotype):
            return raw
        index = _key_index(catalog)
        pairs: Dict[str, AllelePair] = {}
        flags: Dict[str, bool] = {}
        for key, value in (raw or {}).items():
            if key in modifiers:
                flags[key] = _coerce_flag(key, value)
                continue
            spec = index.get(key)
            if spec is None:
                raise UnknownLocus(str(key))
            pairs[spec.key] = spec.parse(value)
        return cls(
            pairs=MappingProxyType(pairs),
            modifiers=MappingProxyType(flags),
            catalog=catalog,
        )

    def alleles(self, locus: str) -> AllelePair:
        pair = self.pairs.get(locus)
        if pair is not None:
            return pair
        spec = self.catalog.get(locus)
        if spec is None:
            raise UnknownLocus(locus)
        return spec.default

    def dose(self, locus: str, allele: str) -> int:
        return sum(1 for value in self.alleles(locus) if value == allele)

    def has(self, locus: str, allele: str) -> bool:
        return allele in self.alleles(locus)

    def has_any(self, locus: str, alleles: Iterable[str]) -> bool:
        wanted = set(alleles)
        return any(value in wanted for value in self.alleles(locus))

    def matching(self, locus: str, alleles: Iterable[str]) -> Tuple[str, ...]:
        wanted = set(alleles)
        seen: list[str] = []
        for value in self.alleles(locus):
            if value in wanted and value not in seen:
                seen.append(value)
        return tuple(seen)

    def is_homozygous(self, locus: str, allele: str) -> bool:
        return self.dose(locus, allele) == 2

    def expression(self, locus: str, allele: str) -> int:
        """Phenotypic strength of ``allele`` under the locus dominance.

        Dominant loci express at 1 with one or two copies, recessive loci only
        with two, and incomplete loci report the dose itself (0, 1 or 2).
        """

        dose = self.dose(locus, allele)
        dominance = self.catalog[locus].dominance
        if dominance is Dominance.INCOMPLETE:
            return dose
        if dominance is Dominance.RECESSIVE:
            return 1 if dose == 2 else 0
        return 1 if dose else 0

    def modifier(self, name: str) -> bool:
        return bool(self.modifiers.get(name, False))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {key: "/".join(pair) for key, pair in self.pairs.items()}
        data.update(self.modifiers)
        return data


__all__ = [
    "AllelePair",
    "DEFAULT_LOCI",
    "DEFAULT_MODIFIERS",
    "DOMINANT_WHITE_ALLELES",
    "MINIMAL_WHITE_ALLELES",
    "Dominance",
    "Genotype",
    "LocusSpec",
    "ModifierSpec",
]
