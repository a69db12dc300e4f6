"""Pattern overlay: white, leopard complex, pinto patterns, roan and gray.

The overlay is an ordered tuple of rule objects.  Dominant White is terminal;
every other rule edits the running color or appends a pattern suffix.  Gray is
the only age-dependent rule and reads its stage from :class:`GrayStageTable`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..errors import PhenotypeError
from ..randomization import WeightedSelectorProtocol
from .dilution import DilutionResult
from .loci import DOMINANT_WHITE_ALLELES, MINIMAL_WHITE_ALLELES, Genotype
from .pigment import BasePigment

LOGGER = logging.getLogger("equine.patterns")

# Other W alleles show as a "Dominant White" descriptor unless a breed lists them.
DEFAULT_FULLY_WHITE: FrozenSet[str] = frozenset({"W13"})

UNDERLYING_LEOPARD_PATTERNS: Mapping[str, float] = {
    "Blanket Appaloosa": 1.0,
    "Varnish Roan Appaloosa": 1.0,
}

ROAN_DESCRIPTORS: Mapping[str, str] = {
    BasePigment.CHESTNUT.value: "Red Roan",
    BasePigment.BAY.value: "Bay Roan",
    BasePigment.BLACK.value: "Blue Roan",
}


# --- Gray staging -----------------------------------------------------------------


@dataclass(frozen=True)
class GrayStage:
    """One row of the gray progression: ages up to ``max_age`` show ``label``."""

    max_age: Optional[float]
    label: str
    toned: bool = True

    def covers(self, age: float) -> bool:
        return self.max_age is None or age <= self.max_age


@dataclass(frozen=True)
class GrayStageTable:
    stages: Tuple[GrayStage, ...]
    tones: Mapping[str, str] = field(
        default_factory=lambda: {
            BasePigment.CHESTNUT.value: "Rose",
            BasePigment.BAY.value: "Steel",
            BasePigment.BLACK.value: "Steel",
        }
    )

    def __post_init__(self) -> None:
        if not self.stages:
            raise PhenotypeError("gray stage table is empty")
        bounds = [stage.max_age for stage in self.stages]
        if bounds[-1] is not None:
            raise PhenotypeError("last gray stage must be open-ended (max_age: null)")
        finite = [value for value in bounds[:-1] if value is not None]
        if len(finite) != len(bounds) - 1 or finite != sorted(finite):
            raise PhenotypeError("gray stages must be ordered by ascending max_age")

    def stage_for(self, age: float) -> GrayStage:
        for stage in self.stages:
            if stage.covers(age):
                return stage
        return self.stages[-1]

    def name_for(self, age: float, base: BasePigment) -> Tuple[str, GrayStage]:
        stage = self.stage_for(age)
        tone = self.tones.get(base.value, "") if stage.toned else ""
        name = f"{tone} {stage.label}".strip()
        return name, stage

    @classmethod
    def from_mapping(cls, raw: Any) -> "GrayStageTable":
        if isinstance(raw, GrayStageTable):
            return raw
        if isinstance(raw, Mapping):
            rows = raw.get("stages", [])
            tones = raw.get("tones")
        else:
            rows, tones = raw, None
        stages = []
        for row in rows or []:
            if not isinstance(row, Mapping) or not isinstance(row.get("label"), str):
                raise PhenotypeError(f"invalid gray stage entry: {row!r}")
            max_age = row.get("max_age")
            stages.append(
                GrayStage(
                    max_age=None if max_age is None else float(max_age),
                    label=row["label"],
                    toned=bool(row.get("toned", True)),
                )
            )
        if tones is None:
            return cls(stages=tuple(stages))
        return cls(stages=tuple(stages), tones={str(k): str(v) for k, v in dict(tones).items()})


DEFAULT_GRAY_STAGES = GrayStageTable(
    stages=(
        GrayStage(3, "Gray"),
        GrayStage(6, "Dark Dapple Gray"),
        GrayStage(9, "Light Dapple Gray"),
        GrayStage(12, "White Gray", toned=False),
        GrayStage(None, "Fleabitten Gray", toned=False),
    )
)


# --- Overlay state ----------------------------------------------------------------


@dataclass(frozen=True)
class OverlayContext:
    genotype: Genotype
    dilution: DilutionResult
    age_years: float
    selector: WeightedSelectorProtocol
    fully_white_alleles: FrozenSet[str] = DEFAULT_FULLY_WHITE
    gray_stages: GrayStageTable = DEFAULT_GRAY_STAGES


@dataclass
class OverlayState:
    color: str
    color_keys: List[str]
    suffixes: List[Tuple[str, bool]] = field(default_factory=list)
    pattern_keys: List[str] = field(default_factory=list)
    gray_keys: List[str] = field(default_factory=list)
    flags: Dict[str, bool] = field(default_factory=dict)
    applied: List[str] = field(default_factory=list)
    gray_stage: Optional[str] = None
    terminal: bool = False

    def add_suffix(self, text: str, *, affects_shade: bool = False) -> None:
        if all(existing != text for existing, _ in self.suffixes):
            self.suffixes.append((text, affects_shade))


@dataclass(frozen=True)
class OverlayResult:
    color: str
    suffixes: Tuple[str, ...]
    shade_keys: Tuple[str, ...]
    flags: Mapping[str, bool]
    short_circuit: bool
    gray_stage: Optional[str]
    applied_rules: Tuple[str, ...]
    pattern_keys: Tuple[str, ...] = ()

    @property
    def is_gray(self) -> bool:
        return self.gray_stage is not None

    def display_name(self, color: Optional[str] = None) -> str:
        parts = [color or self.color, *self.suffixes]
        return " ".join(part for part in parts if part)


# --- Rules ------------------------------------------------------------------------


@dataclass(frozen=True)
class PatternRule:
    tag: str

    def apply(self, state: OverlayState, context: OverlayContext) -> bool:
        """Mutate ``state``; return True when the rule fired."""

        raise NotImplementedError


@dataclass(frozen=True)
class DominantWhiteRule(PatternRule):
    tag: str = "dominant_white"

    def apply(self, state: OverlayState, context: OverlayContext) -> bool:
        hits = context.genotype.matching("W_DominantWhite", context.fully_white_alleles)
        if not hits:
            return False
        state.color = "White"
        state.color_keys = ["White", "Dominant White"]
        state.suffixes.clear()
        state.pattern_keys.clear()
        if context.genotype.expression("LP_LeopardComplex", "LP"):
            state.flags["mottling"] = True
            state.flags["striping"] = True
        state.terminal = True
        return True


@dataclass(frozen=True)
class WhiteDescriptorRule(PatternRule):
    """Dominant-white alleles outside the breed's fully-white set."""

    tag: str = "white_descriptor"

    def apply(self, state: OverlayState, context: OverlayContext) -> bool:
        alleles = context.genotype.matching("W_DominantWhite", DOMINANT_WHITE_ALLELES)
        if not alleles:
            return False
        for allele in alleles:
            if allele in MINIMAL_WHITE_ALLELES:
                state.add_suffix("Minimal White")
            else:
                state.add_suffix("Dominant White")
        return True


@dataclass(frozen=True)
class LeopardRule(PatternRule):
    tag: str = "leopard_complex"

    def apply(self, state: OverlayState, context: OverlayContext) -> bool:
        genotype = context.genotype
        dose = genotype.expression("LP_LeopardComplex", "LP")
        if dose == 0:
            return False
        state.flags["mottling"] = True
        state.flags["striping"] = True
        has_patn1 = genotype.has("PATN1_Pattern1", "PATN1")
        if dose == 2:
            pattern = "Fewspot Leopard Appaloosa" if has_patn1 else "Snowcap Appaloosa"
        elif has_patn1:
            pattern = "Leopard Appaloosa"
        else:
            pattern = context.selector.select(UNDERLYING_LEOPARD_PATTERNS)
        state.add_suffix(pattern, affects_shade=True)
        state.pattern_keys.append(pattern)
        return True


@dataclass(frozen=True)
class LocusSuffixRule(PatternRule):
    """Appends ``template`` for each matching allele; pinto patterns never key shades."""

    locus: str = ""
    alleles: Tuple[str, ...] = ()
    template: str = ""
    exclude_pairs: Tuple[Tuple[str, str], ...] = ()

    def apply(self, state: OverlayState, context: OverlayContext) -> bool:
        genotype = context.genotype
        if tuple(sorted(genotype.alleles(self.locus))) in self.exclude_pairs:
            return False
        hits = genotype.matching(self.locus, self.alleles)
        for allele in hits:
            state.add_suffix(self.template.format(allele=allele, index=allele.lstrip("ABCDEFGHIJKLMNOPQRSTUVWXYZ")))
        return bool(hits)


@dataclass(frozen=True)
class ModifierSuffixRule(PatternRule):
    modifier: str = ""
    text: str = ""
    hidden_by_gray: bool = False

    def apply(self, state: OverlayState, context: OverlayContext) -> bool:
        if not context.genotype.modifier(self.modifier):
            return False
        if self.hidden_by_gray and state.gray_stage is not None:
            return False
        state.add_suffix(self.text)
        return True


@dataclass(frozen=True)
class RoanRule(PatternRule):
    tag: str = "roan"

    def apply(self, state: OverlayState, context: OverlayContext) -> bool:
        if not context.genotype.has("Rn_Roan", "Rn"):
            return False
        dilution = context.dilution
        base = dilution.base.value
        descriptor = ROAN_DESCRIPTORS[base]
        if dilution.core_name == base and dilution.modifier_prefixes is not None:
            # undiluted coat: modifiers wrap the descriptor, e.g. "Sooty Red Roan"
            color = descriptor
            for prefix in dilution.modifier_prefixes:
                color = f"{prefix} {color}"
            state.color = color
        else:
            state.color = f"{state.color} Roan"
        state.color_keys = [state.color, descriptor] + state.color_keys
        return True


@dataclass(frozen=True)
class GrayRule(PatternRule):
    tag: str = "gray"

    def apply(self, state: OverlayState, context: OverlayContext) -> bool:
        if not context.genotype.has("G_Gray", "G"):
            return False
        name, stage = context.gray_stages.name_for(context.age_years, context.dilution.base)
        state.color = name
        state.gray_stage = stage.label
        state.gray_keys = [name, stage.label]
        return True


@dataclass(frozen=True)
class PrimitiveMarkingsRule(PatternRule):
    tag: str = "primitive_markings"

    def apply(self, state: OverlayState, context: OverlayContext) -> bool:
        descriptor = context.dilution.primitive_markings
        if not descriptor or state.gray_stage is not None:
            return False
        state.add_suffix(f"({descriptor})")
        return True


DEFAULT_OVERLAY_RULES: Tuple[PatternRule, ...] = (
    DominantWhiteRule(),
    ModifierSuffixRule(tag="pangare", modifier="pangare", text="Pangare"),
    WhiteDescriptorRule(),
    LeopardRule(),
    LocusSuffixRule(tag="tobiano", locus="TO_Tobiano", alleles=("TO",), template="Tobiano"),
    LocusSuffixRule(tag="frame_overo", locus="O_FrameOvero", alleles=("O",), template="Frame Overo",
                    exclude_pairs=(("O", "O"),)),
    LocusSuffixRule(tag="sabino", locus="SB1_Sabino1", alleles=("SB1",), template="Sabino"),
    LocusSuffixRule(tag="splash_white", locus="SW_SplashWhite",
                    alleles=tuple(f"SW{i}" for i in range(1, 11)), template="Splash White {index}"),
    LocusSuffixRule(tag="eden_white", locus="EDXW",
                    alleles=tuple(f"EDXW{i}" for i in range(1, 4)), template="Eden White {index}"),
    RoanRule(),
    GrayRule(),
    ModifierSuffixRule(tag="rabicano", modifier="rabicano", text="Rabicano", hidden_by_gray=True),
    PrimitiveMarkingsRule(),
)


def _dedupe(values: Iterable[str]) -> Tuple[str, ...]:
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


def resolve_overlay(
    context: OverlayContext,
    rules: Sequence[PatternRule] = DEFAULT_OVERLAY_RULES,
) -> OverlayResult:
    dilution = context.dilution
    state = OverlayState(color=dilution.name, color_keys=[dilution.name, dilution.shade_key])
    for overlay_rule in rules:
        if overlay_rule.apply(state, context):
            state.applied.append(overlay_rule.tag)
            LOGGER.debug("overlay rule %s fired; color=%s", overlay_rule.tag, state.color)
        if state.terminal:
            break

    if state.terminal:
        shade_keys = _dedupe(state.color_keys)
    else:
        composite = " ".join([state.color] + [text for text, keyed in state.suffixes if keyed])
        shade_keys = _dedupe(
            [composite, *state.gray_keys, *state.pattern_keys, *state.color_keys, dilution.base.value]
        )

    return OverlayResult(
        color=state.color,
        suffixes=tuple(text for text, _ in state.suffixes),
        shade_keys=shade_keys,
        flags=dict(state.flags),
        short_circuit=state.terminal,
        gray_stage=state.gray_stage,
        applied_rules=tuple(state.applied),
        pattern_keys=tuple(state.pattern_keys),
    )


__all__ = [
    "DEFAULT_FULLY_WHITE",
    "DEFAULT_GRAY_STAGES",
    "DEFAULT_OVERLAY_RULES",
    "DominantWhiteRule",
    "GrayRule",
    "GrayStage",
    "GrayStageTable",
    "LeopardRule",
    "LocusSuffixRule",
    "ModifierSuffixRule",
    "OverlayContext",
    "OverlayResult",
    "OverlayState",
    "PatternRule",
    "PrimitiveMarkingsRule",
    "RoanRule",
    "WhiteDescriptorRule",
    "resolve_overlay",
]
