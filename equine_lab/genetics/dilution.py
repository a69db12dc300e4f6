"""Dilution cascade: Cream, Dun, Champagne, Silver, Pearl, Mushroom.

Each stage is a list of tagged rules evaluated against the running name and
the active dilution doses.  Stages run in fixed precedence and each one sees
the name produced by the previous stage.  Compound rules sit above partial
ones inside a stage, so the most specific combination wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .loci import Genotype
from .pigment import BasePigment
from .rules import NameRule, RuleTable, rule

LOGGER = logging.getLogger("equine.dilution")

DILUTION_STAGES: Tuple[str, ...] = ("cream", "dun", "champagne", "silver", "pearl", "mushroom")
# Mushroom renames a chestnut without diluting it; roan descriptors look past it.
SURFACE_STAGES: Tuple[str, ...] = ("mushroom",)
MODIFIER_STAGES: Tuple[str, ...] = ("flaxen", "sooty")

CHESTNUT = BasePigment.CHESTNUT.value
BAY = BasePigment.BAY.value
BLACK = BasePigment.BLACK.value

# (base, champagne prefix, double-cream name)
_CHAMPAGNE_SERIES: Tuple[Tuple[str, str, str], ...] = (
    (CHESTNUT, "Gold", "Cremello"),
    (BAY, "Amber", "Perlino"),
    (BLACK, "Classic", "Smoky Cream"),
)


def _champagne_rules() -> List[NameRule]:
    rules: List[NameRule] = []
    for base, prefix, double in _CHAMPAGNE_SERIES:
        tag = prefix.lower()
        rules.extend(
            [
                rule(f"champagne_{tag}_ivory_dun", f"Ivory Dun Champagne ({double})",
                     f"{prefix} Cream Dun Champagne", base=base, cream=2, dun=True),
                rule(f"champagne_{tag}_cream_dun", f"{prefix} Cream Dun Champagne",
                     base=base, cream=1, dun=True),
                rule(f"champagne_{tag}_dun", f"{prefix} Dun Champagne", base=base, dun=True),
                rule(f"champagne_{tag}_ivory", f"Ivory Champagne ({double})",
                     f"{prefix} Cream Champagne", base=base, cream=2),
                rule(f"champagne_{tag}_cream", f"{prefix} Cream Champagne", base=base, cream=1),
                rule(f"champagne_{tag}", f"{prefix} Champagne", base=base),
            ]
        )
    return rules


def default_rule_table() -> RuleTable:
    return RuleTable(
        stages={
            "cream": [
                rule("cream_double_chestnut", "Cremello", base=CHESTNUT, cream=2),
                rule("cream_double_bay", "Perlino", base=BAY, cream=2),
                rule("cream_double_black", "Smoky Cream", base=BLACK, cream=2),
                rule("cream_single_chestnut", "Palomino", base=CHESTNUT, cream=1),
                rule("cream_single_bay", "Buckskin", base=BAY, cream=1),
                rule("cream_single_black", "Smoky Black", base=BLACK, cream=1),
            ],
            "dun": [
                rule("dun_double_cream", "{color} Dun", dun=True, cream=2),
                rule("dun_smoky_black", "Smoky Grulla", dun=True, base=BLACK, cream=1),
                rule("dun_black", "Grulla", dun=True, base=BLACK),
                rule("dun_buckskin", "Buckskin Dun", dun=True, base=BAY, cream=1),
                rule("dun_bay", "Bay Dun", dun=True, base=BAY),
                rule("dun_palomino", "Dunalino", dun=True, base=CHESTNUT, cream=1),
                rule("dun_chestnut", "Red Dun", dun=True, base=CHESTNUT),
            ],
            "champagne": [
                NameRule(r.tag, {**r.when, "champagne": True}, r.name, r.shade_key)
                for r in _champagne_rules()
            ],
            "silver": [
                rule("silver_black_pigment", "Silver {color}", "Silver {shade_key}",
                     silver=True, base=(BAY, BLACK)),
            ],
            "pearl": [
                rule("pearl_double_cream", "{color} (Pearl)", "{shade_key} (Pearl)", pearl=2, cream=2),
                rule("pearl_cream", "{color} Pearl", "{shade_key} Pearl", pearl=(1, 2), cream=1),
                rule("pearl_apricot", "Apricot", pearl=2, cream=0, color=CHESTNUT),
                rule("pearl_homozygous", "{color} Pearl", "{shade_key} Pearl", pearl=2, cream=0),
            ],
            "mushroom": [
                rule("mushroom_chestnut", "Mushroom Chestnut", mushroom=True, color=CHESTNUT),
            ],
            "flaxen": [
                rule("flaxen_red", "Flaxen {color}", flaxen=True,
                     color=(CHESTNUT, "Mushroom Chestnut")),
            ],
            "sooty": [
                rule("sooty", "Sooty {color}", "Sooty {shade_key}", sooty=True),
            ],
        }
    )


DEFAULT_RULE_TABLE = default_rule_table()

_PRIMITIVE_MARKINGS = {
    ("nd1", "nd1"): "Primitive Markings",
    ("nd1", "nd2"): "Faint Primitive Markings",
}


@dataclass(frozen=True)
class DilutionResult:
    base: BasePigment
    name: str
    shade_key: str
    flags: FrozenSet[str]
    applied_rules: Tuple[str, ...] = ()
    primitive_markings: Optional[str] = None
    core_name: str = ""
    modifier_prefixes: Optional[Tuple[str, ...]] = ()

    def active(self, flag: str) -> bool:
        return flag in self.flags


def dilution_context(genotype: Genotype, base: BasePigment) -> Dict[str, Any]:
    return {
        "base": base.value,
        "color": base.value,
        "shade_key": base.value,
        "cream": genotype.expression("Cr_Cream", "Cr"),
        "dun": bool(genotype.expression("D_Dun", "D")),
        "champagne": bool(genotype.expression("CH_Champagne", "Ch")),
        "silver": bool(genotype.expression("Z_Silver", "Z")),
        "pearl": genotype.expression("PRL_Pearl", "prl"),
        "mushroom": bool(genotype.expression("MFSD12_Mushroom", "Mu")),
        "flaxen": genotype.modifier("flaxen"),
        "sooty": genotype.modifier("sooty"),
    }


def resolve_dilutions(
    genotype: Genotype,
    base: BasePigment,
    table: RuleTable = DEFAULT_RULE_TABLE,
) -> DilutionResult:
    context = dilution_context(genotype, base)
    flags: set[str] = set()
    applied: List[str] = []
    core_name = base.value
    prefixes: Optional[List[str]] = []
    for stage in DILUTION_STAGES + MODIFIER_STAGES:
        match = table.first_match(stage, context)
        if match is None:
            continue
        if stage in MODIFIER_STAGES:
            previous = context["color"]
            if prefixes is not None and match.name.endswith(f" {previous}"):
                prefixes.append(match.name[: -len(previous)].strip())
            else:
                # an override that rewrites the whole name cannot be replayed
                prefixes = None
        elif stage not in SURFACE_STAGES:
            core_name = match.name
        context["color"] = match.name
        context["shade_key"] = match.shade_key
        flags.add(stage)
        applied.append(match.rule.tag)
        LOGGER.debug("stage %s matched %s -> %s", stage, match.rule.tag, match.name)

    primitive = None
    if not context["dun"]:
        primitive = _PRIMITIVE_MARKINGS.get(tuple(sorted(genotype.alleles("D_Dun"))))

    return DilutionResult(
        base=base,
        name=context["color"],
        shade_key=context["shade_key"],
        flags=frozenset(flags),
        applied_rules=tuple(applied),
        primitive_markings=primitive,
        core_name=core_name,
        modifier_prefixes=None if prefixes is None else tuple(prefixes),
    )


__all__ = [
    "DEFAULT_RULE_TABLE",
    "DILUTION_STAGES",
    "MODIFIER_STAGES",
    "SURFACE_STAGES",
    "DilutionResult",
    "default_rule_table",
    "dilution_context",
    "resolve_dilutions",
]
