from __future__ import annotations

import pytest

from conftest import MaxWeightSelector, ScriptedSelector
from equine_lab.errors import PhenotypeError
from equine_lab.genetics.dilution import resolve_dilutions
from equine_lab.genetics.loci import Genotype
from equine_lab.genetics.patterns import (
    DEFAULT_FULLY_WHITE,
    DEFAULT_GRAY_STAGES,
    GrayStageTable,
    OverlayContext,
    OverlayResult,
    resolve_overlay,
)
from equine_lab.genetics.pigment import BasePigment, resolve_base_pigment

CHESTNUT = {"E_Extension": "e/e"}
BAY = {"E_Extension": "E/e", "A_Agouti": "A/a"}
BLACK = {"E_Extension": "E/E", "A_Agouti": "a/a"}


def overlay(base: dict, *, age: float = 3, selector=None, fully_white=DEFAULT_FULLY_WHITE,
            gray_stages: GrayStageTable = DEFAULT_GRAY_STAGES, **genes) -> OverlayResult:
    genotype = Genotype.parse({**base, **genes})
    dilution = resolve_dilutions(genotype, resolve_base_pigment(genotype))
    context = OverlayContext(
        genotype=genotype,
        dilution=dilution,
        age_years=age,
        selector=selector or MaxWeightSelector(),
        fully_white_alleles=fully_white,
        gray_stages=gray_stages,
    )
    return resolve_overlay(context)


@pytest.mark.parametrize(
    "allele, fully_white",
    [
        ("W13", DEFAULT_FULLY_WHITE),
        ("W1", frozenset({"W1", "W13"})),
        ("W36", frozenset({"W36"})),
        ("W", frozenset({"W"})),
    ],
)
def test_fully_white_alleles_short_circuit(allele: str, fully_white: frozenset) -> None:
    result = overlay(
        BAY,
        fully_white=fully_white,
        W_DominantWhite=f"{allele}/w",
        LP_LeopardComplex="LP/lp",
        TO_Tobiano="TO/to",
        G_Gray="G/g",
    )
    assert result.display_name() == "White"
    assert result.short_circuit
    assert result.suffixes == ()
    assert result.shade_keys[0] == "White"
    assert result.flags == {"mottling": True, "striping": True}
    assert result.applied_rules == ("dominant_white",)


def test_white_without_leopard_complex_sets_no_flags() -> None:
    result = overlay(CHESTNUT, W_DominantWhite="W13/W13")
    assert result.short_circuit
    assert result.flags == {}


@pytest.mark.parametrize("allele", ["W1", "W5", "W36"])
def test_other_dominant_white_alleles_are_descriptors_by_default(allele: str) -> None:
    result = overlay(BAY, W_DominantWhite=f"{allele}/w")
    assert not result.short_circuit
    assert result.display_name() == "Bay Dominant White"


def test_minimal_white_is_a_descriptor() -> None:
    result = overlay(BAY, W_DominantWhite="W20/w")
    assert not result.short_circuit
    assert result.display_name() == "Bay Minimal White"


def test_breed_can_narrow_the_fully_white_set() -> None:
    result = overlay(CHESTNUT, W_DominantWhite="W13/w", fully_white=frozenset({"W1"}))
    assert result.display_name() == "Chestnut Dominant White"


def test_complete_leopard_on_chestnut() -> None:
    result = overlay(CHESTNUT, LP_LeopardComplex="LP/lp", PATN1_Pattern1="PATN1/n")
    assert result.display_name() == "Chestnut Leopard Appaloosa"
    assert result.flags == {"mottling": True, "striping": True}
    assert result.shade_keys[:3] == ("Chestnut Leopard Appaloosa", "Leopard Appaloosa", "Chestnut")


def test_homozygous_leopard_patterns() -> None:
    assert overlay(BAY, LP_LeopardComplex="LP/LP", PATN1_Pattern1="PATN1/PATN1").suffixes == (
        "Fewspot Leopard Appaloosa",
    )
    assert overlay(BAY, LP_LeopardComplex="LP/LP").suffixes == ("Snowcap Appaloosa",)


def test_incomplete_leopard_draws_underlying_pattern() -> None:
    selector = ScriptedSelector(["Varnish Roan Appaloosa"])
    result = overlay(BLACK, selector=selector, LP_LeopardComplex="LP/lp")
    assert result.display_name() == "Black Varnish Roan Appaloosa"
    assert result.flags["mottling"] and result.flags["striping"]
    assert selector.remaining == 0


def test_tobiano_never_keys_the_shade() -> None:
    result = overlay(BAY, TO_Tobiano="TO/to")
    assert result.display_name() == "Bay Tobiano"
    assert "Bay Tobiano" not in result.shade_keys
    assert result.shade_keys[0] == "Bay"


@pytest.mark.parametrize(
    "genes, suffix",
    [
        ({"O_FrameOvero": "O/n"}, "Frame Overo"),
        ({"SB1_Sabino1": "SB1/n"}, "Sabino"),
        ({"SW_SplashWhite": "SW2/n"}, "Splash White 2"),
        ({"EDXW": "EDXW3/n"}, "Eden White 3"),
        ({"pangare": True}, "Pangare"),
        ({"rabicano": True}, "Rabicano"),
    ],
)
def test_other_white_patterns_append_suffixes(genes: dict, suffix: str) -> None:
    assert overlay(BAY, **genes).suffixes == (suffix,)


def test_homozygous_frame_overo_is_not_shown() -> None:
    assert overlay(BAY, O_FrameOvero="O/O").suffixes == ()


@pytest.mark.parametrize(
    "base, expected",
    [(CHESTNUT, "Red Roan"), (BAY, "Bay Roan"), (BLACK, "Blue Roan")],
)
def test_roan_descriptor_follows_base(base: dict, expected: str) -> None:
    result = overlay(base, Rn_Roan="Rn/rn")
    assert result.display_name() == expected
    assert result.shade_keys[0] == expected


@pytest.mark.parametrize(
    "genes, expected",
    [
        ({"sooty": True}, "Sooty Red Roan"),
        ({"flaxen": True}, "Flaxen Red Roan"),
        ({"MFSD12_Mushroom": "Mu/Mu"}, "Red Roan"),
        ({"MFSD12_Mushroom": "Mu/Mu", "flaxen": True, "sooty": True}, "Sooty Flaxen Red Roan"),
    ],
)
def test_roan_descriptor_survives_coat_modifiers(genes: dict, expected: str) -> None:
    result = overlay(CHESTNUT, Rn_Roan="Rn/rn", **genes)
    assert result.display_name() == expected
    assert "Red Roan" in result.shade_keys


def test_sooty_bay_roan() -> None:
    assert overlay(BAY, Rn_Roan="Rn/Rn", sooty=True).display_name() == "Sooty Bay Roan"


def test_roan_on_diluted_color() -> None:
    result = overlay(CHESTNUT, Rn_Roan="Rn/rn", Cr_Cream="n/Cr")
    assert result.display_name() == "Palomino Roan"
    assert result.shade_keys == ("Palomino Roan", "Red Roan", "Palomino", "Chestnut")


@pytest.mark.parametrize(
    "base, age, expected",
    [
        (BAY, 2, "Steel Gray"),
        (BAY, 3, "Steel Gray"),
        (BAY, 3.5, "Steel Dark Dapple Gray"),
        (BAY, 8, "Steel Light Dapple Gray"),
        (BLACK, 6, "Steel Dark Dapple Gray"),
        (CHESTNUT, 8, "Rose Light Dapple Gray"),
        (CHESTNUT, 11, "White Gray"),
        (BAY, 20, "Fleabitten Gray"),
    ],
)
def test_gray_progresses_with_age(base: dict, age: float, expected: str) -> None:
    result = overlay(base, age=age, G_Gray="G/g")
    assert result.color == expected
    assert result.is_gray


def test_gray_name_changes_between_three_and_eight() -> None:
    young = overlay(BAY, age=3, G_Gray="G/g")
    older = overlay(BAY, age=8, G_Gray="G/g")
    assert young.display_name() != older.display_name()


def test_gray_keeps_pattern_suffixes_and_hides_late_descriptors() -> None:
    result = overlay(BAY, age=8, G_Gray="G/g", TO_Tobiano="TO/to", rabicano=True, D_Dun="nd1/nd1")
    assert result.display_name() == "Steel Light Dapple Gray Tobiano"
    ungrayed = overlay(BAY, rabicano=True, D_Dun="nd1/nd1")
    assert ungrayed.display_name() == "Bay Rabicano (Primitive Markings)"


def test_gray_shade_keys_prefer_stage_names() -> None:
    result = overlay(CHESTNUT, age=8, G_Gray="G/G", LP_LeopardComplex="LP/lp", PATN1_Pattern1="PATN1/n")
    assert result.shade_keys[:4] == (
        "Rose Light Dapple Gray Leopard Appaloosa",
        "Rose Light Dapple Gray",
        "Light Dapple Gray",
        "Leopard Appaloosa",
    )
    assert result.shade_keys[-1] == BasePigment.CHESTNUT.value


def test_custom_gray_table() -> None:
    table = GrayStageTable.from_mapping(
        {
            "tones": {"Bay": "Iron"},
            "stages": [
                {"max_age": 5, "label": "Gray"},
                {"max_age": None, "label": "White Gray", "toned": False},
            ],
        }
    )
    assert overlay(BAY, age=4, gray_stages=table, G_Gray="G/g").color == "Iron Gray"
    assert overlay(BAY, age=6, gray_stages=table, G_Gray="G/g").color == "White Gray"


@pytest.mark.parametrize(
    "stages",
    [
        [],
        [{"max_age": 5, "label": "Gray"}],
        [{"max_age": 9, "label": "A"}, {"max_age": 3, "label": "B"}, {"max_age": None, "label": "C"}],
        [{"max_age": 3}],
    ],
)
def test_invalid_gray_tables(stages) -> None:
    with pytest.raises(PhenotypeError):
        GrayStageTable.from_mapping(stages)
