from __future__ import annotations

import pytest

from equine_lab.errors import UnknownLocus
from equine_lab.genetics.dilution import resolve_dilutions
from equine_lab.genetics.loci import DEFAULT_LOCI, Dominance, Genotype
from equine_lab.genetics.pigment import resolve_base_pigment


def test_string_and_sequence_pairs_parse_the_same() -> None:
    from_string = Genotype.parse({"E_Extension": "E/e", "Cr_Cream": "n/Cr"})
    from_sequence = Genotype.parse({"E_Extension": ["E", "e"], "Cr_Cream": ("n", "Cr")})
    assert from_string.pairs == from_sequence.pairs
    assert from_string.dose("Cr_Cream", "Cr") == 1


def test_absent_loci_fall_back_to_declared_defaults() -> None:
    genotype = Genotype.parse({})
    assert genotype.alleles("E_Extension") == ("E", "E")
    assert genotype.alleles("A_Agouti") == ("a", "a")
    assert genotype.alleles("D_Dun") == ("nd2", "nd2")
    assert not genotype.has("G_Gray", "G")


def test_key_and_allele_aliases_are_normalised() -> None:
    genotype = Genotype.parse(
        {
            "Ch_Champagne": "Ch/n",
            "Prl_Pearl": "N/Prl",
            "PATN1_Pattern1": "PATN1/patn1",
            "MFSD12_Mushroom": "Mu/N",
        }
    )
    assert genotype.alleles("CH_Champagne") == ("Ch", "n")
    assert genotype.alleles("PRL_Pearl") == ("n", "prl")
    assert genotype.alleles("PATN1_Pattern1") == ("PATN1", "n")
    assert genotype.dose("MFSD12_Mushroom", "Mu") == 1
    assert genotype.to_dict()["PRL_Pearl"] == "n/prl"


def test_unknown_locus_is_rejected() -> None:
    with pytest.raises(UnknownLocus) as exc:
        Genotype.parse({"BR1_Brindle1": "N/BR1"})
    assert exc.value.locus == "BR1_Brindle1"
    assert exc.value.allele is None


def test_unknown_allele_is_rejected() -> None:
    with pytest.raises(UnknownLocus) as exc:
        Genotype.parse({"Cr_Cream": "Cr/X"})
    assert exc.value.locus == "Cr_Cream"
    assert exc.value.allele == "X"


@pytest.mark.parametrize("value", ["E", "E/e/e", "", ["E"], 5, "E/"])
def test_malformed_pairs_are_rejected(value) -> None:
    with pytest.raises(UnknownLocus):
        Genotype.parse({"E_Extension": value})


def test_boolean_modifiers() -> None:
    genotype = Genotype.parse({"sooty": True, "flaxen": 0})
    assert genotype.modifier("sooty") is True
    assert genotype.modifier("flaxen") is False
    assert genotype.modifier("rabicano") is False
    with pytest.raises(UnknownLocus):
        Genotype.parse({"pangare": "yes"})


def test_parse_leaves_caller_mapping_untouched() -> None:
    raw = {"Ch_Champagne": "Ch/n", "Cr_Cream": ["n", "Cr"], "sooty": 1}
    snapshot = {"Ch_Champagne": "Ch/n", "Cr_Cream": ["n", "Cr"], "sooty": 1}
    Genotype.parse(raw)
    assert raw == snapshot


def test_matching_keeps_allele_order_without_duplicates() -> None:
    genotype = Genotype.parse({"W_DominantWhite": "W20/W13"})
    assert genotype.matching("W_DominantWhite", {"W13", "W20"}) == ("W20", "W13")
    homozygous = Genotype.parse({"SW_SplashWhite": "SW1/SW1"})
    assert homozygous.matching("SW_SplashWhite", {"SW1"}) == ("SW1",)


def test_dose_sensitive_loci_are_declared_incomplete() -> None:
    for key in ("Cr_Cream", "PRL_Pearl", "LP_LeopardComplex"):
        assert DEFAULT_LOCI[key].dominance is Dominance.INCOMPLETE
    assert DEFAULT_LOCI["MFSD12_Mushroom"].dominance is Dominance.RECESSIVE


def test_genotype_defaults_to_the_shared_catalog() -> None:
    genotype = Genotype(pairs={}, modifiers={})
    assert genotype.catalog is DEFAULT_LOCI
    assert genotype.alleles("G_Gray") == ("g", "g")


@pytest.mark.parametrize(
    "locus, allele, pair, expected",
    [
        ("Cr_Cream", "Cr", "n/Cr", 1),
        ("Cr_Cream", "Cr", "Cr/Cr", 2),
        ("D_Dun", "D", "D/D", 1),
        ("D_Dun", "D", "D/nd2", 1),
        ("MFSD12_Mushroom", "Mu", "Mu/n", 0),
        ("MFSD12_Mushroom", "Mu", "Mu/Mu", 1),
        ("LP_LeopardComplex", "LP", "LP/LP", 2),
    ],
)
def test_expression_follows_declared_dominance(locus, allele, pair, expected) -> None:
    assert Genotype.parse({locus: pair}).expression(locus, allele) == expected


def test_heterozygous_mushroom_leaves_chestnut_alone() -> None:
    genotype = Genotype.parse({"E_Extension": "e/e", "MFSD12_Mushroom": "Mu/n"})
    assert resolve_dilutions(genotype, resolve_base_pigment(genotype)).name == "Chestnut"
