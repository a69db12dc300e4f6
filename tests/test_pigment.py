from __future__ import annotations

import pytest

from equine_lab.genetics.loci import Genotype
from equine_lab.genetics.pigment import BasePigment, resolve_base_pigment


@pytest.mark.parametrize("agouti", ["A/A", "A/a", "At/a", "At/At", "a/a"])
def test_red_extension_masks_agouti(agouti: str) -> None:
    genotype = Genotype.parse({"E_Extension": "e/e", "A_Agouti": agouti})
    assert resolve_base_pigment(genotype) is BasePigment.CHESTNUT


@pytest.mark.parametrize(
    "genes, expected",
    [
        ({"E_Extension": "E/e", "A_Agouti": "A/a"}, BasePigment.BAY),
        ({"E_Extension": "E/E", "A_Agouti": "At/At"}, BasePigment.BAY),
        ({"E_Extension": "E/e", "A_Agouti": "a/a"}, BasePigment.BLACK),
        ({"E_Extension": "E/e"}, BasePigment.BLACK),
        ({"A_Agouti": "A/A"}, BasePigment.BAY),
        ({}, BasePigment.BLACK),
    ],
)
def test_black_pigment_bases(genes: dict, expected: BasePigment) -> None:
    assert resolve_base_pigment(Genotype.parse(genes)) is expected


def test_black_pigment_flag() -> None:
    assert not BasePigment.CHESTNUT.has_black_pigment
    assert BasePigment.BAY.has_black_pigment
    assert BasePigment.BLACK.value == "Black"
