from __future__ import annotations

from enum import Enum

from .loci import Genotype


class BasePigment(str, Enum):
    CHESTNUT = "Chestnut"
    BLACK = "Black"
    BAY = "Bay"

    @property
    def has_black_pigment(self) -> bool:
        return self is not BasePigment.CHESTNUT


AGOUTI_DOMINANT = ("A", "At")


def resolve_base_pigment(genotype: Genotype) -> BasePigment:
    """Extension x Agouti epistasis.

    ``e/e`` silences Agouti entirely; otherwise any dominant Agouti allele
    restricts black to the points (Bay) and ``a/a`` leaves a Black coat.
    """

    if genotype.is_homozygous("E_Extension", "e"):
        return BasePigment.CHESTNUT
    if genotype.has_any("A_Agouti", AGOUTI_DOMINANT):
        return BasePigment.BAY
    return BasePigment.BLACK


__all__ = ["AGOUTI_DOMINANT", "BasePigment", "resolve_base_pigment"]
