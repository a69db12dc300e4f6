"""Locus catalog and the resolution stages built on it."""
from __future__ import annotations

from importlib import import_module
from typing import Any

from .loci import DEFAULT_LOCI, DEFAULT_MODIFIERS, Genotype
from .pigment import BasePigment, resolve_base_pigment

__all__ = [
    "BasePigment",
    "DEFAULT_LOCI",
    "DEFAULT_MODIFIERS",
    "Genotype",
    "PhenotypeEngine",
    "PhenotypeResult",
    "generate_store_genotype",
    "resolve",
    "resolve_base_pigment",
]


def __getattr__(name: str) -> Any:  # pragma: no cover - dispatch helper
    if name in {"PhenotypeEngine", "PhenotypeResult", "resolve"}:
        module = import_module(".phenotype", __name__)
    elif name == "generate_store_genotype":
        module = import_module(".store", __name__)
    else:
        raise AttributeError(name)

    value = getattr(module, name)
    globals()[name] = value
    return value
