from __future__ import annotations

"""Equine coat phenotype resolution."""

from importlib import import_module
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - type checking helper
    from .config import EngineConfig, load_config
    from .genetics.phenotype import PhenotypeEngine, PhenotypeResult, resolve
    from .genetics.store import generate_store_genotype
    from .profiles import BreedGeneticProfile, load_breed_profiles
    from .randomization import RandomWeightedSelector

__all__ = [
    "BreedGeneticProfile",
    "EngineConfig",
    "PhenotypeEngine",
    "PhenotypeResult",
    "RandomWeightedSelector",
    "generate_store_genotype",
    "load_breed_profiles",
    "load_config",
    "resolve",
]

_EXPORTS = {
    "EngineConfig": ".config",
    "load_config": ".config",
    "PhenotypeEngine": ".genetics.phenotype",
    "PhenotypeResult": ".genetics.phenotype",
    "resolve": ".genetics.phenotype",
    "generate_store_genotype": ".genetics.store",
    "BreedGeneticProfile": ".profiles",
    "load_breed_profiles": ".profiles",
    "RandomWeightedSelector": ".randomization",
}


def __getattr__(name: str) -> Any:  # pragma: no cover - dispatch helper
    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(name)
    value = getattr(import_module(target, __name__), name)
    globals()[name] = value
    return value
