"""Error taxonomy for phenotype resolution."""
from __future__ import annotations

from typing import Iterable, Optional


class PhenotypeError(ValueError):
    """Base class for configuration and programmer errors raised by the engine."""


class UnknownLocus(PhenotypeError):
    """Raised when a genotype references an undeclared locus or allele."""

    def __init__(self, locus: str, allele: Optional[str] = None, *, value: object = None):
        if allele is None and value is None:
            message = f"Unknown locus '{locus}'"
        elif allele is None:
            message = f"Malformed allele pair for locus '{locus}': {value!r}"
        else:
            message = f"Unknown allele '{allele}' for locus '{locus}'"
        super().__init__(message)
        self.locus = locus
        self.allele = allele
        self.value = value


class MissingBreedProfile(PhenotypeError):
    """Raised when a breed profile lacks a bias table needed for resolution."""

    def __init__(self, table: str, keys: Iterable[str] = (), *, breed: str | None = None):
        keys = [str(key) for key in keys]
        detail = f" (tried {keys})" if keys else ""
        owner = f"breed '{breed}'" if breed else "breed profile"
        super().__init__(f"{owner} has no usable '{table}' entry{detail}")
        self.table = table
        self.keys = keys
        self.breed = breed


class InvalidWeightMap(PhenotypeError):
    """Raised when the weighted selector receives an unusable weight map."""

    def __init__(self, reason: str, weights: object = None):
        super().__init__(f"Invalid weight map: {reason}")
        self.reason = reason
        self.weights = weights


class ProfileValidationError(PhenotypeError):
    """Raised when a breed profile document does not match its schema."""

    def __init__(self, message: str, *, path: Iterable[str] | None = None, source: str | None = None):
        location = "/".join(path or [])
        prefix = f"{source}: " if source else ""
        if location:
            message = f"{location}: {message}"
        super().__init__(prefix + message)
        self.path = list(path or [])
        self.source = source


__all__ = [
    "InvalidWeightMap",
    "MissingBreedProfile",
    "PhenotypeError",
    "ProfileValidationError",
    "UnknownLocus",
]
