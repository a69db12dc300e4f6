#!/usr/bin/env python3
"""Equine phenotype resolver command line.

Commands:
- resolve: resolve one genotype against a breed profile at a given age
- store:   draw store-horse genotypes from a breed's allele weights
- sample:  draw store genotypes and resolve each of them

Environment (.env is honoured):
- EQUINE_LAB_CONFIG    engine configuration file (YAML/JSON/JSONC)
- EQUINE_LAB_PROFILES  breed profile file or directory
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from dotenv import load_dotenv

from equine_lab.config import EngineConfig, load_config, read_document
from equine_lab.errors import PhenotypeError
from equine_lab.genetics.phenotype import PhenotypeEngine
from equine_lab.genetics.store import generate_store_genotype
from equine_lab.logging_utils import RunLogger, create_logger
from equine_lab.profiles import BreedGeneticProfile, get_profile, load_breed_profiles
from equine_lab.randomization import RandomWeightedSelector

HERE = Path(__file__).resolve().parent
DEFAULT_PROFILES = HERE / "data" / "breeds"


def _parse_genes(pairs: Sequence[str]) -> Dict[str, Any]:
    genotype: Dict[str, Any] = {}
    for item in pairs:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"expected LOCUS=VALUE, got '{item}'")
        value = value.strip()
        if value.lower() in {"true", "false"}:
            genotype[key.strip()] = value.lower() == "true"
        else:
            genotype[key.strip()] = value
    return genotype


def _load_genotype(args: argparse.Namespace) -> Dict[str, Any]:
    genotype: Dict[str, Any] = {}
    if args.genotype:
        text = args.genotype.strip()
        raw = json.loads(text) if text.startswith("{") else read_document(Path(text))
        if not isinstance(raw, dict):
            raise argparse.ArgumentTypeError("--genotype must be a JSON object or a file containing one")
        genotype.update(raw)
    genotype.update(_parse_genes(args.gene or []))
    return genotype


def _load_config(args: argparse.Namespace) -> EngineConfig:
    path = args.config or os.getenv("EQUINE_LAB_CONFIG")
    config = load_config(Path(path)) if path else EngineConfig()
    if args.seed is not None:
        config.seed = args.seed
    if args.log_level:
        config.logging.level = args.log_level.upper()
    return config


def _load_profile(args: argparse.Namespace, config: EngineConfig) -> BreedGeneticProfile:
    source = args.profiles or os.getenv("EQUINE_LAB_PROFILES") or config.profiles_path or DEFAULT_PROFILES
    profiles = load_breed_profiles(Path(source))
    if args.breed:
        return get_profile(profiles, args.breed)
    if len(profiles) == 1:
        return next(iter(profiles.values()))
    raise PhenotypeError(f"--breed is required; available breeds: {', '.join(sorted(profiles))}")


def _emit(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def cmd_resolve(args: argparse.Namespace, config: EngineConfig, logger: RunLogger) -> int:
    profile = _load_profile(args, config)
    genotype = _load_genotype(args)
    engine = PhenotypeEngine(config=config, selector=RandomWeightedSelector(seed=config.seed))
    result = logger.timed(
        "resolve",
        lambda res: f"{profile.name}: {res.final_display_color} ({res.determined_shade})",
        engine.resolve,
        genotype,
        profile,
        args.age,
    )
    _emit({"genotype": genotype, "age_years": args.age, **result.to_dict()})
    return 0


def cmd_store(args: argparse.Namespace, config: EngineConfig, logger: RunLogger) -> int:
    profile = _load_profile(args, config)
    selector = RandomWeightedSelector(seed=config.seed)
    horses: List[Dict[str, Any]] = []
    for index in range(args.count):
        genotype = generate_store_genotype(profile, selector, max_attempts=config.store_max_attempts)
        logger.log("store", f"#{index + 1} {profile.name}: {len(genotype)} genes drawn", level="DEBUG")
        horses.append(genotype)
    _emit(horses)
    return 0


def cmd_sample(args: argparse.Namespace, config: EngineConfig, logger: RunLogger) -> int:
    profile = _load_profile(args, config)
    selector = RandomWeightedSelector(seed=config.seed)
    engine = PhenotypeEngine(config=config, selector=selector)
    rows: List[Dict[str, Any]] = []
    for index in range(args.count):
        genotype = generate_store_genotype(profile, selector, max_attempts=config.store_max_attempts)
        result = engine.resolve(genotype, profile, args.age)
        logger.log("sample", f"#{index + 1} {result.final_display_color} ({result.determined_shade})")
        rows.append({"genotype": genotype, **result.to_dict()})
    _emit(rows)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Equine coat phenotype resolver")
    parser.add_argument("--config", default=None, help="Engine configuration (YAML/JSON/JSONC)")
    parser.add_argument("--profiles", default=None, help="Breed profile file or directory")
    parser.add_argument("--breed", default=None, help="Breed name inside the profile source")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the weighted selector")
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--log-file", type=Path, default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Resolve a genotype to its phenotype")
    resolve.add_argument("--genotype", default=None, help="JSON object or path to a YAML/JSON genotype")
    resolve.add_argument("-g", "--gene", action="append", default=[], help="LOCUS=VALUE, repeatable")
    resolve.add_argument("--age", type=float, default=3.0, help="Age in years")
    resolve.set_defaults(handler=cmd_resolve)

    store = sub.add_parser("store", help="Draw store-horse genotypes")
    store.add_argument("--count", type=int, default=1)
    store.set_defaults(handler=cmd_store)

    sample = sub.add_parser("sample", help="Draw store genotypes and resolve them")
    sample.add_argument("--count", type=int, default=5)
    sample.add_argument("--age", type=float, default=3.0, help="Age in years")
    sample.set_defaults(handler=cmd_sample)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    logger: Optional[RunLogger] = None
    try:
        config = _load_config(args)
        logger = create_logger(config.logging.level, args.log_file or config.logging.file)
        return args.handler(args, config, logger)
    except (ValueError, FileNotFoundError, argparse.ArgumentTypeError) as exc:
        if logger is None:
            logger = create_logger(args.log_level or "INFO", args.log_file)
        logger.log("error", str(exc), level="ERROR")
        return 2
    finally:
        if logger is not None:
            logger.close()


if __name__ == "__main__":
    sys.exit(main())
