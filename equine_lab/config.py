from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import json
import yaml

from .genetics.dilution import DEFAULT_RULE_TABLE
from .genetics.markings import DEFAULT_ADVANCED_RATES, AdvancedRateTable
from .genetics.patterns import DEFAULT_GRAY_STAGES, GrayStageTable
from .genetics.rules import RuleTable

NEUTRAL_SHADES: tuple[str, ...] = ("standard", "medium")
DEFAULT_STORE_ATTEMPTS = 10


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "LoggingConfig":
        if not raw:
            return cls()
        level = _optional_str(raw.get("level")) or "INFO"
        return cls(
            level=level.upper(),
            file=_optional_path(raw.get("file")),
        )


@dataclass
class ShadeConfig:
    """How a drawn shade is folded into the display name."""

    prefix_display_name: bool = True
    neutral: tuple[str, ...] = NEUTRAL_SHADES

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "ShadeConfig":
        if not raw:
            return cls()
        neutral = raw.get("neutral")
        return cls(
            prefix_display_name=bool(raw.get("prefix_display_name", True)),
            neutral=tuple(str(item) for item in neutral) if isinstance(neutral, (list, tuple)) else NEUTRAL_SHADES,
        )

    def is_neutral(self, shade: str) -> bool:
        return shade.strip().lower() in {item.lower() for item in self.neutral}


@dataclass
class EngineConfig:
    seed: Optional[int] = None
    profiles_path: Path | None = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    shades: ShadeConfig = field(default_factory=ShadeConfig)
    gray_stages: GrayStageTable = DEFAULT_GRAY_STAGES
    advanced_rates: AdvancedRateTable = DEFAULT_ADVANCED_RATES
    rule_overrides: Dict[str, Any] = field(default_factory=dict)
    store_max_attempts: int = DEFAULT_STORE_ATTEMPTS

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "EngineConfig":
        raw = raw or {}
        engine_block = _nested_mapping(raw, "engine")
        seed = raw.get("seed", engine_block.get("seed"))
        gray_raw = engine_block.get("gray_stages", raw.get("gray_stages"))
        rates_raw = engine_block.get("advanced_markings", raw.get("advanced_markings"))
        overrides = engine_block.get("rules", raw.get("rules")) or {}
        if not isinstance(overrides, Mapping):
            raise ValueError("'rules' must map a stage name to a list of rules")
        store_block = _nested_mapping(raw, "store")
        return cls(
            seed=None if seed is None else int(seed),
            profiles_path=_optional_path(
                _nested_mapping(raw, "paths").get("profiles", raw.get("profiles"))
            ),
            logging=LoggingConfig.from_mapping(_nested_mapping(raw, "logging")),
            shades=ShadeConfig.from_mapping(_nested_mapping(raw, "shades")),
            gray_stages=DEFAULT_GRAY_STAGES if gray_raw is None else GrayStageTable.from_mapping(gray_raw),
            advanced_rates=DEFAULT_ADVANCED_RATES if rates_raw is None else AdvancedRateTable.from_mapping(rates_raw),
            rule_overrides=dict(overrides),
            store_max_attempts=int(store_block.get("max_attempts", DEFAULT_STORE_ATTEMPTS)),
        )

    def rule_table(self, base: RuleTable | None = None) -> RuleTable:
        return load_rule_overrides(self.rule_overrides, base)


def load_rule_overrides(overrides: Mapping[str, Any] | None, base: RuleTable | None = None) -> RuleTable:
    """Apply stage overrides from configuration on top of the default naming table."""

    table = base or DEFAULT_RULE_TABLE
    if not overrides:
        return table
    return table.with_overrides(overrides)


def read_document(path: Path) -> Any:
    """Read a YAML, JSON or JSONC document."""

    path = Path(path)
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".json", ".jsonc"}:
        return json.loads(_strip_jsonc(text))
    return yaml.safe_load(text)


def load_config(path: Path) -> EngineConfig:
    data = read_document(path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")
    config = EngineConfig.from_dict(data)
    if config.profiles_path is not None and not config.profiles_path.is_absolute():
        config.profiles_path = (Path(path).parent / config.profiles_path).resolve()
    return config


def _strip_jsonc(payload: str) -> str:
    result: list[str] = []
    length = len(payload)
    i = 0
    in_string = False
    escape = False
    while i < length:
        ch = payload[i]
        if in_string:
            result.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            result.append(ch)
            i += 1
            continue

        if ch == '/' and i + 1 < length:
            nxt = payload[i + 1]
            if nxt == '/':
                i += 2
                while i < length and payload[i] not in "\r\n":
                    i += 1
                continue
            if nxt == '*':
                i += 2
                while i < length - 1:
                    if payload[i] == '*' and payload[i + 1] == '/':
                        i += 2
                        break
                    i += 1
                continue

        result.append(ch)
        i += 1
    return "".join(result)


def _optional_path(value: Any) -> Path | None:
    if value in (None, "", False):
        return None
    return Path(str(value))


def _optional_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _nested_mapping(source: Any, key: str) -> Dict[str, Any]:
    if not isinstance(source, Mapping):
        return {}
    value = source.get(key, {})
    return dict(value) if isinstance(value, Mapping) else {}


__all__ = [
    "EngineConfig",
    "LoggingConfig",
    "NEUTRAL_SHADES",
    "ShadeConfig",
    "load_config",
    "load_rule_overrides",
    "read_document",
]
