"""Ordered, tagged naming rules.

A rule pairs a predicate over the resolution context with a name template.
Rules are evaluated in list order and the first match wins, so precedence
between compound and partial matches is simply the position in the table.

Predicates are plain data: ``when`` maps a context field to an expected
value, a list of accepted values, or ``True``/``False`` for flags.  Templates
may reference ``{color}``, ``{base}`` and ``{shade_key}``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from ..errors import PhenotypeError


class RuleParseError(PhenotypeError):
    """Raised when a rule definition cannot be interpreted."""


@dataclass(frozen=True)
class NameRule:
    tag: str
    when: Mapping[str, Any]
    name: str
    shade_key: Optional[str] = None

    def matches(self, context: Mapping[str, Any]) -> bool:
        for key, expected in self.when.items():
            actual = context.get(key)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if actual not in expected:
                    return False
            elif actual != expected:
                return False
        return True

    def render(self, context: Mapping[str, Any]) -> tuple[str, str]:
        try:
            name = self.name.format(**context)
            shade_template = self.shade_key if self.shade_key is not None else name
            shade_key = shade_template.format(**{**context, "name": name})
        except (KeyError, IndexError) as exc:
            raise RuleParseError(f"rule '{self.tag}' references unknown field {exc}") from exc
        return name, shade_key

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], *, source: str = "<memory>") -> "NameRule":
        if not isinstance(raw, Mapping):
            raise RuleParseError(f"{source}: rule must be a mapping, got {type(raw).__name__}")
        tag = raw.get("tag")
        name = raw.get("name")
        if not isinstance(tag, str) or not tag.strip():
            raise RuleParseError(f"{source}: rule is missing a 'tag'")
        if not isinstance(name, str) or not name.strip():
            raise RuleParseError(f"{source}: rule '{tag}' is missing a 'name'")
        when = raw.get("when") or {}
        if not isinstance(when, Mapping):
            raise RuleParseError(f"{source}: rule '{tag}' has a non-mapping 'when'")
        shade_key = raw.get("shade_key")
        if shade_key is not None and not isinstance(shade_key, str):
            raise RuleParseError(f"{source}: rule '{tag}' has a non-string 'shade_key'")
        normalized = {
            str(key): tuple(value) if isinstance(value, list) else value
            for key, value in when.items()
        }
        return cls(tag=tag.strip(), when=normalized, name=name, shade_key=shade_key)


@dataclass(frozen=True)
class RuleMatch:
    rule: NameRule
    name: str
    shade_key: str


@dataclass
class RuleTable:
    """Named stages of ordered rules."""

    stages: dict[str, List[NameRule]] = field(default_factory=dict)

    def rules(self, stage: str) -> Sequence[NameRule]:
        return self.stages.get(stage, ())

    def first_match(self, stage: str, context: Mapping[str, Any]) -> Optional[RuleMatch]:
        for rule in self.rules(stage):
            if rule.matches(context):
                name, shade_key = rule.render(context)
                return RuleMatch(rule=rule, name=name, shade_key=shade_key)
        return None

    def with_overrides(self, overrides: Mapping[str, Any]) -> "RuleTable":
        """Return a copy with stage rules replaced or prepended.

        ``overrides`` maps a stage to either a list of rules (prepended, so they
        take precedence) or ``{"replace": [...]}`` to swap the stage entirely.
        """

        merged = {stage: list(rules) for stage, rules in self.stages.items()}
        for stage, spec in overrides.items():
            if stage not in merged:
                raise RuleParseError(f"unknown rule stage '{stage}'")
            if isinstance(spec, Mapping):
                rules = _parse_rules(spec.get("replace") or [], stage)
                merged[stage] = rules
            else:
                merged[stage] = _parse_rules(spec, stage) + merged[stage]
        return RuleTable(stages=merged)


def _parse_rules(raw: Iterable[Any], stage: str) -> List[NameRule]:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise RuleParseError(f"rules for stage '{stage}' must be a list")
    return [NameRule.from_mapping(item, source=f"rules.{stage}[{idx}]") for idx, item in enumerate(raw)]


def rule(tag: str, name: str, shade_key: Optional[str] = None, **when: Any) -> NameRule:
    return NameRule(tag=tag, when=when, name=name, shade_key=shade_key)


__all__ = ["NameRule", "RuleMatch", "RuleParseError", "RuleTable", "rule"]
