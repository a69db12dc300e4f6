from __future__ import annotations

from collections import deque
from pathlib import Path
import logging
import sys
from typing import Any, Iterable, Mapping

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from equine_lab.logging_utils import RunLogHandler
from equine_lab.randomization import validate_weights


class MaxWeightSelector:
    """Always returns the heaviest key (first one on ties); rolls succeed only above 0.5."""

    def __init__(self) -> None:
        self.calls: list[dict[Any, float]] = []

    def select(self, weights: Mapping[Any, float]) -> Any:
        keys, values = validate_weights(weights)
        self.calls.append(dict(weights))
        best = 0
        for index, value in enumerate(values):
            if value > values[best]:
                best = index
        return keys[best]


class ScriptedSelector:
    """Replays queued answers, then defers to :class:`MaxWeightSelector`."""

    def __init__(self, answers: Iterable[Any]) -> None:
        self.answers = deque(answers)
        self.fallback = MaxWeightSelector()
        self.calls: list[dict[Any, float]] = []

    @property
    def remaining(self) -> int:
        return len(self.answers)

    def select(self, weights: Mapping[Any, float]) -> Any:
        validate_weights(weights)
        self.calls.append(dict(weights))
        if not self.answers:
            return self.fallback.select(weights)
        answer = self.answers.popleft()
        assert answer in weights, f"scripted answer {answer!r} not offered in {dict(weights)!r}"
        return answer


@pytest.fixture()
def max_selector() -> MaxWeightSelector:
    return MaxWeightSelector()


@pytest.fixture()
def simple_profile() -> dict:
    return {
        "shade_bias": {"Default": {"standard": 1}},
        "marking_bias": {"face": {"none": 1}, "leg_specific_probabilities": {"none": 1}},
    }


@pytest.fixture(autouse=True)
def _reset_library_logger():
    yield
    library_logger = logging.getLogger("equine")
    for handler in list(library_logger.handlers):
        if isinstance(handler, RunLogHandler):
            library_logger.removeHandler(handler)
            handler.run_logger.close()
    library_logger.propagate = True
    library_logger.setLevel(logging.NOTSET)
