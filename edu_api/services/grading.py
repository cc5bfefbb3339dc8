"""
Grading policies for multiple-choice quizzes.

A policy takes the answer key (ids of the options flagged correct) and the
selected option ids and returns a Grade. Policies are pure: no DB access.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Callable


@dataclass(frozen=True)
class Grade:
    is_correct: bool
    score: float


GradingPolicy = Callable[[AbstractSet[str], AbstractSet[str]], Grade]


def binary_grade(answer_key: AbstractSet[str], selected: AbstractSet[str]) -> Grade:
    """All-or-nothing: correct only when every correct option and nothing else was picked."""
    all_correct_selected = answer_key <= selected
    no_incorrect_selected = selected <= answer_key
    is_correct = all_correct_selected and no_incorrect_selected
    return Grade(is_correct=is_correct, score=1.0 if is_correct else 0.0)


def partial_credit_grade(answer_key: AbstractSet[str], selected: AbstractSet[str]) -> Grade:
    """
    Credit per correct pick minus one per wrong pick, floored at 0, over the key size.
    is_correct still requires an exact match.
    """
    is_correct = set(answer_key) == set(selected)
    if not answer_key:
        return Grade(is_correct=is_correct, score=1.0 if is_correct else 0.0)
    hits = len(answer_key & selected)
    misses = len(selected - answer_key)
    score = max(hits - misses, 0) / len(answer_key)
    return Grade(is_correct=is_correct, score=round(score, 4))


DEFAULT_POLICY: GradingPolicy = binary_grade
