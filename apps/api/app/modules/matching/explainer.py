"""Counterfactual Explainer — "what would change my mind" from violations.

Only hard violations produce a sentence; soft violations are context, not
fixable thresholds. Sentences follow violation discovery order.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from app.modules.matching.candidates import Candidate
from app.modules.matching.constraints import (
    ConstraintEvaluation,
    ConstraintKey,
    ConstraintViolation,
    format_number,
)

_TEMPLATES: dict[ConstraintKey, Callable[[ConstraintViolation, Candidate], str]] = {
    ConstraintKey.BUDGET_MAX: lambda v, c: f"If price < AED {v.expected:,.0f}",
    ConstraintKey.YIELD_TARGET: lambda v, c: f"If yield >= {format_number(v.expected)}%",
    ConstraintKey.TRUST_SCORE: lambda v, c: f"If trust score >= {format_number(v.expected)}",
    ConstraintKey.NEEDS_VERIFICATION: lambda v, c: "If trust verified",
    ConstraintKey.AREA_CONCENTRATION: (
        lambda v, c: f"If fewer than {v.expected} holdings in {c.area}"
    ),
}


@dataclass(frozen=True)
class Counterfactual:
    candidate_id: str
    title: str
    score: int
    reason_codes: list[str] = field(default_factory=list)
    reason_labels: list[str] = field(default_factory=list)
    violated_constraints: list[ConstraintViolation] = field(default_factory=list)
    what_would_change_my_mind: list[str] | None = None
    details: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "title": self.title,
            "score": self.score,
            "reason_codes": list(self.reason_codes),
            "reason_labels": list(self.reason_labels),
            "violated_constraints": [v.to_dict() for v in self.violated_constraints],
            "what_would_change_my_mind": (
                list(self.what_would_change_my_mind)
                if self.what_would_change_my_mind is not None
                else None
            ),
            "details": self.details,
        }


def what_would_change_my_mind(
    evaluation: ConstraintEvaluation, candidate: Candidate
) -> list[str]:
    sentences: list[str] = []
    for violation in evaluation.violations:
        if not violation.is_hard:
            continue
        template = _TEMPLATES.get(violation.key)
        if template is not None:
            sentences.append(template(violation, candidate))
    return sentences


def explain(
    candidate: Candidate, evaluation: ConstraintEvaluation, score: int
) -> Counterfactual:
    labels = evaluation.reason_labels
    sentences = what_would_change_my_mind(evaluation, candidate)
    return Counterfactual(
        candidate_id=candidate.id,
        title=candidate.title,
        score=score,
        reason_codes=evaluation.reason_codes,
        reason_labels=labels,
        violated_constraints=list(evaluation.violations),
        what_would_change_my_mind=sentences or None,
        details=(
            f"This property scored {score} but was excluded due to: {', '.join(labels)}"
        ),
    )
