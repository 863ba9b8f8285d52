"""Infer likely job directions from resume text by weighted keyword scoring."""
from __future__ import annotations

from dataclasses import dataclass

from jobmatcher.models import Resume

# Categories are declared alphabetically by id; sorting is stable, so equal
# scores come out in this order.
CATEGORY_LABELS: dict[str, str] = {
    "cleaning": "Cleaning / maintenance",
    "construction": "Construction / general labor",
    "customer_service": "Customer service / front desk",
    "driving": "Delivery / driving",
    "food_service": "Food service",
    "forklift": "Forklift operator",
    "healthcare_support": "Healthcare support (non-clinical)",
    "retail": "Retail",
    "warehouse": "Warehouse / logistics",
}

# (category, weight, keywords): the weight is added once if any keyword appears.
KEYWORD_GROUPS: list[tuple[str, int, tuple[str, ...]]] = [
    ("warehouse", 3, ("warehouse",)),
    ("warehouse", 2, ("shipping", "receiving")),
    ("warehouse", 2, ("inventory", "picker", "packing")),
    ("forklift", 4, ("forklift",)),
    ("forklift", 2, ("pallet", "reach truck")),
    ("construction", 3, ("construction", "laborer", "framing")),
    ("food_service", 3, ("restaurant", "kitchen", "dishwasher")),
    ("food_service", 2, ("cook", "prep", "server")),
    ("retail", 3, ("cashier", "stocking", "merchandising")),
    ("retail", 1, ("sales", "store")),
    ("customer_service", 3, ("customer service", "call center", "front desk")),
    ("driving", 3, ("driver", "delivery", "route")),
    ("driving", 2, ("cdl", "truck")),
    ("cleaning", 3, ("janitor", "cleaning", "maintenance")),
    ("cleaning", 2, ("custodian", "housekeeping")),
    ("healthcare_support", 2, ("patient", "clinic", "hospital")),
    ("healthcare_support", 3, ("cna", "medical assistant")),
]

HIGH_CONFIDENCE_SCORE = 4
MAX_HINTS = 3


@dataclass(frozen=True)
class DirectionHint:
    id: str
    label: str
    confidence: str  # "high" | "medium"
    score: int


def resume_text(resume: Resume) -> str:
    parts: list[str] = []
    if resume.summary:
        parts.append(resume.summary)
    if resume.skills:
        parts.append(resume.skills)
    for exp in resume.work_experience:
        for value in (exp.position, exp.description, exp.achievements):
            if value:
                parts.append(value)
    return " ".join(parts).lower()


def score_categories(text: str) -> dict[str, int]:
    scores = {category: 0 for category in CATEGORY_LABELS}
    for category, weight, keywords in KEYWORD_GROUPS:
        if any(k in text for k in keywords):
            scores[category] += weight
    return scores


def infer_direction_hints(resume: Resume | None) -> list[DirectionHint]:
    if resume is None:
        return []
    scores = score_categories(resume_text(resume))
    ranked = sorted(
        ((cat, score) for cat, score in scores.items() if score > 0),
        key=lambda item: -item[1],
    )
    return [
        DirectionHint(
            id=cat,
            label=CATEGORY_LABELS[cat],
            confidence="high" if score >= HIGH_CONFIDENCE_SCORE else "medium",
            score=score,
        )
        for cat, score in ranked[:MAX_HINTS]
    ]
