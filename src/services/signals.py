"""Text-derived paper signals: evidence quality and math depth.

Both work on the title/abstract only (Tier 0) and are pure functions, so
they run identically inside the enricher and in tests.
"""

import re
from typing import Dict

from src.models.paper import EvidenceSignals

# Evidence weights (sum to 1.0), applied in this order
EVIDENCE_WEIGHTS: Dict[str, float] = {
    "has_baselines": 0.30,
    "has_ablations": 0.20,
    "has_code": 0.20,
    "has_data": 0.15,
    "has_multiple_evals": 0.15,
}

CODE_PATTERN = re.compile(r"github|code available|open.?source", re.IGNORECASE)
DATA_PATTERN = re.compile(r"dataset|data available", re.IGNORECASE)
BASELINE_PATTERN = re.compile(r"baseline|compared to|compare against", re.IGNORECASE)
ABLATION_PATTERN = re.compile(r"ablation|ablated", re.IGNORECASE)
EVAL_PATTERN = re.compile(r"dataset|benchmark", re.IGNORECASE)
MIN_EVAL_MENTIONS = 2

LATEX_COMMAND_PATTERN = re.compile(r"\\[a-z]+")
# Calibrates commands-per-character into a [0, 1]-ish range
LATEX_DENSITY_SCALE = 100
LATEX_WEIGHT = 0.6
THEORY_KEYWORD_WEIGHT = 0.4
THEORY_KEYWORDS = (
    "theorem",
    "proof",
    "lemma",
    "corollary",
    "convergence",
    "optimization",
    "gradient descent",
    "loss function",
    "regularization",
)


def evidence_score(signals: EvidenceSignals) -> float:
    """Additive evidence score in [0, 1].

    Rounded to 10 places so sums like 0.30 + 0.20 + 0.15 compare equal to
    their decimal value (0.65).
    """
    total = 0.0
    for name, weight in EVIDENCE_WEIGHTS.items():
        if getattr(signals, name):
            total += weight
    return round(total, 10)


def detect_evidence_signals(abstract: str) -> EvidenceSignals:
    """Detect evidence indicators in an abstract (case-insensitive)."""
    text = abstract or ""
    return EvidenceSignals(
        has_code=bool(CODE_PATTERN.search(text)),
        has_data=bool(DATA_PATTERN.search(text)),
        has_baselines=bool(BASELINE_PATTERN.search(text)),
        has_ablations=bool(ABLATION_PATTERN.search(text)),
        has_multiple_evals=len(EVAL_PATTERN.findall(text)) >= MIN_EVAL_MENTIONS,
    )


def estimate_math_depth(title: str, abstract: str) -> float:
    """Estimate how mathematically heavy a paper is, in [0, 1].

    Combines LaTeX command density with the share of theory keywords present.
    """
    text = f"{title} {abstract}".lower()
    if not text.strip():
        return 0.0

    latex_density = len(LATEX_COMMAND_PATTERN.findall(text)) / len(text)
    matched = sum(1 for kw in THEORY_KEYWORDS if kw in text)
    keyword_score = matched / len(THEORY_KEYWORDS)

    score = (
        LATEX_WEIGHT * latex_density * LATEX_DENSITY_SCALE
        + THEORY_KEYWORD_WEIGHT * keyword_score
    )
    return min(1.0, score)
