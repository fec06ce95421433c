"""Lookup of the available scoring models by name."""

from __future__ import annotations

from typing import Dict, Optional, Type

from backend.ml.rules import RuleEnsembleScorer
from backend.ml.scorer import GradientBoostSimScorer, ScoringModel

MODELS: Dict[str, Type[ScoringModel]] = {
    GradientBoostSimScorer.name: GradientBoostSimScorer,
    RuleEnsembleScorer.name: RuleEnsembleScorer,
}


def get_model(name: str, random_state: Optional[int] = None) -> ScoringModel:
    try:
        model_cls = MODELS[name]
    except KeyError:
        raise ValueError(f"Unknown scoring model: {name}") from None
    return model_cls(random_state=random_state)
