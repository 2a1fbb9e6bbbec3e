
from __future__ import annotations
from .registry import register
from ..adapters.cognition import ThresholdRuleEngine
from ..adapters.demographic import ProbabilityTableDemographic
from ..adapters.landscape import InMemoryLandscape
from ..core.config import AhdsConfig
from ..io.loaders import build_landscape
from ..models.probabilities import Probabilities

@register("in_memory")
def in_memory_landscape(cfg: AhdsConfig) -> InMemoryLandscape:
    return build_landscape(cfg)

@register("threshold_rules")
def threshold_rules(*, innovation_step: float = 5.0, target_variable: str = "MaturityTarget",
                    innovate: bool = True) -> ThresholdRuleEngine:
    return ThresholdRuleEngine(innovation_step=innovation_step, target_variable=target_variable, innovate=innovate)

@register("probability_tables")
def probability_tables(probabilities: Probabilities, *, seed: int = 42, **params) -> ProbabilityTableDemographic:
    return ProbabilityTableDemographic(probabilities, seed=seed, **params)
