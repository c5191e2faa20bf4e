"""Sub-models of the ensemble.

Five experts, each producing a full market probability vector plus goal
expectancy for one match.  ``build_experts`` returns them keyed by model id
in ``MODEL_IDS`` order.
"""

from footcast.config import MODEL_IDS, EnsembleConfig
from footcast.features import FeatureProvider
from footcast.models.experts._base import Expert, _f, _norm3, clamp_outputs, clip_outputs
from footcast.models.experts.market import MarketExpert
from footcast.models.experts.pattern import PatternExpert
from footcast.models.experts.poisson_expert import PoissonExpert
from footcast.models.experts.regression import RegressionExpert
from footcast.models.experts.trend import TrendExpert

EXPERT_CLASSES: dict[str, type[Expert]] = {
    cls.name: cls
    for cls in (PoissonExpert, RegressionExpert, PatternExpert, TrendExpert, MarketExpert)
}


def build_experts(features: FeatureProvider | None = None,
                  config: EnsembleConfig | None = None) -> dict[str, Expert]:
    """One instance of every expert, sharing a feature provider and config."""
    return {mid: EXPERT_CLASSES[mid](features=features, config=config) for mid in MODEL_IDS}


__all__ = [
    "Expert",
    "EXPERT_CLASSES",
    "build_experts",
    "clamp_outputs",
    "clip_outputs",
    "_f",
    "_norm3",
    "PoissonExpert",
    "RegressionExpert",
    "PatternExpert",
    "TrendExpert",
    "MarketExpert",
]
