"""Contract violations raised by the prediction engine.

Data-quality problems never raise; they resolve to documented fallbacks.
"""


class FootcastError(Exception):
    pass


class NoPredictionError(FootcastError, RuntimeError):
    """``update_weights`` was called with no prediction to learn from."""


class EnsembleContractError(FootcastError, ValueError):
    """Sub-model results do not line up with the weight ids."""
