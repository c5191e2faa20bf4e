"""
Performance history for the adaptive ensemble.

One ``PredictionRecord`` is appended per settled match.  Records live in a
``TimeWindowCache`` (30-day retention by default) and feed the diagnostics:

- Rolling average error per model over the last K records
- Stability: max(0, 1 − sqrt(var(mean error per record)))
- Anomalies: records whose mean error is more than 2σ from the recent mean
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import numpy as np
import pandas as pd

from footcast.cache import TimeWindowCache, utc_now
from footcast.config import MODEL_IDS, EnsembleConfig
from footcast.utils import safe_num

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionRecord:
    timestamp: datetime
    errors: dict[str, float]
    weights: dict[str, float]
    learning_rate: float
    match: Optional[str] = field(default=None)

    @property
    def mean_error(self) -> float:
        if not self.errors:
            return 0.0
        return float(np.mean(list(self.errors.values())))

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "errors": dict(self.errors),
            "weights": dict(self.weights),
            "learning_rate": self.learning_rate,
            "match": self.match,
        }

    @classmethod
    def from_dict(cls, raw) -> Optional["PredictionRecord"]:
        """Parse an exported record; ``None`` when it is unusable."""
        if not isinstance(raw, dict):
            return None
        try:
            ts = datetime.fromisoformat(str(raw["timestamp"]))
        except (KeyError, ValueError):
            return None
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)

        def _floats(d) -> dict[str, float] | None:
            if not isinstance(d, dict):
                return None
            out = {k: safe_num(v) for k, v in d.items() if k in MODEL_IDS}
            if len(out) != len(MODEL_IDS) or any(v is None for v in out.values()):
                return None
            return out

        errors = _floats(raw.get("errors"))
        weights = _floats(raw.get("weights"))
        lr = safe_num(raw.get("learning_rate"))
        if errors is None or weights is None or lr is None:
            return None
        match = raw.get("match")
        return cls(ts, errors, weights, lr, str(match) if match is not None else None)


class PerformanceHistory:
    """
    Thread-safe, time-windowed log of adaptation records.

    Every read works on a snapshot, so diagnostics can run while the engine
    appends.

    Example usage:
        history = PerformanceHistory(EnsembleConfig())
        history.append(record)
        history.stability()
        history.detect_anomalies()
    """

    def __init__(self, config: EnsembleConfig | None = None,
                 clock: Callable[[], datetime] = utc_now):
        self.config = config or EnsembleConfig()
        self._store: TimeWindowCache[PredictionRecord] = TimeWindowCache(
            max_age=timedelta(days=self.config.history_days),
            max_size=self.config.history_max_records,
            clock=clock,
        )

    def __len__(self) -> int:
        return len(self._store)

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._store.clock

    def append(self, record: PredictionRecord) -> None:
        self._store.append(record, timestamp=record.timestamp)

    def load(self, records: list[PredictionRecord]) -> None:
        """Replace the contents; expired records are dropped on the way in."""
        self._store.clear()
        self._store.extend((r.timestamp, r) for r in records)

    def clear(self) -> None:
        self._store.clear()

    def recent(self, n: Optional[int] = None) -> list[PredictionRecord]:
        return self._store.values(n)

    # ----- diagnostics -----

    def average_errors(self, window: Optional[int] = None) -> dict[str, float]:
        """Mean error per model over the last ``window`` records (K = 20)."""
        recs = self.recent(window or self.config.stats_window)
        if not recs:
            return {}
        return {mid: float(np.mean([r.errors[mid] for r in recs])) for mid in MODEL_IDS}

    def average_error(self, window: Optional[int] = None) -> Optional[float]:
        recs = self.recent(window or self.config.stats_window)
        if not recs:
            return None
        return float(np.mean([r.mean_error for r in recs]))

    def stability(self, window: Optional[int] = None) -> float:
        recs = self.recent(window or self.config.stats_window)
        if len(recs) < 2:
            return 1.0
        var = float(np.var([r.mean_error for r in recs]))
        return max(0.0, 1.0 - float(np.sqrt(var)))

    def detect_anomalies(self) -> list[dict]:
        """Records in the last ``anomaly_window`` whose mean error is an outlier."""
        cfg = self.config
        recs = self.recent(cfg.anomaly_window)
        if len(recs) < cfg.anomaly_min_records:
            return []
        errs = np.array([r.mean_error for r in recs])
        mu, sd = float(errs.mean()), float(errs.std())
        if sd == 0:
            return []
        out = []
        for r, e in zip(recs, errs):
            z = (e - mu) / sd
            if abs(z) > cfg.anomaly_sigma:
                out.append({
                    "timestamp": r.timestamp.isoformat(),
                    "match": r.match,
                    "mean_error": float(e),
                    "deviation": float(z),
                })
        if out:
            log.info("performance anomalies: %d of last %d records", len(out), len(recs))
        return out

    # ----- export -----

    def to_frame(self) -> pd.DataFrame:
        """One row per record: timestamp, match, mean_error, learning_rate,
        then ``error_<id>`` and ``weight_<id>`` columns."""
        rows = []
        for r in self.recent():
            row = {"timestamp": r.timestamp, "match": r.match,
                   "mean_error": r.mean_error, "learning_rate": r.learning_rate}
            row.update({f"error_{k}": v for k, v in r.errors.items()})
            row.update({f"weight_{k}": v for k, v in r.weights.items()})
            rows.append(row)
        cols = (["timestamp", "match", "mean_error", "learning_rate"]
                + [f"error_{m}" for m in MODEL_IDS] + [f"weight_{m}" for m in MODEL_IDS])
        return pd.DataFrame(rows, columns=cols)

    def export(self, last: Optional[int] = None) -> list[dict]:
        return [r.to_dict() for r in self.recent(last or self.config.export_history)]

    def export_all(self) -> list[dict]:
        """Every retained record, oldest first."""
        return [r.to_dict() for r in self.recent()]
