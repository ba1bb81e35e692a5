# ABOUTME: Pearson correlation between pairs of metric kinds over shared UTC hour buckets.
# ABOUTME: Each series is averaged per hour before the coefficient is computed on the overlap.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

import pandas as pd

from src.common.config import DEFAULT_CONFIG, TimeSeriesConfig
from src.common.records import events_to_frame
from src.common.schemas import MetricEvent
from src.common.stats import pearson, round_half_up


@dataclass(frozen=True)
class MetricCorrelation:
    metric_a: str
    metric_b: str
    correlation: float
    significance: float
    sample_size: int


def correlate_metrics(
    events: Iterable[MetricEvent],
    config: TimeSeriesConfig = DEFAULT_CONFIG.timeseries,
) -> List[MetricCorrelation]:
    event_list = list(events)
    df = events_to_frame(event_list)
    if df.empty:
        return []

    df = df.assign(bucket=df["timestamp"].dt.strftime("%Y-%m-%dT%H"))
    kinds = list(dict.fromkeys(e.metric_kind for e in event_list))
    hourly = {kind: df[df["metric_kind"] == kind] for kind in kinds}

    correlations = []
    for i, kind_a in enumerate(kinds):
        for kind_b in kinds[i + 1 :]:
            result = _pair(hourly[kind_a], hourly[kind_b], kind_a, kind_b, config)
            if result is not None:
                correlations.append(result)
    return correlations


def _pair(
    frame_a: pd.DataFrame,
    frame_b: pd.DataFrame,
    kind_a: str,
    kind_b: str,
    config: TimeSeriesConfig,
) -> Optional[MetricCorrelation]:
    if len(frame_a) < config.min_correlation_samples or len(frame_b) < config.min_correlation_samples:
        return None

    means_a = frame_a.groupby("bucket")["value"].mean()
    means_b = frame_b.groupby("bucket")["value"].mean()
    shared = means_a.index.intersection(means_b.index)
    if len(shared) < config.min_shared_hours:
        return None

    coefficient = pearson(means_a.loc[shared].tolist(), means_b.loc[shared].tolist())
    return MetricCorrelation(
        metric_a=kind_a,
        metric_b=kind_b,
        correlation=round_half_up(coefficient, 4),
        significance=round_half_up(min(1.0, len(shared) / config.significance_sample_size), 2),
        sample_size=len(shared),
    )
