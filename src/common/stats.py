# ABOUTME: Shared numeric primitives used by the memory, temporal, and time-series services.
# ABOUTME: All helpers are total: empty or degenerate inputs resolve to 0.0 instead of NaN.

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def variance(values: Sequence[float]) -> float:
    """Population variance (ddof=0)."""

    if len(values) == 0:
        return 0.0
    return float(np.var(np.asarray(values, dtype=float)))


def std_dev(values: Sequence[float]) -> float:
    return math.sqrt(variance(values))


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with halves going up (2.5 -> 3, -2.5 -> -2) rather than to even."""

    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def moving_average(values: Sequence[float], window: int) -> np.ndarray:
    """
    Centered moving average truncated at the series edges.

    Each output i averages values[i - window // 2 : i + window // 2 + 1].
    """

    data = np.asarray(values, dtype=float)
    half = window // 2
    smoothed = np.empty(len(data), dtype=float)
    for i in range(len(data)):
        start = max(0, i - half)
        end = min(len(data), i + half + 1)
        smoothed[i] = data[start:end].mean()
    return smoothed


def autocorrelation(values: Sequence[float], lag: int) -> float:
    """Lag-k autocorrelation normalized by the total sum of squares."""

    data = np.asarray(values, dtype=float)
    if lag >= len(data):
        return 0.0
    centered = data - data.mean()
    denominator = float(np.sum(centered**2))
    if denominator == 0:
        return 0.0
    numerator = float(np.sum(centered[: len(data) - lag] * centered[lag:]))
    return numerator / denominator


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    if len(x) != len(y) or len(x) == 0:
        return 0.0
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    n = len(xs)
    numerator = n * float(np.sum(xs * ys)) - float(xs.sum()) * float(ys.sum())
    spread = (n * float(np.sum(xs**2)) - float(xs.sum()) ** 2) * (n * float(np.sum(ys**2)) - float(ys.sum()) ** 2)
    if spread <= 0:
        return 0.0
    return numerator / math.sqrt(spread)


def index_slope(values: Sequence[float]) -> float:
    """Ordinary least-squares slope of values against their positions 0..n-1."""

    n = len(values)
    if n < 2:
        return 0.0
    ys = np.asarray(values, dtype=float)
    xs = np.arange(n, dtype=float)
    x_sum = float(xs.sum())
    denominator = n * float(np.sum(xs**2)) - x_sum**2
    if denominator == 0:
        return 0.0
    return (n * float(np.sum(xs * ys)) - x_sum * float(ys.sum())) / denominator
