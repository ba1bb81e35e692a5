# ABOUTME: Declares the tunable thresholds used by every analytics service.
# ABOUTME: Loads overrides from a YAML file into frozen configuration dataclasses.

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml


@dataclass(frozen=True)
class MemoryConfig:
    """Forgetting-curve and SM-2 scheduling constants."""

    default_decay_rate: float = 0.1
    min_decay_rate: float = 0.01
    max_decay_rate: float = 0.5
    target_retention: float = 0.85
    min_interval_days: int = 1
    max_interval_days: int = 365
    initial_ease_factor: float = 2.5
    min_ease_factor: float = 1.3
    second_interval_days: int = 6
    passing_quality: int = 3
    consistency_bonus_cap: float = 0.2
    recent_window_days: int = 30
    max_success_probability: float = 0.95
    overdue_multiplier: float = 1.5
    profile_limit: int = 10


@dataclass(frozen=True)
class TemporalConfig:
    """Minimum sample sizes and significance cutoffs for behavioural pattern detection."""

    min_data_points: int = 50
    confidence_threshold: float = 0.7
    min_active_hours: int = 8
    min_points_per_hour: int = 5
    rhythm_confidence_floor: float = 0.6
    min_active_weekdays: int = 5
    weekly_variance_threshold: float = 0.1
    min_sessions: int = 20
    micro_session_minutes: float = 5
    binge_session_minutes: float = 30
    micro_share_threshold: float = 0.4
    binge_share_threshold: float = 0.15
    wave_min_samples: int = 30
    wave_smoothing_window: int = 7
    wave_min_lag: int = 5
    wave_max_lag: int = 30
    wave_lag_step: int = 2
    wave_correlation_threshold: float = 0.5
    wave_confidence_floor: float = 0.6
    consistency_min_days: int = 14
    consistency_variance_threshold: float = 5
    rhythm_min_points_per_hour: int = 3
    fatigue_threshold_minutes: int = 45
    momentum_window_days: int = 14
    momentum_shift: float = 0.05
    breakthrough_window_days: int = 30
    breakthrough_min_samples: int = 20
    plateau_window_days: int = 21
    plateau_min_samples: int = 15


@dataclass(frozen=True)
class TimeSeriesConfig:
    """Sample-size and z-score cutoffs for generic metric analytics."""

    min_samples: int = 10
    anomaly_z_threshold: float = 2.0
    medium_z_threshold: float = 2.5
    high_z_threshold: float = 3.0
    trend_slope_threshold: float = 0.01
    min_daily_hours: int = 8
    min_weekly_days: int = 5
    min_correlation_samples: int = 5
    min_shared_hours: int = 3
    significance_sample_size: int = 30


@dataclass(frozen=True)
class AnalyticsConfig:
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    temporal: TemporalConfig = field(default_factory=TemporalConfig)
    timeseries: TimeSeriesConfig = field(default_factory=TimeSeriesConfig)


DEFAULT_CONFIG = AnalyticsConfig()

_SECTIONS = {
    "memory": MemoryConfig,
    "temporal": TemporalConfig,
    "timeseries": TimeSeriesConfig,
}


def config_from_dict(raw: Mapping[str, Any]) -> AnalyticsConfig:
    """
    Build an AnalyticsConfig from a nested mapping, keeping defaults for omitted keys.
    """

    sections: Dict[str, Any] = {}
    for section_name, values in (raw or {}).items():
        if section_name not in _SECTIONS:
            raise ValueError(f"Unsupported config section '{section_name}'. Expected one of: {', '.join(_SECTIONS)}.")
        section_cls = _SECTIONS[section_name]
        allowed = {f.name for f in fields(section_cls)}
        unknown = set(values or {}) - allowed
        if unknown:
            raise ValueError(f"Unsupported {section_name} config keys: {', '.join(sorted(unknown))}.")
        sections[section_name] = replace(section_cls(), **(values or {}))
    return replace(DEFAULT_CONFIG, **sections)


def load_config(config_path: Path) -> AnalyticsConfig:
    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}
    return config_from_dict(cfg)
