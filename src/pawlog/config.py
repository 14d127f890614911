"""Configuration management for Pawlog."""

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent

        # Stop if we reach filesystem root
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_toml(config_file: Path) -> Optional[dict]:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        # If config file is malformed, ignore it
        return None


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .pawlog/config.toml if it exists."""
    return _load_toml(repo_root / ".pawlog" / "config.toml")


def _section(data: Optional[dict], key: str) -> dict:
    if not data:
        return {}
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


class UrgencyThresholds(BaseModel):
    """Minute thresholds for the urgency ladder.

    ``attention`` and ``soon`` are minutes remaining before the expected time;
    ``just_went`` is the grace window after a potty break is logged.
    """

    just_went: int = Field(default=15, ge=0)
    attention: int = Field(default=20, ge=0)
    soon: int = Field(default=10, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_order(self) -> "UrgencyThresholds":
        if self.soon > self.attention:
            raise ValueError("soon threshold must not exceed attention threshold")
        return self


class PredictionConfig(BaseModel):
    """Tunable parameters for the potty gap estimator."""

    default_gap_minutes: int = Field(default=60, gt=0, description="Expected gap when there is no usable history")
    post_meal_multiplier: float = Field(default=0.75, gt=0.0, le=1.0)
    post_sleep_multiplier: float = Field(default=0.8, gt=0.0, le=1.0)
    post_meal_window_minutes: int = Field(default=30, ge=0)
    post_sleep_window_minutes: int = Field(default=20, ge=0)
    min_nap_minutes: int = Field(default=15, ge=0, description="Shorter naps do not count as a sleep trigger")
    day_start_hour: int = Field(default=7, ge=0, le=23)
    bedtime_hour: int = Field(default=23, ge=0, le=23)
    max_gap_minutes: int = Field(default=8 * 60, gt=0, description="Longer gaps count as overnight")
    filter_overnight: bool = Field(default=True)
    gap_statistic: Literal["median", "mean"] = Field(default="median")
    thresholds: UrgencyThresholds = Field(default_factory=UrgencyThresholds)

    model_config = {"frozen": True}

    def is_daytime_hour(self, hour: int) -> bool:
        if self.day_start_hour <= self.bedtime_hour:
            return self.day_start_hour <= hour < self.bedtime_hour
        # Bedtime after midnight
        return hour >= self.day_start_hour or hour < self.bedtime_hour


def _prediction_from_sources(section: dict) -> PredictionConfig:
    """Build PredictionConfig from a [prediction] table, with PAWLOG_* env overrides."""
    values: dict = {k: v for k, v in section.items() if k != "thresholds"}
    thresholds: dict = dict(_section(section, "thresholds"))

    env_map = {
        "PAWLOG_DEFAULT_GAP_MINUTES": ("default_gap_minutes", int),
        "PAWLOG_POST_MEAL_MULTIPLIER": ("post_meal_multiplier", float),
        "PAWLOG_POST_SLEEP_MULTIPLIER": ("post_sleep_multiplier", float),
        "PAWLOG_POST_MEAL_WINDOW_MINUTES": ("post_meal_window_minutes", int),
        "PAWLOG_POST_SLEEP_WINDOW_MINUTES": ("post_sleep_window_minutes", int),
        "PAWLOG_MIN_NAP_MINUTES": ("min_nap_minutes", int),
        "PAWLOG_DAY_START_HOUR": ("day_start_hour", int),
        "PAWLOG_BEDTIME_HOUR": ("bedtime_hour", int),
        "PAWLOG_MAX_GAP_MINUTES": ("max_gap_minutes", int),
        "PAWLOG_GAP_STATISTIC": ("gap_statistic", str),
    }
    for env_name, (field, cast) in env_map.items():
        raw = os.environ.get(env_name)
        if raw:
            values[field] = cast(raw.strip())
    if os.environ.get("PAWLOG_FILTER_OVERNIGHT") is not None:
        values["filter_overnight"] = _env_bool("PAWLOG_FILTER_OVERNIGHT", True)

    threshold_env = {
        "PAWLOG_JUST_WENT_MINUTES": "just_went",
        "PAWLOG_ATTENTION_MINUTES": "attention",
        "PAWLOG_SOON_MINUTES": "soon",
    }
    for env_name, field in threshold_env.items():
        raw = os.environ.get(env_name)
        if raw:
            thresholds[field] = int(raw.strip())

    return PredictionConfig(thresholds=UrgencyThresholds(**thresholds), **values)


class PawlogConfig(BaseModel):
    """Configuration for the Pawlog data directory and predictions."""

    data_dir: Path = Field(
        default_factory=lambda: Path(os.environ.get("PAWLOG_DATA_DIR", "./pawlog_data"))
    )
    prediction: PredictionConfig = Field(default_factory=PredictionConfig)

    model_config = {"frozen": False}

    @classmethod
    def from_env(cls, cli_data_dir: Optional[str] = None) -> "PawlogConfig":
        """Load configuration with the following precedence:

        1. CLI --data-dir option (data directory only)
        2. PAWLOG_* environment variables
        3. <data_dir>/config.toml
        4. repo-local .pawlog/config.toml (walk upward from CWD)
        5. Defaults

        Raises:
            pydantic.ValidationError: If a configured value is out of range
        """
        repo_config = _load_repo_config_data(_find_repo_root(Path.cwd())) or {}

        data_dir_value = cli_data_dir or os.environ.get("PAWLOG_DATA_DIR") or repo_config.get("data_dir")
        data_dir = Path(data_dir_value).expanduser().resolve() if data_dir_value else Path("./pawlog_data").resolve()

        data_config = _load_toml(data_dir / "config.toml") or {}
        section = {**_section(repo_config, "prediction"), **_section(data_config, "prediction")}
        thresholds = {
            **_section(_section(repo_config, "prediction"), "thresholds"),
            **_section(_section(data_config, "prediction"), "thresholds"),
        }
        if thresholds:
            section["thresholds"] = thresholds

        return cls(data_dir=data_dir, prediction=_prediction_from_sources(section))

    def to_toml_str(self) -> str:
        """Generate TOML configuration string."""
        p = self.prediction
        return f"""# Pawlog Configuration

[prediction]
default_gap_minutes = {p.default_gap_minutes}
post_meal_multiplier = {p.post_meal_multiplier}
post_sleep_multiplier = {p.post_sleep_multiplier}
post_meal_window_minutes = {p.post_meal_window_minutes}
post_sleep_window_minutes = {p.post_sleep_window_minutes}
min_nap_minutes = {p.min_nap_minutes}
day_start_hour = {p.day_start_hour}
bedtime_hour = {p.bedtime_hour}
max_gap_minutes = {p.max_gap_minutes}
filter_overnight = {str(p.filter_overnight).lower()}
gap_statistic = "{p.gap_statistic}"

# Minutes remaining (attention, soon) and grace after logging (just_went)
[prediction.thresholds]
just_went = {p.thresholds.just_went}
attention = {p.thresholds.attention}
soon = {p.thresholds.soon}
"""
