"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from pawlog.config import PawlogConfig, PredictionConfig, UrgencyThresholds

PAWLOG_ENV = [
    "PAWLOG_DATA_DIR",
    "PAWLOG_DEFAULT_GAP_MINUTES",
    "PAWLOG_POST_MEAL_MULTIPLIER",
    "PAWLOG_GAP_STATISTIC",
    "PAWLOG_FILTER_OVERNIGHT",
    "PAWLOG_SOON_MINUTES",
    "PAWLOG_ATTENTION_MINUTES",
]


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """Run from an empty repo root with no PAWLOG_* variables set."""
    for name in PAWLOG_ENV:
        monkeypatch.delenv(name, raising=False)
    (tmp_path / ".git").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults():
    cfg = PredictionConfig()
    assert cfg.default_gap_minutes == 60
    assert cfg.post_meal_multiplier == 0.75
    assert cfg.post_sleep_multiplier == 0.8
    assert cfg.gap_statistic == "median"
    assert cfg.thresholds == UrgencyThresholds(just_went=15, attention=20, soon=10)


def test_from_env_defaults(clean_env):
    config = PawlogConfig.from_env()
    assert config.data_dir == (clean_env / "pawlog_data").resolve()
    assert config.prediction == PredictionConfig()


def test_cli_data_dir_wins(clean_env, monkeypatch):
    monkeypatch.setenv("PAWLOG_DATA_DIR", str(clean_env / "from_env"))
    config = PawlogConfig.from_env(cli_data_dir=str(clean_env / "from_cli"))
    assert config.data_dir == (clean_env / "from_cli").resolve()


def test_env_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("PAWLOG_DEFAULT_GAP_MINUTES", "75")
    monkeypatch.setenv("PAWLOG_GAP_STATISTIC", "mean")
    monkeypatch.setenv("PAWLOG_FILTER_OVERNIGHT", "false")
    monkeypatch.setenv("PAWLOG_SOON_MINUTES", "5")

    cfg = PawlogConfig.from_env().prediction

    assert cfg.default_gap_minutes == 75
    assert cfg.gap_statistic == "mean"
    assert cfg.filter_overnight is False
    assert cfg.thresholds.soon == 5
    assert cfg.thresholds.attention == 20


def test_data_dir_config_overrides_repo_config(clean_env):
    repo_cfg = clean_env / ".pawlog"
    repo_cfg.mkdir()
    (repo_cfg / "config.toml").write_text(
        'data_dir = "pups"\n\n[prediction]\ndefault_gap_minutes = 50\nmin_nap_minutes = 20\n'
    )
    data_dir = clean_env / "pups"
    data_dir.mkdir()
    (data_dir / "config.toml").write_text(
        "[prediction]\ndefault_gap_minutes = 45\n\n[prediction.thresholds]\nattention = 25\n"
    )

    config = PawlogConfig.from_env()

    assert config.data_dir == data_dir.resolve()
    assert config.prediction.default_gap_minutes == 45
    assert config.prediction.min_nap_minutes == 20
    assert config.prediction.thresholds.attention == 25


def test_env_beats_toml(clean_env, monkeypatch):
    (clean_env / "pawlog_data").mkdir()
    (clean_env / "pawlog_data" / "config.toml").write_text("[prediction]\ndefault_gap_minutes = 45\n")
    monkeypatch.setenv("PAWLOG_DEFAULT_GAP_MINUTES", "30")

    assert PawlogConfig.from_env().prediction.default_gap_minutes == 30


def test_malformed_toml_is_ignored(clean_env):
    (clean_env / "pawlog_data").mkdir()
    (clean_env / "pawlog_data" / "config.toml").write_text("[prediction\nbroken")

    assert PawlogConfig.from_env().prediction == PredictionConfig()


def test_invalid_values_raise(clean_env, monkeypatch):
    monkeypatch.setenv("PAWLOG_GAP_STATISTIC", "mode")
    with pytest.raises(ValidationError):
        PawlogConfig.from_env()


def test_soon_must_not_exceed_attention():
    with pytest.raises(ValidationError):
        UrgencyThresholds(attention=10, soon=20)


def test_toml_round_trip(clean_env):
    data_dir = clean_env / "pawlog_data"
    data_dir.mkdir()
    custom = PawlogConfig(
        data_dir=data_dir,
        prediction=PredictionConfig(default_gap_minutes=55, gap_statistic="mean"),
    )
    (data_dir / "config.toml").write_text(custom.to_toml_str())

    assert PawlogConfig.from_env().prediction == custom.prediction


@pytest.mark.parametrize(
    "day_start,bedtime,hour,expected",
    [
        (7, 23, 7, True),
        (7, 23, 22, True),
        (7, 23, 23, False),
        (7, 23, 3, False),
        (7, 1, 0, True),
        (7, 1, 1, False),
        (7, 1, 6, False),
    ],
)
def test_is_daytime_hour(day_start, bedtime, hour, expected):
    cfg = PredictionConfig(day_start_hour=day_start, bedtime_hour=bedtime)
    assert cfg.is_daytime_hour(hour) is expected
