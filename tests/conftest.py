"""Pytest fixtures for Pawlog tests."""

from datetime import datetime, timezone

import pytest

from pawlog.config import PawlogConfig, PredictionConfig
from pawlog.event_log import EventLog
from pawlog.paths import DataPaths


@pytest.fixture
def data_dir(tmp_path):
    """Create a temporary data directory for testing.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to temporary data directory
    """
    root = tmp_path / "pawlog_data"
    root.mkdir()
    return root


@pytest.fixture
def pawlog_config(data_dir):
    """Create PawlogConfig pointing to the temporary data directory."""
    return PawlogConfig(data_dir=data_dir)


@pytest.fixture
def data_paths(pawlog_config):
    """Create DataPaths with an empty event log."""
    paths = DataPaths.from_config(pawlog_config)
    paths.events_file.touch()
    return paths


@pytest.fixture
def event_log(data_paths):
    return EventLog(data_paths.events_file)


@pytest.fixture
def prediction_config():
    """Default prediction config with overnight filtering off so test gaps are never dropped."""
    return PredictionConfig(filter_overnight=False)


@pytest.fixture
def now():
    """Fixed reference time: 2026-03-02 12:00 UTC."""
    return datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
