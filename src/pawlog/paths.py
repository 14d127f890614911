"""Path management for the Pawlog data directory."""

from pathlib import Path

from .config import PawlogConfig


class DataPaths:
    """Manages paths within a Pawlog data directory."""

    def __init__(self, data_root: Path):
        """Initialize data paths from root directory.

        Args:
            data_root: Root directory holding the event log and config
        """
        self.root = data_root

        self.events_file = data_root / "events.jsonl"
        self.config_file = data_root / "config.toml"

    @classmethod
    def from_config(cls, config: PawlogConfig) -> "DataPaths":
        """Create DataPaths from a PawlogConfig."""
        return cls(config.data_dir)

    def is_initialized(self) -> bool:
        return self.root.exists() and self.events_file.exists()
