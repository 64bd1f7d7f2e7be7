"""
Configuration module for water temperature estimation.

Loads configuration from an optional JSON file and environment variables.
"""

import json
import os
from typing import Dict, Any, List, Optional
from pathlib import Path

from . import constants


DEFAULT_CONFIG: Dict[str, Any] = {
    "model": {
        "version": constants.MODEL_VERSION,
        "persist_memo": True,
    },
    "calibration": {
        "trusted_report_floor": False,
        "report_radius_miles": constants.REPORT_RADIUS_MILES,
        "report_days_back": constants.REPORT_DAYS_BACK,
    },
    "guardrail": {
        "cold_season_enabled": False,
        "sources": ["LIVE"],
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}


def _parse_bool(value: str) -> bool:
    """Parse a boolean flag from an environment string."""
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration manager for the engine."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration JSON file. If None, uses WATER_TEMP_CONFIG
                        env var; when neither is set the built-in defaults are used
        """
        self.config_file = config_file or os.getenv("WATER_TEMP_CONFIG")
        self.config: Dict[str, Any] = json.loads(json.dumps(DEFAULT_CONFIG))
        self._load_config()
        self._override_from_env()
        self._validate_config()

    def _load_config(self) -> None:
        """Load configuration from JSON file and merge it over the defaults."""
        if not self.config_file:
            return

        config_path = Path(self.config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        with open(config_path, "r", encoding="utf-8") as f:
            loaded = json.load(f)

        for section, values in loaded.items():
            if isinstance(values, dict) and isinstance(self.config.get(section), dict):
                self.config[section].update(values)
            else:
                self.config[section] = values

    def _override_from_env(self) -> None:
        """Override configuration with environment variables."""
        if os.getenv("WATER_TEMP_LOG_LEVEL"):
            self.config["logging"]["level"] = os.getenv("WATER_TEMP_LOG_LEVEL")

        if os.getenv("WATER_TEMP_LOG_FILE"):
            self.config["logging"]["file"] = os.getenv("WATER_TEMP_LOG_FILE")

        if os.getenv("WATER_TEMP_PERSIST_MEMO"):
            self.config["model"]["persist_memo"] = _parse_bool(os.getenv("WATER_TEMP_PERSIST_MEMO"))

        if os.getenv("WATER_TEMP_TRUSTED_REPORT_FLOOR"):
            self.config["calibration"]["trusted_report_floor"] = _parse_bool(
                os.getenv("WATER_TEMP_TRUSTED_REPORT_FLOOR")
            )

        if os.getenv("WATER_TEMP_COLD_SEASON_GUARDRAIL"):
            self.config["guardrail"]["cold_season_enabled"] = _parse_bool(
                os.getenv("WATER_TEMP_COLD_SEASON_GUARDRAIL")
            )

    def _validate_config(self) -> None:
        """Validate that configuration values are usable."""
        errors = []

        if self.report_radius_miles <= 0:
            errors.append("calibration.report_radius_miles must be positive")

        if self.report_days_back <= 0:
            errors.append("calibration.report_days_back must be positive")

        for key in (
            "model.persist_memo",
            "calibration.trusted_report_floor",
            "guardrail.cold_season_enabled",
        ):
            if not isinstance(self.get(key), bool):
                errors.append(f"{key} must be a boolean")

        if not isinstance(self.get("guardrail.sources", []), list):
            errors.append("guardrail.sources must be a list of source tags")

        if errors:
            raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key (supports dot notation).

        Args:
            key: Configuration key (e.g., 'calibration.report_radius_miles')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    @property
    def model_version(self) -> str:
        """Get the model version stamped on memo entries."""
        return str(self.get("model.version", constants.MODEL_VERSION))

    @property
    def persist_memo(self) -> bool:
        """Check if same-day estimates should be persisted."""
        return self.get("model.persist_memo", True)

    @property
    def trusted_report_floor(self) -> bool:
        """Check if the trusted-report blend floor is enabled."""
        return self.get("calibration.trusted_report_floor", False)

    @property
    def report_radius_miles(self) -> float:
        """Get the crowd report search radius in miles."""
        return float(self.get("calibration.report_radius_miles", constants.REPORT_RADIUS_MILES))

    @property
    def report_days_back(self) -> int:
        """Get how many days back crowd reports are considered."""
        return int(self.get("calibration.report_days_back", constants.REPORT_DAYS_BACK))

    @property
    def cold_season_guardrail(self) -> bool:
        """Check if the cold-season guardrail is enabled."""
        return self.get("guardrail.cold_season_enabled", False)

    @property
    def guardrail_sources(self) -> List[str]:
        """Get payload source tags the cold-season guardrail applies to."""
        return [str(tag).upper() for tag in self.get("guardrail.sources", [])]

    @property
    def log_level(self) -> str:
        """Get logging level."""
        return self.get("logging.level", "INFO")

    @property
    def log_file(self) -> Optional[str]:
        """Get log file path, if file logging is enabled."""
        return self.get("logging.file")

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(file={self.config_file}, version={self.model_version})"
