import os
from pathlib import Path
from string import Template
from typing import Any, Dict, Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from jira_scraper.models.config import ScraperConfig

logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Configuration validation failed"""

    pass


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Builds the scraper configuration from YAML, environment and overrides"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.env_loaded = False
        self._config: Optional[ScraperConfig] = None

    def load_config(
        self, overrides: Optional[Dict[str, Any]] = None
    ) -> ScraperConfig:
        """Load and validate configuration.

        Precedence is overrides, then the YAML file, then model defaults.

        Args:
            overrides: Nested values (usually CLI flags) applied last

        Raises:
            FileNotFoundError: config_path was given but does not exist
            ConfigValidationError: YAML or values are invalid
        """
        if self._config and not overrides:
            return self._config

        # 1. Load environment
        if not self.env_loaded:  # pragma: no cover
            load_dotenv()
            self.env_loaded = True

        # 2. Read YAML, if any
        config_data: Dict[str, Any] = {}
        if self.config_path is not None:
            config_data = self._read_file(self.config_path)

        # 3. Apply overrides
        if overrides:
            config_data = _deep_merge(config_data, overrides)

        # 4. Validate with Pydantic
        try:
            self._config = ScraperConfig(**config_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            path=str(self.config_path) if self.config_path else None,
            projects=self._config.projects,
        )
        return self._config

    @staticmethod
    def _read_file(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            raw_content = path.read_text()
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        try:
            # safe_substitute leaves unknown ${VAR} references untouched
            substituted = Template(raw_content).safe_substitute(os.environ)
            data = yaml.safe_load(substituted)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Failed to parse YAML: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigValidationError(
                f"Config root must be a mapping, got {type(data).__name__}"
            )
        return data
