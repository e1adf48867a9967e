import os
from pathlib import Path
from string import Template
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from src.models.config import CuratorConfig
from src.utils.exceptions import ConfigurationError

logger = structlog.get_logger()

GOOGLE_API_KEY_ENV = "GOOGLE_API_KEY"
OLLAMA_BASE_URL_ENV = "OLLAMA_BASE_URL"


class ConfigValidationError(ConfigurationError):
    """Configuration validation failed"""

    pass


class ConfigManager:
    """Loads the curator configuration from YAML and the environment"""

    def __init__(self, config_path: str = "config/curator.yaml"):
        self.config_path = Path(config_path)
        self.env_loaded = False
        self._config: Optional[CuratorConfig] = None

    def load_config(self) -> CuratorConfig:
        """Load and validate configuration

        ``${VAR}`` references in the YAML are substituted from the
        environment (``.env`` included). Provider credentials missing from the
        file are taken from ``GOOGLE_API_KEY`` / ``OLLAMA_BASE_URL``.

        Raises:
            FileNotFoundError: If the config file does not exist
            ConfigValidationError: If the file cannot be parsed or validated
        """
        if self._config:
            return self._config

        # 1. Load environment
        if not self.env_loaded:  # pragma: no cover
            load_dotenv()
            self.env_loaded = True

        # 2. Check file existence
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        # 3. Read YAML
        try:
            raw_content = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        # 4. Substitute env vars
        try:
            substituted = Template(raw_content).safe_substitute(os.environ)
            config_data = yaml.safe_load(substituted) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Failed to parse YAML or substitute variables: {e}"
            )
        if not isinstance(config_data, dict):
            raise ConfigValidationError("Configuration root must be a mapping")

        self._apply_env_defaults(config_data)

        # 5. Validate with Pydantic
        try:
            self._config = CuratorConfig(**config_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            path=str(self.config_path),
            users=len(self._config.users),
            categories=self._config.scout.default_categories,
        )
        return self._config

    def _apply_env_defaults(self, config_data: dict) -> None:
        providers = config_data.setdefault("providers", {}) or {}
        config_data["providers"] = providers
        if not providers.get("google_api_key") and os.environ.get(GOOGLE_API_KEY_ENV):
            providers["google_api_key"] = os.environ[GOOGLE_API_KEY_ENV]
        if not providers.get("ollama_base_url") and os.environ.get(OLLAMA_BASE_URL_ENV):
            providers["ollama_base_url"] = os.environ[OLLAMA_BASE_URL_ENV]
        # Unresolved ${VAR} placeholders mean the variable is unset
        key = providers.get("google_api_key")
        if isinstance(key, str) and key.startswith("${"):
            providers["google_api_key"] = None
