import os
import copy
import yaml
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

DEFAULTS: Dict[str, Any] = {
    "model": DEFAULT_MODEL,
    "base_url": DEFAULT_BASE_URL,
    "timeout": None,
    "prompt_template_file": None,
    "logging": {
        "file": "logs/ask.log",
        "level": "INFO",
        "shell_output": False,
        "levels": {},
    },
}

# Keys consumed by the application itself rather than forwarded to the model
NON_MODEL_KEYS = {"model", "base_url", "timeout", "prompt_template_file", "logging"}


class ConfigError(Exception):
    """Raised when the startup configuration is missing or invalid."""


@dataclass(frozen=True)
class ClientConfig:
    """Settings for the remote completion client, built once at startup."""

    api_key: str = field(repr=False)
    model: str
    base_url: str = DEFAULT_BASE_URL
    timeout: Optional[float] = None
    params: Dict[str, Any] = field(default_factory=dict)


class ConfigLoader:
    """Loads the YAML configuration and merges it with the environment."""

    def __init__(self, config_path: str, environ: Optional[Dict[str, str]] = None):
        self.config_path = Path(config_path)
        self.environ = os.environ if environ is None else environ
        self.config: Optional[Dict[str, Any]] = None

    def load(self) -> Dict[str, Any]:
        """Load configuration from YAML file, falling back to defaults."""
        config = copy.deepcopy(DEFAULTS)

        if not self.config_path.exists():
            logger.debug(f"Config file not found, using defaults: {self.config_path}")
            self.config = config
            return config

        try:
            with open(self.config_path, 'r', encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {self.config_path}: {e}") from e

        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file must contain a mapping: {self.config_path}")

        logging_section = loaded.pop("logging", None) or {}
        if not isinstance(logging_section, dict):
            raise ConfigError("Config field 'logging' must be a mapping")

        config.update(loaded)
        config["logging"].update(logging_section)

        if not config.get("model"):
            raise ConfigError("Missing required config field: model")

        self.config = config
        return config

    def get_config(self) -> Dict[str, Any]:
        """Get current configuration."""
        if self.config is None:
            self.load()
        return self.config

    def client_config(self) -> ClientConfig:
        """
        Build the client settings from config and environment.

        GEMINI_API_KEY is required; GEMINI_MODEL overrides the configured model.

        Raises:
            ConfigError: If the API key is absent or blank
        """
        config = self.get_config()

        api_key = (self.environ.get("GEMINI_API_KEY") or "").strip()
        if not api_key:
            raise ConfigError("GEMINI_API_KEY environment variable not set")

        model = (self.environ.get("GEMINI_MODEL") or "").strip() or config["model"]

        timeout = config.get("timeout")
        if timeout is not None:
            try:
                timeout = float(timeout)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid timeout value: {timeout!r}") from e

        params = {
            key: value
            for key, value in config.items()
            if key not in NON_MODEL_KEYS
        }

        return ClientConfig(
            api_key=api_key,
            model=model,
            base_url=config.get("base_url") or DEFAULT_BASE_URL,
            timeout=timeout,
            params=params,
        )

    def template_path(self) -> Optional[Path]:
        """Resolve the optional prompt template file relative to the config file."""
        template_file = self.get_config().get("prompt_template_file")
        if not template_file:
            return None
        path = Path(template_file)
        if not path.is_absolute():
            path = self.config_path.parent / path
        return path
