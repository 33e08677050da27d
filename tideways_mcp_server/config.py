"""Configuration management for Tideways MCP Server."""

import os
import json
from pathlib import Path
from typing import Optional, Dict, Any, Union, List
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import logging
from urllib.parse import urlparse

import yaml

try:
    import tomli
    TOML_AVAILABLE = True
except ImportError:
    TOML_AVAILABLE = False


DEFAULT_BASE_URL = "https://app.tideways.io/apps/api"


class ConfigurationError(Exception):
    """Raised when the server configuration is missing or invalid."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(
            "Configuration validation failed:\n" + "\n".join(errors)
        )


class TidewaysConfig(BaseModel):
    """Configuration for the Tideways API connection."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., description="Tideways API token")
    organization: str = Field(..., description="Tideways organization name")
    project: str = Field(..., description="Tideways project name")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Tideways API base URL")
    max_retries: int = Field(default=3, description="Maximum API retry attempts")
    request_timeout_ms: int = Field(default=30000, description="Request timeout in milliseconds")

    @field_validator('token', 'organization', 'project')
    @classmethod
    def validate_required_strings(cls, v: str) -> str:
        """Validate required string fields are not empty."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate that base_url is a properly formatted URL."""
        if not v:
            raise ValueError("base_url cannot be empty")

        if not v.startswith(('http://', 'https://')):
            v = f'https://{v}'

        parsed = urlparse(v)
        if not parsed.netloc:
            raise ValueError(f"Invalid base URL format: {v}")

        return v.rstrip('/')

    @field_validator('max_retries')
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """Validate max_retries is reasonable."""
        if v < 0 or v > 10:
            raise ValueError("max_retries must be between 0 and 10")
        return v

    @field_validator('request_timeout_ms')
    @classmethod
    def validate_request_timeout(cls, v: int) -> int:
        """Validate request_timeout_ms is at least one second."""
        if v < 1000:
            raise ValueError("request_timeout must be at least 1000ms")
        return v

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000


class AppConfig(BaseModel):
    """Main application configuration."""

    model_config = ConfigDict(frozen=True)

    tideways: TidewaysConfig
    log_level: str = Field(default="INFO", description="Logging level")


def load_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load configuration from a YAML, TOML or JSON file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger = logging.getLogger(__name__)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}

            elif config_path.suffix.lower() == '.toml':
                if not TOML_AVAILABLE:
                    raise ImportError("tomli is required for TOML config files. Install with: pip install tomli")
                return tomli.loads(f.read())

            elif config_path.suffix.lower() == '.json':
                return json.load(f) or {}

            else:
                raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    except Exception as e:
        logger.error(f"Failed to load config file {config_path}: {e}")
        raise


def find_config_file() -> Optional[Path]:
    """Find configuration file in standard locations."""
    search_paths = [
        Path.cwd() / "config.yaml",
        Path.cwd() / "config.yml",
        Path.cwd() / "config.toml",
        Path.cwd() / "config.json",
        Path.cwd() / ".tideways-mcp.yaml",
        Path.cwd() / ".tideways-mcp.yml",
        Path.cwd() / ".tideways-mcp.toml",
        Path.cwd() / ".tideways-mcp.json",
        Path.home() / ".config" / "tideways-mcp" / "config.yaml",
        Path.home() / ".config" / "tideways-mcp" / "config.yml",
        Path.home() / ".config" / "tideways-mcp" / "config.toml",
        Path.home() / ".config" / "tideways-mcp" / "config.json",
    ]

    for config_path in search_paths:
        if config_path.exists():
            return config_path

    return None


def merge_config(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge configuration dictionaries with override taking precedence."""
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value

    return merged


def _remove_none_values(d):
    if isinstance(d, dict):
        return {k: _remove_none_values(v) for k, v in d.items() if v is not None}
    return d


def _to_int(value: Any, name: str, errors: List[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be an integer, got: {value!r}")
        return None


def load_config(config_file: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load configuration from multiple sources with priority order.

    Priority (highest to lowest):
    1. Environment variables
    2. Specified config file (if provided)
    3. Auto-discovered config file
    4. Default values

    Raises:
        ConfigurationError: listing every missing or invalid setting
    """
    logger = logging.getLogger(__name__)

    config_data: Dict[str, Any] = {}

    if config_file:
        config_path = Path(config_file)
        if config_path.exists():
            config_data = load_config_file(config_path)
            logger.info(f"Loaded configuration from: {config_path}")
        else:
            raise FileNotFoundError(f"Specified config file not found: {config_path}")
    else:
        config_path = find_config_file()
        if config_path:
            config_data = load_config_file(config_path)
            logger.info(f"Auto-discovered configuration file: {config_path}")

    load_dotenv()

    env_config = _remove_none_values({
        "tideways": {
            "token": os.getenv("TIDEWAYS_TOKEN"),
            "organization": os.getenv("TIDEWAYS_ORG"),
            "project": os.getenv("TIDEWAYS_PROJECT"),
            "base_url": os.getenv("TIDEWAYS_BASE_URL"),
            "max_retries": os.getenv("TIDEWAYS_MAX_RETRIES"),
            "request_timeout_ms": os.getenv("TIDEWAYS_REQUEST_TIMEOUT"),
        },
        "log_level": os.getenv("LOG_LEVEL"),
    })

    final_config = merge_config(config_data, env_config)
    tideways_data = final_config.get("tideways", {}) or {}

    errors: List[str] = []
    if not tideways_data.get("token"):
        errors.append("TIDEWAYS_TOKEN environment variable is required")
    if not tideways_data.get("organization"):
        errors.append("TIDEWAYS_ORG environment variable is required")
    if not tideways_data.get("project"):
        errors.append("TIDEWAYS_PROJECT environment variable is required")

    max_retries = _to_int(tideways_data.get("max_retries", 3), "max_retries", errors)
    request_timeout_ms = _to_int(
        tideways_data.get("request_timeout_ms", 30000), "request_timeout", errors
    )

    if errors:
        raise ConfigurationError(errors)

    try:
        tideways_config = TidewaysConfig(
            token=tideways_data["token"],
            organization=tideways_data["organization"],
            project=tideways_data["project"],
            base_url=tideways_data.get("base_url", DEFAULT_BASE_URL),
            max_retries=max_retries,
            request_timeout_ms=request_timeout_ms,
        )
    except ValidationError as e:
        raise ConfigurationError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e

    return AppConfig(
        tideways=tideways_config,
        log_level=final_config.get("log_level", "INFO"),
    )
