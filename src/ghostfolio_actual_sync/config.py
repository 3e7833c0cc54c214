"""Configuration loader and validation for sync settings."""

from pathlib import Path
from typing import Any, Mapping, Optional
import logging
import os

import yaml
from pydantic import BaseModel, Field

from .models.sync import AccountMapping
from .reconciliation.notes import RECONCILIATION_PAYEE, RECONCILIATION_TAG
from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAMES = ("config.yaml", "config.yml", "config.json")

# Environment variable -> (section, key). Earlier names win over aliases.
ENV_OVERRIDES: list[tuple[str, tuple[str, str]]] = [
    ("GHOSTFOLIO_BASE_URL", ("ghostfolio", "base_url")),
    ("GHOSTFOLIO_ACCESS_TOKEN", ("ghostfolio", "access_token")),
    ("GHOSTFOLIO_PASSWORD", ("ghostfolio", "access_token")),
    ("ACTUAL_BASE_URL", ("actual", "base_url")),
    ("ACTUAL_API_KEY", ("actual", "api_key")),
    ("ACTUAL_PASSWORD", ("actual", "api_key")),
    ("ACTUAL_BUDGET_ID", ("actual", "budget_id")),
    ("ACTUAL_ENCRYPTION_PASSWORD", ("actual", "encryption_password")),
    ("LOG_LEVEL", ("logging", "level")),
]

# Flat keys used by older config.json files
LEGACY_KEYS: dict[str, tuple[str, str]] = {
    "ghostfolio_base_url": ("ghostfolio", "base_url"),
    "ghostfolio_password": ("ghostfolio", "access_token"),
    "ghostfolio_access_token": ("ghostfolio", "access_token"),
    "trigger_fear_and_greed": ("ghostfolio", "trigger_fear_and_greed"),
    "actual_base_url": ("actual", "base_url"),
    "actual_password": ("actual", "api_key"),
    "actual_budget_id": ("actual", "budget_id"),
    "log_level": ("logging", "level"),
}

REQUIRED_FIELDS = [
    ("ghostfolio", "base_url"),
    ("ghostfolio", "access_token"),
    ("actual", "base_url"),
    ("actual", "api_key"),
    ("actual", "budget_id"),
]


class GhostfolioConfig(BaseModel):
    """Connection settings for Ghostfolio."""

    base_url: Optional[str] = None
    access_token: Optional[str] = None
    trigger_fear_and_greed: bool = False
    refetch_delay_seconds: float = 3.0
    timeout_seconds: float = 30.0


class ActualConfig(BaseModel):
    """Connection settings for the Actual Budget HTTP API."""

    base_url: Optional[str] = None
    api_key: Optional[str] = None
    budget_id: Optional[str] = None
    encryption_password: Optional[str] = None
    timeout_seconds: float = 30.0


class ReconciliationSettings(BaseModel):
    """How reconciliation transactions are tagged and attributed."""

    tag: str = RECONCILIATION_TAG
    payee_name: str = RECONCILIATION_PAYEE


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


class SyncConfig(BaseModel):
    """Main configuration model for the sync."""

    ghostfolio: GhostfolioConfig = Field(default_factory=GhostfolioConfig)
    actual: ActualConfig = Field(default_factory=ActualConfig)
    account_mapping: dict[str, str] = Field(default_factory=dict)
    reconciliation: ReconciliationSettings = Field(default_factory=ReconciliationSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None

    @property
    def mappings(self) -> list[AccountMapping]:
        """Account mappings in configuration order."""
        return [
            AccountMapping(source_account_name=source, ledger_account_name=target)
            for source, target in self.account_mapping.items()
        ]

    def validate_required(self) -> None:
        """
        Check that every connection setting needed for a sync is present.

        Raises:
            ConfigurationError: Naming all missing settings
        """
        missing = [
            f"{section}.{key}"
            for section, key in REQUIRED_FIELDS
            if not getattr(getattr(self, section), key)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )
        if not self.account_mapping:
            logger.warning("No account_mapping configured; nothing will be reconciled")


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "ghostfolio": {
            "base_url": None,
            "access_token": None,
            "trigger_fear_and_greed": False,
            "refetch_delay_seconds": 3.0,
            "timeout_seconds": 30.0,
        },
        "actual": {
            "base_url": None,
            "api_key": None,
            "budget_id": None,
            "encryption_password": None,
            "timeout_seconds": 30.0,
        },
        "account_mapping": {},
        "reconciliation": {
            "tag": RECONCILIATION_TAG,
            "payee_name": RECONCILIATION_PAYEE,
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None,
        },
    }


def find_config_path(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[Path]:
    """
    Locate the configuration file.

    An explicit path wins, then $CONFIG_PATH, then a config file in the
    working directory.
    """
    if config_path is not None:
        return config_path

    environ = os.environ if environ is None else environ
    env_path = environ.get("CONFIG_PATH")
    if env_path:
        return Path(env_path)

    for name in DEFAULT_CONFIG_FILENAMES:
        candidate = Path(name)
        if candidate.exists():
            return candidate
    return None


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SyncConfig:
    """
    Load configuration from a YAML (or JSON) file, then apply environment overrides.

    Args:
        config_path: Path to configuration file (optional)
        environ: Environment mapping, defaults to os.environ

    Returns:
        SyncConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file cannot be read or is invalid
    """
    environ = os.environ if environ is None else environ
    config_dict = get_default_config()
    path = find_config_path(config_path, environ)

    if path is not None:
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        logger.info(f"Loading configuration from: {path}")
        try:
            with open(path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config {path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {path}")

        config_dict = _deep_merge(config_dict, _translate_legacy_keys(user_config))
        config_dict["config_file_path"] = str(path)
    else:
        logger.info("Using default configuration")

    config_dict = _apply_env_overrides(config_dict, environ)

    try:
        return SyncConfig(**config_dict)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _translate_legacy_keys(user_config: dict) -> dict:
    """Move flat keys from older config.json files into their sections."""
    result = {
        key: value
        for key, value in user_config.items()
        if key not in LEGACY_KEYS and key != "platform_account_mapping"
    }
    if "platform_account_mapping" in user_config:
        result.setdefault("account_mapping", user_config["platform_account_mapping"])

    # Nested values win; among flat aliases the first listed wins
    for key, (section, field) in LEGACY_KEYS.items():
        if user_config.get(key) is None:
            continue
        section_dict = dict(result.get(section) or {})
        if section_dict.get(field) is None:
            section_dict[field] = user_config[key]
        result[section] = section_dict

    return result


def _apply_env_overrides(config_dict: dict, environ: Mapping[str, str]) -> dict:
    """Environment variables take precedence over file values."""
    result = dict(config_dict)
    applied: set[tuple[str, str]] = set()

    for var, (section, key) in ENV_OVERRIDES:
        value = environ.get(var)
        if not value or (section, key) in applied:
            continue
        section_dict = dict(result.get(section) or {})
        section_dict[key] = value
        result[section] = section_dict
        applied.add((section, key))
        logger.debug(f"Configuration {section}.{key} overridden by ${var}")

    return result


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a sample configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()
    config_dict["ghostfolio"]["base_url"] = "https://ghostfolio.example.com"
    config_dict["ghostfolio"]["access_token"] = "your-ghostfolio-access-token"
    config_dict["actual"]["base_url"] = "http://localhost:5007"
    config_dict["actual"]["api_key"] = "your-actual-http-api-key"
    config_dict["actual"]["budget_id"] = "your-budget-sync-id"
    config_dict["account_mapping"] = {
        "Stocks & Shares ISA": "Investments: ISA",
        "Pension": "Investments: Pension",
    }

    yaml_content = """# Ghostfolio to Actual Budget Sync Configuration
# Environment variables (GHOSTFOLIO_BASE_URL, GHOSTFOLIO_ACCESS_TOKEN,
# ACTUAL_BASE_URL, ACTUAL_API_KEY, ACTUAL_BUDGET_ID, LOG_LEVEL) override these values.

"""
    yaml_content += yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
