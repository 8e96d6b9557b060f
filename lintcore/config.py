"""
Configuration management for the lintcore engine.

Configuration comes from a YAML file (``.lintcore.yml`` found by walking up
from the analyzed directory) layered over built-in defaults, with a few
switches that can also be flipped from the environment (``LINTCORE_*``).
"""

import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, List, Optional

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

logger = logging.getLogger(__name__)

VALID_SEVERITIES = ("info", "warn", "error")
CONFIG_NAMES = [".lintcore.yml", ".lintcore.yaml", "lintcore.yml", "lintcore.yaml"]


@dataclass
class EngineConfig:
    """Configuration for the lintcore engine."""

    # Rule selection (glob patterns over rule names)
    enabled_rules: List[str] = field(default_factory=lambda: ["*"])
    disabled_rules: List[str] = field(default_factory=list)

    # Rule severity overrides (rule name -> severity)
    rule_severities: Dict[str, str] = field(default_factory=dict)

    # Rule-specific configuration handed to rules through their context
    rule_configs: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    # None means no limit
    max_findings_per_file: Optional[int] = None

    # Raise on rule programming errors instead of degrading (debug runs)
    strict: bool = False

    collect_timing: bool = False
    honor_suppressions: bool = True

    def __post_init__(self):
        for name in ("enabled_rules", "disabled_rules"):
            patterns = getattr(self, name)
            if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
                raise ConfigError(f"{name} must be a list of rule name patterns, got {patterns!r}")
        for name in ("rule_severities", "rule_configs"):
            if not isinstance(getattr(self, name), dict):
                raise ConfigError(f"{name} must be a mapping keyed by rule name, "
                                  f"got {getattr(self, name)!r}")
        if self.max_findings_per_file is not None and (
                not isinstance(self.max_findings_per_file, int)
                or isinstance(self.max_findings_per_file, bool)):
            raise ConfigError(f"max_findings_per_file must be an integer, "
                              f"got {self.max_findings_per_file!r}")

        for rule_name, severity in self.rule_severities.items():
            if severity not in VALID_SEVERITIES:
                raise ConfigError(f"Invalid severity '{severity}' for rule '{rule_name}' "
                                  f"(expected one of {', '.join(VALID_SEVERITIES)})")
        if self.max_findings_per_file is not None and self.max_findings_per_file < 0:
            raise ConfigError("max_findings_per_file must be a non-negative integer")


class EngineSettings(BaseSettings):
    """
    Environment overrides.

    Environment variables:
    - LINTCORE_DEBUG: Enable strict mode (rule programming errors are fatal)
    - LINTCORE_CONFIG_PATH: Explicit configuration file
    - LINTCORE_TIMING: Collect per-rule timing
    """

    model_config = SettingsConfigDict(
        env_prefix="LINTCORE_",
        extra="ignore",
    )

    debug: bool = False
    config_path: Optional[str] = None
    timing: bool = False


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to config file (YAML). If None, uses defaults.

    Returns:
        EngineConfig instance

    Raises:
        ConfigError: If the file parses but does not describe a valid config
    """
    if not config_path or not os.path.exists(config_path):
        return EngineConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            file_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}; using default configuration")
        return EngineConfig()

    if not isinstance(file_config, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")

    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(file_config) - known)
    if unknown:
        raise ConfigError(f"{config_path}: unknown option(s) {', '.join(unknown)}")

    merged = asdict(EngineConfig())
    for key, value in file_config.items():
        if key in ("rule_severities", "rule_configs") and isinstance(value, dict):
            merged[key].update(value)
        else:
            merged[key] = value

    try:
        return EngineConfig(**merged)
    except TypeError as e:
        raise ConfigError(f"{config_path}: {e}") from e


def get_default_config() -> EngineConfig:
    """Get default configuration without loading from file."""
    return load_config(None)


def save_config(config: EngineConfig, config_path: str) -> None:
    """
    Save configuration to file.

    Args:
        config: EngineConfig to save
        config_path: Path where to save the config
    """
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(asdict(config), f, default_flow_style=False, indent=2)


def find_config_file(start_path: str = ".") -> Optional[str]:
    """
    Find configuration file by walking up the directory tree.

    Looks for files in this order:
    1. .lintcore.yml
    2. .lintcore.yaml
    3. lintcore.yml
    4. lintcore.yaml

    Args:
        start_path: Directory to start searching from

    Returns:
        Path to config file or None if not found
    """
    current_path = os.path.abspath(start_path)

    while True:
        for config_name in CONFIG_NAMES:
            config_path = os.path.join(current_path, config_name)
            if os.path.exists(config_path):
                return config_path

        parent_path = os.path.dirname(current_path)
        if parent_path == current_path:
            # Reached the root directory
            break
        current_path = parent_path

    return None


def apply_settings(config: EngineConfig, settings: EngineSettings) -> EngineConfig:
    """Layer environment switches over a loaded config."""
    overrides = {}
    if settings.debug:
        overrides["strict"] = True
    if settings.timing:
        overrides["collect_timing"] = True
    return replace(config, **overrides) if overrides else config


def resolve_config(start_path: str = ".", settings: Optional[EngineSettings] = None) -> EngineConfig:
    """Find, load and environment-adjust the configuration for ``start_path``."""
    settings = settings or EngineSettings()
    config_path = settings.config_path or find_config_file(start_path)
    logger.info(f"Using config: {config_path or 'defaults'}")
    return apply_settings(load_config(config_path), settings)


def get_rule_severity(rule_name: str, config: EngineConfig, default_severity: str = "info") -> str:
    """
    Get the configured severity for a rule, falling back to default.

    Args:
        rule_name: Rule name (e.g., "unsafe_html")
        config: Engine configuration
        default_severity: Fallback severity if not configured

    Returns:
        Severity level ("info", "warn", or "error")
    """
    return config.rule_severities.get(rule_name, default_severity)
