"""
Bridge configuration management.

Configuration is assembled from several sources with a clear priority order:

    1. Command-line flags (highest priority) - applied by ``cli.py``
    2. Environment variables - for containerized deployments
    3. Config file (config/bridge.ini, or an explicit path)
    4. Built-in defaults (lowest priority) - sensible fallbacks

The BridgeConfig dataclass provides typed access to all settings.

Usage:
    from mapgen_bridge.config import load_config

    cfg = load_config()
    print(cfg.econ.port)
    print(cfg.generation.max_retries)

Environment Variable Mapping:
    MAPGEN_ECON_HOST       -> econ.host
    MAPGEN_ECON_PORT       -> econ.port
    MAPGEN_ECON_PASSWORD   -> econ.password
    MAPGEN_MAX_RETRIES     -> generation.max_retries
    MAPGEN_MAX_ITERATIONS  -> generation.max_iterations
    MAPGEN_OUTPUT_DIR      -> generation.output_dir
    MAPGEN_PRESETS_PATH    -> presets.path
    MAPGEN_LOG_LEVEL       -> logging.level
    MAPGEN_DEBUG           -> logging.debug
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Config file paths
CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "bridge.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "bridge.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class EconSettings:
    """Econ (external console) connection settings."""

    host: str = "localhost"
    port: int = 8303
    password: str = ""
    buffer_size: int = 256
    timeout_seconds: float = 0.5
    poll_interval: float = 0.5


@dataclass
class GenerationSettings:
    """Generation attempt and content swap settings."""

    max_retries: int = 10
    max_iterations: int = 200_000
    bootstrap_seed: int = 0
    output_dir: str = "maps"
    map_name: str = "random_map"
    swap_commands: list[str] = field(
        default_factory=lambda: ["change_map {map_name}", "reload"]
    )
    generator: str = ""  # "module:attribute"
    exporter: str = ""  # "module:attribute", empty = artifact.export(path)

    @property
    def absolute_output_dir(self) -> Path:
        """Get absolute path to the map output directory."""
        p = Path(self.output_dir)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p

    def rendered_swap_commands(self) -> list[str]:
        return [command.format(map_name=self.map_name) for command in self.swap_commands]


@dataclass
class PresetSettings:
    """Preset file location."""

    path: str = "config/presets.yaml"

    @property
    def absolute_path(self) -> Path:
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"
    debug: bool = False


@dataclass
class BridgeConfig:
    """
    Complete bridge configuration.

    Aggregates all settings sections. Built by :func:`load_config`.
    """

    econ: EconSettings = field(default_factory=EconSettings)
    generation: GenerationSettings = field(default_factory=GenerationSettings)
    presets: PresetSettings = field(default_factory=PresetSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated string to list, stripping whitespace."""
    if not value or value.strip() == "":
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_from_ini(parser: configparser.ConfigParser, cfg: BridgeConfig) -> None:
    """Load configuration from parsed INI file into BridgeConfig."""
    # Econ section
    if parser.has_section("econ"):
        if parser.has_option("econ", "host"):
            cfg.econ.host = parser.get("econ", "host")
        if parser.has_option("econ", "port"):
            cfg.econ.port = parser.getint("econ", "port")
        if parser.has_option("econ", "password"):
            cfg.econ.password = parser.get("econ", "password")
        if parser.has_option("econ", "buffer_size"):
            cfg.econ.buffer_size = parser.getint("econ", "buffer_size")
        if parser.has_option("econ", "timeout_seconds"):
            cfg.econ.timeout_seconds = parser.getfloat("econ", "timeout_seconds")
        if parser.has_option("econ", "poll_interval"):
            cfg.econ.poll_interval = parser.getfloat("econ", "poll_interval")

    # Generation section
    if parser.has_section("generation"):
        if parser.has_option("generation", "max_retries"):
            cfg.generation.max_retries = parser.getint("generation", "max_retries")
        if parser.has_option("generation", "max_iterations"):
            cfg.generation.max_iterations = parser.getint("generation", "max_iterations")
        if parser.has_option("generation", "bootstrap_seed"):
            cfg.generation.bootstrap_seed = parser.getint("generation", "bootstrap_seed")
        if parser.has_option("generation", "output_dir"):
            cfg.generation.output_dir = parser.get("generation", "output_dir")
        if parser.has_option("generation", "map_name"):
            cfg.generation.map_name = parser.get("generation", "map_name")
        if parser.has_option("generation", "swap_commands"):
            cfg.generation.swap_commands = _parse_list(parser.get("generation", "swap_commands"))
        if parser.has_option("generation", "generator"):
            cfg.generation.generator = parser.get("generation", "generator")
        if parser.has_option("generation", "exporter"):
            cfg.generation.exporter = parser.get("generation", "exporter")

    # Presets section
    if parser.has_section("presets"):
        if parser.has_option("presets", "path"):
            cfg.presets.path = parser.get("presets", "path")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]
        if parser.has_option("logging", "debug"):
            cfg.logging.debug = _parse_bool(parser.get("logging", "debug"))


def _apply_env_overrides(cfg: BridgeConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Econ settings
    if env_host := os.getenv("MAPGEN_ECON_HOST"):
        cfg.econ.host = env_host
    if env_port := os.getenv("MAPGEN_ECON_PORT"):
        cfg.econ.port = int(env_port)
    if env_password := os.getenv("MAPGEN_ECON_PASSWORD"):
        cfg.econ.password = env_password

    # Generation settings
    if env_retries := os.getenv("MAPGEN_MAX_RETRIES"):
        cfg.generation.max_retries = int(env_retries)
    if env_iterations := os.getenv("MAPGEN_MAX_ITERATIONS"):
        cfg.generation.max_iterations = int(env_iterations)
    if env_output := os.getenv("MAPGEN_OUTPUT_DIR"):
        cfg.generation.output_dir = env_output

    # Preset settings
    if env_presets := os.getenv("MAPGEN_PRESETS_PATH"):
        cfg.presets.path = env_presets

    # Logging settings
    if env_log := os.getenv("MAPGEN_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()
    if env_debug := os.getenv("MAPGEN_DEBUG"):
        cfg.logging.debug = _parse_bool(env_debug)


def load_config(config_path: Path | None = None) -> BridgeConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. *config_path* if given, else config/bridge.ini
        3. config/bridge.example.ini (fallback for development)
        4. Built-in defaults

    Args:
        config_path: Explicit INI file. Must exist when given.

    Returns:
        BridgeConfig: Fully populated configuration object.

    Raises:
        FileNotFoundError: If *config_path* is given but missing.
    """
    cfg = BridgeConfig()

    # Determine which config file to use
    config_file = None
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        config_file = config_path
    elif CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        # Use example as fallback for development
        config_file = CONFIG_EXAMPLE

    # Load from INI file if available
    if config_file:
        parser = configparser.ConfigParser(interpolation=None)
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    # Apply environment variable overrides (highest priority)
    _apply_env_overrides(cfg)

    return cfg


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def print_config_summary(cfg: BridgeConfig) -> None:
    """Print a summary of the given configuration to stdout."""
    print("\n" + "=" * 60)
    print("BRIDGE CONFIGURATION")
    print("=" * 60)
    print(f"Econ:        {cfg.econ.host}:{cfg.econ.port}")
    print(f"Password:    {'set' if cfg.econ.password else 'NOT SET'}")
    print(f"Presets:     {cfg.presets.absolute_path}")
    print(f"Output dir:  {cfg.generation.absolute_output_dir}")
    print(f"Retries:     {cfg.generation.max_retries}")
    print(f"Generator:   {cfg.generation.generator or 'NOT SET'}")
    print(f"Log level:   {cfg.logging.level}")
    print("=" * 60 + "\n")
