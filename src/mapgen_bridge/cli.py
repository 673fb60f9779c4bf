"""
Command-line interface for mapgen-bridge.

Provides CLI commands:
- run: Connect to the server econ and generate maps from passed votes
- presets: List generation and map presets

Usage:
    mapgen-bridge run --port 8303 --generator mygen.walker:Generator
    mapgen-bridge presets

Environment Variables:
    MAPGEN_ECON_PASSWORD: Econ password (preferred over --password)
    See mapgen_bridge.config for the full list.
"""

import argparse
import logging
import sys
from pathlib import Path

from mapgen_bridge import __version__
from mapgen_bridge.config import BridgeConfig, LoggingSettings, load_config, print_config_summary
from mapgen_bridge.errors import BridgeError, ConsoleConnectionError, PresetError
from mapgen_bridge.presets import PresetRegistry, load_presets

logger = logging.getLogger(__name__)

_LOG_FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
}


def configure_logging(settings: LoggingSettings) -> None:
    """Configure the root logger from the [logging] settings."""
    level = logging.DEBUG if settings.debug else getattr(logging, settings.level, logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMATS[settings.format], force=True)


def _resolve_config(args: argparse.Namespace) -> BridgeConfig:
    """Load configuration and apply CLI overrides (highest priority)."""
    cfg = load_config(getattr(args, "config", None))

    overrides = {
        ("econ", "host"): getattr(args, "host", None),
        ("econ", "port"): getattr(args, "port", None),
        ("econ", "password"): getattr(args, "password", None),
        ("econ", "buffer_size"): getattr(args, "buffer_size", None),
        ("econ", "poll_interval"): getattr(args, "interval", None),
        ("generation", "max_retries"): getattr(args, "retries", None),
        ("generation", "max_iterations"): getattr(args, "max_iterations", None),
        ("generation", "generator"): getattr(args, "generator", None),
        ("generation", "exporter"): getattr(args, "exporter", None),
        ("generation", "output_dir"): getattr(args, "output_dir", None),
        ("presets", "path"): getattr(args, "presets", None),
    }
    for (section, name), value in overrides.items():
        if value is not None:
            setattr(getattr(cfg, section), name, value)
    if getattr(args, "debug", False):
        cfg.logging.debug = True
    return cfg


def _load_registry(cfg: BridgeConfig) -> PresetRegistry | None:
    try:
        return load_presets(cfg.presets.absolute_path)
    except PresetError as e:
        print(f"Error loading presets: {e}", file=sys.stderr)
        return None


def cmd_presets(args: argparse.Namespace) -> int:
    """
    List available presets.

    Returns:
        0 on success, 1 if the preset file cannot be loaded
    """
    cfg = _resolve_config(args)
    registry = _load_registry(cfg)
    if registry is None:
        return 1

    print("Generation presets:")
    for name in registry.generation_names():
        marker = " (default)" if name == registry.default_generation.name else ""
        print(f"  {name}{marker}")
    print("Map presets:")
    for name in registry.map_names():
        marker = " (default)" if name == registry.default_map.name else ""
        print(f"  {name}{marker}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the bridge until a fatal error or Ctrl+C.

    Returns:
        0 on clean shutdown (Ctrl+C)
        1 on startup error, connection failure, wrong password, or lost link
    """
    from mapgen_bridge.controller import BridgeController
    from mapgen_bridge.econ.link import ConsoleLink, say_command
    from mapgen_bridge.generation import GenerationRunner, MethodExporter, load_object

    cfg = _resolve_config(args)
    configure_logging(cfg.logging)
    if cfg.logging.debug:
        print_config_summary(cfg)

    if not cfg.econ.password:
        print(
            "Error: No econ password.\n"
            "Set MAPGEN_ECON_PASSWORD, [econ] password in the config file, or pass --password.",
            file=sys.stderr,
        )
        return 1
    if not cfg.generation.generator:
        print("Error: No generator configured (--generator module:attribute).", file=sys.stderr)
        return 1

    registry = _load_registry(cfg)
    if registry is None:
        return 1

    try:
        generator = load_object(cfg.generation.generator)
        exporter = load_object(cfg.generation.exporter) if cfg.generation.exporter else None
    except (ImportError, AttributeError, ValueError) as e:
        print(f"Error loading generator/exporter: {e}", file=sys.stderr)
        return 1

    try:
        link = ConsoleLink.connect(
            cfg.econ.host,
            cfg.econ.port,
            buffer_size=cfg.econ.buffer_size,
            timeout=cfg.econ.timeout_seconds,
        )
    except ConsoleConnectionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with link:
        runner = GenerationRunner(
            generator,
            exporter or MethodExporter(),
            send=link.send,
            say=lambda text: link.send(say_command(text)),
            max_retries=cfg.generation.max_retries,
            max_iterations=cfg.generation.max_iterations,
            output_dir=cfg.generation.absolute_output_dir,
            map_name=cfg.generation.map_name,
            swap_commands=cfg.generation.rendered_swap_commands(),
        )
        controller = BridgeController(
            link,
            cfg.econ.password,
            registry,
            runner,
            bootstrap_seed=cfg.generation.bootstrap_seed,
            poll_interval=cfg.econ.poll_interval,
            debug=cfg.logging.debug,
        )
        try:
            controller.run()
        except KeyboardInterrupt:
            print("\nBridge stopped.")
            return 0
        except BridgeError as e:
            logger.critical("Bridge stopped: %s", e)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="INI config file (default: config/bridge.ini, then config/bridge.example.ini)",
    )
    parser.add_argument("--presets", type=str, help="Preset YAML file (default: from config)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapgen-bridge",
        description="Detect DDNet server votes via econ to trigger map generations",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Connect to econ and handle votes",
        description="Connect to the server econ, log in, and generate maps from passed votes.",
    )
    _add_common_arguments(run_parser)
    run_parser.add_argument("--host", type=str, help="Econ host (default: localhost)")
    run_parser.add_argument("--port", "-p", type=int, help="Econ port, ec_port (default: 8303)")
    run_parser.add_argument(
        "--password", type=str, help="Econ password, ec_password (prefer MAPGEN_ECON_PASSWORD)"
    )
    run_parser.add_argument(
        "--buffer-size",
        "-b",
        dest="buffer_size",
        type=int,
        help="Econ read buffer size in bytes (default: 256)",
    )
    run_parser.add_argument(
        "--interval",
        "-i",
        type=float,
        help="Seconds between econ reads (default: 0.5)",
    )
    run_parser.add_argument("--retries", type=int, help="Retries per generation (default: 10)")
    run_parser.add_argument(
        "--max-iterations",
        dest="max_iterations",
        type=int,
        help="Generator iteration cap per attempt (default: 200000)",
    )
    run_parser.add_argument("--generator", type=str, help="Generator as module:attribute")
    run_parser.add_argument("--exporter", type=str, help="Exporter as module:attribute")
    run_parser.add_argument(
        "--output-dir", dest="output_dir", type=str, help="Map output directory"
    )
    run_parser.add_argument("--debug", "-d", action="store_true", help="Debug to console")
    run_parser.set_defaults(func=cmd_run)

    # presets command
    presets_parser = subparsers.add_parser(
        "presets",
        help="List generation and map presets",
        description="List the presets players can pick in generate/change_layout votes.",
    )
    _add_common_arguments(presets_parser)
    presets_parser.set_defaults(func=cmd_presets)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
