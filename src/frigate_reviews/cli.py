"""
Frigate Custom Reviews CLI
Main entry point for running the review stitching service.

Supports Terraform-like workflow:
  --validate  Check configuration validity
  --plan      Show how detections will be grouped into reviews
  --dry-run   Simulate with sample events
"""

import argparse
import json
import logging
import signal
import sys
from threading import Event as ThreadEvent

from .config import (
    Config,
    ConfigValidationError,
    find_config_file,
    generate_sample_events,
    load_config,
    load_config_with_env,
    load_sample_events,
    print_plan,
    print_validation_result,
    read_config_file,
    simulate_dry_run,
    validate_config_full,
    validate_config_pydantic,
)
from .engine import CorrelationEngine
from .models import Profile
from .transport import FrigateClient, MQTTClient, MQTTConnectionError, recover_active_events

logger = logging.getLogger(__name__)

# Module-level shutdown signal for SIGTERM/SIGINT handling
_shutdown_signal = ThreadEvent()


def _handle_shutdown_signal(signum, _frame):
    """Handle SIGTERM/SIGINT for graceful shutdown."""
    signal_name = "SIGTERM" if signum == signal.SIGTERM else "SIGINT"
    # Note: print is safer than logger in signal handlers
    print(f"\nReceived {signal_name}, shutting down...")
    _shutdown_signal.set()


def _setup_signal_handlers():
    """Register signal handlers for graceful shutdown."""
    signal.signal(signal.SIGTERM, _handle_shutdown_signal)
    signal.signal(signal.SIGINT, _handle_shutdown_signal)


def setup_logging(level: str = "info", quiet: bool = False) -> None:
    """
    Setup logging configuration.

    Args:
        level: Level name from config (debug, info, warning, error)
        quiet: If True, only show warnings and errors
    """
    log_level = logging.WARNING if quiet else getattr(logging, level.upper(), logging.INFO)

    # Custom formatter with shorter module names
    class ShortNameFormatter(logging.Formatter):
        def format(self, record):
            record.name = record.name.replace("frigate_reviews.", "fr.")
            return super().format(record)

    handler = logging.StreamHandler()
    handler.setFormatter(
        ShortNameFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s", datefmt="%H:%M:%S"
        )
    )
    logging.root.handlers = [handler]
    logging.root.setLevel(log_level)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Frigate Custom Reviews - stitch Frigate detections into profile-based reviews",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m frigate_reviews                        # Run with ./config.yaml
  python -m frigate_reviews -c /etc/reviews.yaml   # Run with a specific config

Terraform-like Commands:
  python -m frigate_reviews --validate    # Check config validity
  python -m frigate_reviews --plan        # Show profiles and routing
  python -m frigate_reviews --dry-run     # Simulate with generated events
  python -m frigate_reviews --dry-run events.json  # Simulate with custom events

Environment Variables:
  MQTT_BROKER, MQTT_USER, MQTT_PASSWORD, FRIGATE_URL - Override config values
        """,
    )

    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to config file (default: config.yaml)",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Quiet mode - only show warnings and errors",
    )
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging (overrides logging.level)",
    )

    # Terraform-like commands
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and show derived settings",
    )

    parser.add_argument(
        "--plan", action="store_true", help="Show review plan without running"
    )

    parser.add_argument(
        "--dry-run",
        nargs="?",
        const="auto",
        metavar="EVENTS_FILE",
        help="Simulate review stitching (optionally with JSON events file)",
    )

    return parser.parse_args(argv)


def _load_raw_config(config_path: str) -> dict:
    """Read config and apply env overrides/defaults without validating."""
    try:
        raw = read_config_file(find_config_file(config_path))
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    if not isinstance(raw, dict):
        print("Error: Configuration must be a mapping")
        sys.exit(1)
    return load_config_with_env(raw)


def _load_valid_config(config_path: str) -> Config:
    """Validate and parse config for --plan/--dry-run, exiting on errors."""
    config = _load_raw_config(config_path)
    result = validate_config_full(config)
    if not result.valid:
        print_validation_result(result)
        sys.exit(1)

    try:
        return validate_config_pydantic(config)
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}")
        sys.exit(1)


def run_validate(config_path: str) -> None:
    """Run validation mode."""
    config = _load_raw_config(config_path)
    result = validate_config_full(config)

    if result.valid:
        try:
            validate_config_pydantic(config)
        except ValueError as e:
            result.valid = False
            result.errors.append(str(e))

    print_validation_result(result)
    sys.exit(0 if result.valid else 1)


def run_plan(config_path: str) -> None:
    """Run plan mode."""
    config = _load_valid_config(config_path)
    print_plan(config)
    sys.exit(0)


def run_dry_run(config_path: str, events_file: str | None) -> None:
    """Run dry-run simulation mode."""
    config = _load_valid_config(config_path)

    if events_file:
        try:
            sample_events = load_sample_events(events_file)
            print(f"Loaded {len(sample_events)} events from {events_file}")
        except FileNotFoundError:
            print(f"Error: Events file not found: {events_file}")
            sys.exit(1)
        except (json.JSONDecodeError, ValueError) as e:
            print(f"Error: Invalid events file: {e}")
            sys.exit(1)
    else:
        sample_events = generate_sample_events(config)
        print(f"Generated {len(sample_events)} sample events from config")

    simulate_dry_run(config, sample_events)
    sys.exit(0)


def run_service(config: Config) -> None:
    """
    Run the service until SIGINT/SIGTERM.

    Startup order: MQTT connect, engine loop, state recovery from the
    Frigate API, subscription. The engine is draining the ingest queue
    before the recovery snapshot is fed in, so a snapshot larger than the
    queue can't stall startup.

    Shutdown disconnects MQTT before stopping the engine.
    """
    mqtt_client = MQTTClient(config.mqtt)

    engine = CorrelationEngine(
        profiles=[Profile.from_config(p) for p in config.profiles],
        publisher=mqtt_client,
        publish_topic=config.mqtt.reviews_publish_topic,
        publish_updates=config.publish_updates,
        ghost_timeout=config.event_timeout,
    )
    for profile in engine.profiles:
        logger.info(f"  - {profile!r}")

    try:
        mqtt_client.connect()
    except MQTTConnectionError as e:
        logger.error(f"Failed to connect to MQTT: {e}")
        sys.exit(1)

    _setup_signal_handlers()
    engine.start()

    try:
        if config.frigate.url:
            recover_active_events(FrigateClient(config.frigate), engine.submit)
        else:
            logger.warning("frigate.url not set, skipping recovery of active events")

        mqtt_client.subscribe(engine.submit)

        # Wait for signal
        _shutdown_signal.wait()
    finally:
        # Producer first: the network thread may be blocked in engine.submit()
        mqtt_client.disconnect()
        engine.stop()
        logger.info("Shutdown complete")


def main(argv: list[str] | None = None) -> None:
    """Main orchestrator function."""
    args = parse_args(argv)

    # Quiet for terraform-like commands; config level applied once loaded
    is_terraform_mode = args.validate or args.plan or args.dry_run
    setup_logging(quiet=args.quiet or bool(is_terraform_mode))

    if args.validate:
        run_validate(args.config)
        return

    if args.plan:
        run_plan(args.config)
        return

    if args.dry_run:
        run_dry_run(args.config, args.dry_run if args.dry_run != "auto" else None)
        return

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    except ConfigValidationError as e:
        logger.error(f"Error loading config: {e}")
        for error in e.errors:
            logger.error(f"  - {error}")
        sys.exit(1)

    level = "debug" if args.verbose else config.logging.level
    setup_logging(level=level, quiet=args.quiet)

    run_service(config)


if __name__ == "__main__":
    main()
