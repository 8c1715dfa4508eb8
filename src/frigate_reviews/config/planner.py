"""
Configuration Planner - Terraform-like validate, plan, and dry-run features.

Provides:
- validate: Print config errors, warnings and derived settings
- plan: Show every profile's filters and the global review settings
- dry-run: Replay sample Frigate events through a real engine on a
  simulated clock and print the review messages it would publish
"""

import json
import logging
import sys
import time
from dataclasses import dataclass
from typing import Any

from ..engine import CorrelationEngine
from ..models import FrigateEvent, MalformedEventError, Profile
from ..utils.publisher import CallbackPublisherAdapter
from ..utils.review_schema import get_message_summary
from .schemas import Config
from .validator import ValidationResult

logger = logging.getLogger(__name__)


# ANSI color codes for terminal output
class Colors:
    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls):
        """Disable colors for non-TTY output."""
        cls.GREEN = cls.RED = cls.YELLOW = cls.BLUE = ""
        cls.CYAN = cls.GRAY = cls.BOLD = cls.RESET = ""


# Disable colors if not a TTY
if not sys.stdout.isatty():
    Colors.disable()


@dataclass
class SimulatedClock:
    """Manually advanced wall-clock for dry runs."""

    now: float

    def __call__(self) -> float:
        return self.now


def print_validation_result(result: ValidationResult) -> None:
    """Print validation result in Terraform-like format."""
    print()
    print(f"{Colors.BOLD}Configuration Validation{Colors.RESET}")
    print("=" * 60)

    if result.valid:
        print(f"\n{Colors.GREEN}✓ Configuration is valid{Colors.RESET}")
    else:
        print(f"\n{Colors.RED}✗ Configuration has errors{Colors.RESET}")

    if result.errors:
        print(f"\n{Colors.RED}Errors:{Colors.RESET}")
        for error in result.errors:
            print(f"  {Colors.RED}✗{Colors.RESET} {error}")

    if result.warnings:
        print(f"\n{Colors.YELLOW}Warnings:{Colors.RESET}")
        for warning in result.warnings:
            print(f"  {Colors.YELLOW}!{Colors.RESET} {warning}")

    if result.valid and result.derived:
        print(f"\n{Colors.CYAN}Derived Configuration:{Colors.RESET}")
        profiles = result.derived.get("profiles", [])
        print(f"  Profiles: {', '.join(profiles) or '(none)'}")
        print(f"  Ghost timeout: {result.derived.get('ghost_timeout')}s")
        print(f"  Publish updates: {result.derived.get('publish_updates')}")

    print()


def print_plan(config: Config) -> None:
    """Print how detections will be grouped and where reviews go."""
    print()
    print(f"{Colors.BOLD}Review Plan{Colors.RESET}")
    print("=" * 60)

    print(f"\n{Colors.CYAN}Flow:{Colors.RESET}")
    print(f"  {config.mqtt.frigate_events_topic} -> engine -> {config.mqtt.reviews_publish_topic}")
    print(f"  Broker: {config.mqtt.broker} (client id: {config.mqtt.client_id})")
    if config.frigate.url:
        print(f"  Startup recovery: {config.frigate.url}/api/events?in_progress=1")
    else:
        print(f"  Startup recovery: {Colors.GRAY}disabled{Colors.RESET}")

    print(f"\n{Colors.CYAN}Profiles:{Colors.RESET}")
    if not config.profiles:
        print(f"  {Colors.YELLOW}(none - nothing will be reviewed){Colors.RESET}")
    for profile in config.profiles:
        print(f"  {Colors.BOLD}{profile.name}{Colors.RESET}")
        print(f"    Cameras: {', '.join(profile.cameras) or 'any'}")
        print(f"    Labels:  {', '.join(profile.labels) or 'any'}")
        print(f"    Zones:   {', '.join(profile.required_zones) or 'any'}")
        print(f"    Gap:     {profile.gap:g}s")

    print(f"\n{Colors.CYAN}Lifecycle messages:{Colors.RESET}")
    if config.publish_updates:
        print("  new, update, end")
    else:
        print(f"  end {Colors.GRAY}(publish_updates disabled){Colors.RESET}")
    print(f"  Ghost timeout: {config.event_timeout}s")
    print()


def generate_sample_events(config: Config) -> list[dict]:
    """
    Generate a start/end detection pair per profile.

    Each detection satisfies its profile's filters, starts 10 seconds after
    the previous one ended and lasts 5 seconds.
    """
    samples = []
    start = time.time()

    for i, profile in enumerate(config.profiles, 1):
        state = {
            "id": f"sample-{i}",
            "camera": profile.cameras[0] if profile.cameras else "camera",
            "label": profile.labels[0] if profile.labels else "person",
            "start_time": start,
            "end_time": 0,
            "current_zones": list(profile.required_zones[:1]),
            "entered_zones": list(profile.required_zones[:1]),
        }
        samples.append({"type": "new", "after": state, "advance": 0 if i == 1 else 10})
        samples.append(
            {
                "type": "end",
                "after": {**state, "end_time": start + 5, "current_zones": []},
                "advance": 5,
            }
        )
        start += 15

    return samples


def load_sample_events(path: str) -> list[dict]:
    """Load sample events from JSON file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    # Handle both array and object with 'events' key
    if isinstance(data, list):
        return data
    elif isinstance(data, dict) and "events" in data:
        return data["events"]
    else:
        raise ValueError(
            "Sample events file must contain an array or object with 'events' key"
        )


def simulate_dry_run(config: Config, sample_events: list[dict]) -> list[dict]:
    """
    Replay sample events through the correlation engine.

    The simulated clock starts at the first event's start_time. An optional
    "advance" key on an event moves the clock forward (ticking every second)
    before the event is handled. After the last event the clock keeps
    ticking until every review has ended or the longest gap plus the ghost
    timeout has passed.

    Returns:
        Every message the engine published
    """
    print()
    print(f"{Colors.BOLD}Dry Run Simulation{Colors.RESET}")
    print("=" * 60)

    published: list[dict] = []

    def show(topic: str, payload: dict[str, Any]) -> None:
        published.append(payload)
        offset = clock.now - origin
        print(f"      {Colors.GREEN}[+{offset:5.0f}s] -> {topic}: {get_message_summary(payload)}{Colors.RESET}")

    origin = _first_start_time(sample_events) or time.time()
    clock = SimulatedClock(origin)
    engine = CorrelationEngine(
        profiles=[Profile.from_config(p) for p in config.profiles],
        publisher=CallbackPublisherAdapter(show),
        publish_topic=config.mqtt.reviews_publish_topic,
        publish_updates=config.publish_updates,
        ghost_timeout=config.event_timeout,
        clock=clock,
    )

    print(f"\n{Colors.CYAN}Processing {len(sample_events)} sample event(s):{Colors.RESET}\n")

    skipped = 0
    for i, sample in enumerate(sample_events, 1):
        _advance(engine, clock, float(sample.get("advance", 0) or 0))
        try:
            event = FrigateEvent.from_dict(sample)
        except MalformedEventError as e:
            skipped += 1
            print(f"  [{i}] {Colors.YELLOW}Malformed event skipped: {e}{Colors.RESET}")
            continue

        state = event.after
        status = "active" if state.is_active else "ended"
        print(f"  [{i}] {event.type}: {state.label} on {state.camera} ({state.id}, {status})")
        engine.handle_event(event)

    longest_gap = max((p.gap for p in config.profiles), default=0)
    horizon = int(longest_gap + config.event_timeout) + 2
    for _ in range(horizon):
        if not len(engine.store):
            break
        _advance(engine, clock, 1)

    print(f"\n{Colors.CYAN}Simulation Summary:{Colors.RESET}")
    print(f"  Events processed: {len(sample_events) - skipped}")
    if skipped:
        print(f"  {Colors.YELLOW}Malformed: {skipped}{Colors.RESET}")
    print(f"  Messages published: {len(published)}")
    for msg_type in ("new", "update", "end"):
        count = sum(1 for m in published if m["type"] == msg_type)
        print(f"    {msg_type}: {count}")
    if len(engine.store):
        print(f"  {Colors.YELLOW}Reviews still open: {len(engine.store)}{Colors.RESET}")
    print()

    return published


def _first_start_time(sample_events: list[dict]) -> float | None:
    for sample in sample_events:
        after = sample.get("after") if isinstance(sample, dict) else None
        if isinstance(after, dict) and after.get("start_time"):
            return float(after["start_time"])
    return None


def _advance(engine: CorrelationEngine, clock: SimulatedClock, seconds: float) -> None:
    """Move the simulated clock forward, ticking once per second."""
    while seconds > 0:
        step = min(1.0, seconds)
        clock.now += step
        seconds -= step
        engine.handle_tick()
