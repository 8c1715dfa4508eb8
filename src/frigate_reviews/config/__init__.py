"""
Configuration loading, validation, and planning.

Provides Terraform-like workflow:
- validate_config_full: Comprehensive validation with errors/warnings
- print_plan: Show how detections will be grouped into reviews
- simulate_dry_run: Replay sample events through the engine
- load_config_with_env: Apply environment variable overrides

Pydantic schemas available for type-safe access:
- Config: Complete configuration schema
- validate_config_pydantic: Validate and parse config to Pydantic model
"""

from .loader import (
    ConfigValidationError,
    apply_defaults,
    find_config_file,
    load_config,
    load_config_with_env,
    read_config_file,
)
from .planner import (
    generate_sample_events,
    load_sample_events,
    print_plan,
    print_validation_result,
    simulate_dry_run,
)
from .schemas import (
    Config,
    FrigateConfig,
    LoggingConfig,
    MQTTConfig,
    ProfileConfig,
    validate_config_pydantic,
)
from .validator import (
    ValidationResult,
    validate_config_full,
)

__all__ = [
    # Pydantic validation
    "Config",
    # Exception
    "ConfigValidationError",
    "FrigateConfig",
    "LoggingConfig",
    "MQTTConfig",
    "ProfileConfig",
    "ValidationResult",
    # Config loading
    "apply_defaults",
    "find_config_file",
    "generate_sample_events",
    "load_config",
    "load_config_with_env",
    "load_sample_events",
    # Display
    "print_plan",
    "print_validation_result",
    "read_config_file",
    # Dry-run
    "simulate_dry_run",
    # Validation
    "validate_config_full",
    "validate_config_pydantic",
]
