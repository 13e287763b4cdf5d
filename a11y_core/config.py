import logging
import os
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from dotenv import load_dotenv

from a11y_exceptions import ConfigurationError, create_error_context


logger = logging.getLogger(__name__)


class RuleFamily(Enum):
    # Independently switchable groups of checks
    CONTRAST = "contrast"
    KEYBOARD = "keyboard"
    ARIA = "aria"
    MOTION = "motion"
    ANNOUNCEMENT = "announcement"
    LIVE_REGIONS = "live_regions"


@dataclass(frozen=True)
class ViewportProfile:
    # Simulated viewport an audit pass runs at
    name: str
    width: int
    height: int

    def to_dict(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}


DEFAULT_VIEWPORTS: Tuple[ViewportProfile, ...] = (
    ViewportProfile("mobile", 375, 667),
    ViewportProfile("tablet", 768, 1024),
    ViewportProfile("desktop", 1440, 900),
)

SUPPORTED_LOCALES = ("en", "ko")
LOG_FORMATS = ("json", "text")

_VIEWPORT_PATTERN = re.compile(r"^\s*([A-Za-z0-9_-]+)\s*=\s*(\d+)\s*[xX]\s*(\d+)\s*$")


@dataclass(frozen=True)
class AuditConfig:
    # Engine configuration: rule flags, pattern locale and viewport profiles
    enabled_rules: FrozenSet[RuleFamily] = field(default_factory=lambda: frozenset(RuleFamily))
    locale: str = "en"
    viewports: Tuple[ViewportProfile, ...] = DEFAULT_VIEWPORTS
    max_recommendations: int = 10
    live_region_buffer: int = 500
    focus_probe_timeout: float = 5.0
    log_level: str = "INFO"
    log_format: str = "json"

    def __post_init__(self):
        if self.locale not in SUPPORTED_LOCALES:
            raise ConfigurationError(
                message=f"Unsupported locale: '{self.locale}'",
                config_key="A11Y_LOCALE",
                expected_format=f"One of: {', '.join(SUPPORTED_LOCALES)}",
                error_context=create_error_context(component="Configuration", operation="locale_validation")
            )
        if self.max_recommendations < 1:
            raise ConfigurationError(
                message=f"max_recommendations must be positive, got {self.max_recommendations}",
                config_key="A11Y_MAX_RECOMMENDATIONS",
                expected_format="Positive integer"
            )
        if self.live_region_buffer < 1:
            raise ConfigurationError(
                message=f"live_region_buffer must be positive, got {self.live_region_buffer}",
                config_key="A11Y_LIVE_REGION_BUFFER",
                expected_format="Positive integer"
            )
        if self.focus_probe_timeout <= 0:
            raise ConfigurationError(
                message=f"focus_probe_timeout must be positive, got {self.focus_probe_timeout}",
                config_key="A11Y_FOCUS_PROBE_TIMEOUT",
                expected_format="Positive number of seconds"
            )
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                message=f"Unsupported log format: '{self.log_format}'",
                config_key="A11Y_LOG_FORMAT",
                expected_format=f"One of: {', '.join(LOG_FORMATS)}"
            )
        names = [profile.name for profile in self.viewports]
        if len(names) != len(set(names)):
            raise ConfigurationError(
                message=f"Duplicate viewport profile names: {names}",
                config_key="A11Y_VIEWPORTS",
                expected_format="name=WIDTHxHEIGHT,... with unique names"
            )

    def is_enabled(self, rule: RuleFamily) -> bool:
        return rule in self.enabled_rules

    def without(self, *rules: RuleFamily) -> "AuditConfig":
        # Copy of this configuration with the given rule families switched off
        return replace(self, enabled_rules=self.enabled_rules - frozenset(rules))

    def viewport(self, name: str) -> ViewportProfile:
        for profile in self.viewports:
            if profile.name == name:
                return profile
        raise ConfigurationError(
            message=f"Unknown viewport profile: '{name}'",
            config_key="A11Y_VIEWPORTS",
            expected_format=f"One of: {', '.join(p.name for p in self.viewports)}"
        )


def parse_viewports(value: str) -> Tuple[ViewportProfile, ...]:
    """Parse ``name=WIDTHxHEIGHT`` pairs separated by commas."""
    profiles = []
    for chunk in value.split(","):
        if not chunk.strip():
            continue
        match = _VIEWPORT_PATTERN.match(chunk)
        if not match:
            raise ConfigurationError(
                message=f"Invalid viewport profile: '{chunk.strip()}'",
                config_key="A11Y_VIEWPORTS",
                expected_format="name=WIDTHxHEIGHT, e.g. mobile=375x667"
            )
        name, width, height = match.group(1), int(match.group(2)), int(match.group(3))
        if width == 0 or height == 0:
            raise ConfigurationError(
                message=f"Viewport profile '{name}' has a zero dimension",
                config_key="A11Y_VIEWPORTS",
                expected_format="Positive width and height"
            )
        profiles.append(ViewportProfile(name, width, height))
    if not profiles:
        raise ConfigurationError(
            message="A11Y_VIEWPORTS is set but defines no profiles",
            config_key="A11Y_VIEWPORTS",
            expected_format="name=WIDTHxHEIGHT,..."
        )
    return tuple(profiles)


def parse_rule_families(value: str) -> FrozenSet[RuleFamily]:
    families = set()
    known = {family.value: family for family in RuleFamily}
    for token in value.split(","):
        token = token.strip().lower()
        if not token:
            continue
        if token not in known:
            raise ConfigurationError(
                message=f"Unknown rule family: '{token}'",
                config_key="A11Y_DISABLED_RULES",
                expected_format=f"Comma list of: {', '.join(known)}"
            )
        families.add(known[token])
    return frozenset(families)


def _int_env(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            message=f"{key} must be an integer, got '{raw}'",
            config_key=key,
            expected_format="Integer",
            cause=e
        )


def _float_env(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(
            message=f"{key} must be a number, got '{raw}'",
            config_key=key,
            expected_format="Number",
            cause=e
        )


def load_config(env_file: Optional[str] = None) -> AuditConfig:
    """
    Build an AuditConfig from environment variables.

    Values from a ``.env`` file are loaded first (without overriding variables
    already present in the environment).

    Args:
        env_file: Optional explicit path to a dotenv file

    Returns:
        Validated AuditConfig

    Raises:
        ConfigurationError: If any variable is malformed
    """
    load_dotenv(env_file)

    disabled = parse_rule_families(os.getenv("A11Y_DISABLED_RULES", ""))
    viewports_raw = os.getenv("A11Y_VIEWPORTS")

    config = AuditConfig(
        enabled_rules=frozenset(RuleFamily) - disabled,
        locale=os.getenv("A11Y_LOCALE", "en").strip().lower(),
        viewports=parse_viewports(viewports_raw) if viewports_raw else DEFAULT_VIEWPORTS,
        max_recommendations=_int_env("A11Y_MAX_RECOMMENDATIONS", 10),
        live_region_buffer=_int_env("A11Y_LIVE_REGION_BUFFER", 500),
        focus_probe_timeout=_float_env("A11Y_FOCUS_PROBE_TIMEOUT", 5.0),
        log_level=os.getenv("A11Y_LOG_LEVEL", "INFO").strip().upper(),
        log_format=os.getenv("A11Y_LOG_FORMAT", "json").strip().lower(),
    )

    if disabled:
        logger.info(f"Audit rule families disabled: {sorted(f.value for f in disabled)}")

    return config
