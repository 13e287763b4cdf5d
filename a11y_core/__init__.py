from .config import (
    AuditConfig,
    DEFAULT_VIEWPORTS,
    RuleFamily,
    SUPPORTED_LOCALES,
    ViewportProfile,
    load_config,
    parse_rule_families,
    parse_viewports,
)

__all__ = [
    "AuditConfig",
    "DEFAULT_VIEWPORTS",
    "RuleFamily",
    "SUPPORTED_LOCALES",
    "ViewportProfile",
    "load_config",
    "parse_rule_families",
    "parse_viewports",
]
