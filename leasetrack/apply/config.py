"""
Suggestion pipeline configuration.

Single source of truth for batch-level defaults and tunables, loaded once per
process from environment variables.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

PLACEMENT_START = "start"
PLACEMENT_END = "end"


@dataclass(frozen=True)
class ApplyConfig:
    """Immutable pipeline configuration."""

    # --- Project access cache ---
    access_cache_ttl_seconds: float = 300.0

    # --- Ordered inserts: "start" = newest first, "end" = append ---
    ordered_placement: str = PLACEMENT_START

    # --- Coercion: fail items with unmatched enum/timestamp values instead of nulling them ---
    strict_enums: bool = False

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - [APPLY] - %(levelname)s - %(message)s"


def load_apply_config() -> ApplyConfig:
    """Build ApplyConfig from environment variables (with defaults)."""
    def _float(key: str, default: float) -> float:
        raw = os.getenv(key)
        if raw is None:
            return default
        try:
            return float(raw)
        except (TypeError, ValueError):
            return default

    def _bool(key: str, default: bool) -> bool:
        raw = os.getenv(key)
        if raw is None:
            return default
        return raw.strip().lower() in ("1", "true", "yes")

    def _placement(key: str) -> str:
        raw = (os.getenv(key) or "").strip().lower()
        return raw if raw in (PLACEMENT_START, PLACEMENT_END) else PLACEMENT_START

    return ApplyConfig(
        access_cache_ttl_seconds=_float("LEASETRACK_ACCESS_CACHE_TTL", 300.0),
        ordered_placement=_placement("LEASETRACK_ORDERED_PLACEMENT"),
        strict_enums=_bool("LEASETRACK_STRICT_ENUMS", False),
        log_level=os.getenv("LEASETRACK_LOG_LEVEL", "INFO"),
        log_format=os.getenv(
            "LEASETRACK_LOG_FORMAT",
            "%(asctime)s - [APPLY] - %(levelname)s - %(message)s",
        ),
    )


def configure_apply_logging(config: ApplyConfig) -> logging.Logger:
    """Give the ``leasetrack.apply`` logger its own level and line format."""
    apply_logger = logging.getLogger("leasetrack.apply")
    apply_logger.setLevel(config.log_level.upper())
    if not any(getattr(h, "_leasetrack_apply", False) for h in apply_logger.handlers):
        handler = logging.StreamHandler()
        handler._leasetrack_apply = True
        apply_logger.addHandler(handler)
        apply_logger.propagate = False
    for handler in apply_logger.handlers:
        if getattr(handler, "_leasetrack_apply", False):
            handler.setFormatter(logging.Formatter(config.log_format))
    return apply_logger
