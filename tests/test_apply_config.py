"""Tests for pipeline configuration loading."""
import logging

from leasetrack.apply.config import (
    PLACEMENT_END,
    PLACEMENT_START,
    ApplyConfig,
    configure_apply_logging,
    load_apply_config,
)

_KEYS = (
    "LEASETRACK_ACCESS_CACHE_TTL",
    "LEASETRACK_ORDERED_PLACEMENT",
    "LEASETRACK_STRICT_ENUMS",
    "LEASETRACK_LOG_LEVEL",
    "LEASETRACK_LOG_FORMAT",
)


def test_defaults(monkeypatch):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)
    cfg = load_apply_config()
    assert cfg == ApplyConfig()
    assert cfg.access_cache_ttl_seconds == 300.0
    assert cfg.ordered_placement == PLACEMENT_START
    assert cfg.strict_enums is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("LEASETRACK_ACCESS_CACHE_TTL", "30")
    monkeypatch.setenv("LEASETRACK_ORDERED_PLACEMENT", "END")
    monkeypatch.setenv("LEASETRACK_STRICT_ENUMS", "yes")
    monkeypatch.setenv("LEASETRACK_LOG_LEVEL", "DEBUG")
    cfg = load_apply_config()
    assert cfg.access_cache_ttl_seconds == 30.0
    assert cfg.ordered_placement == PLACEMENT_END
    assert cfg.strict_enums is True
    assert cfg.log_level == "DEBUG"


def test_malformed_values_fall_back(monkeypatch):
    monkeypatch.setenv("LEASETRACK_ACCESS_CACHE_TTL", "five minutes")
    monkeypatch.setenv("LEASETRACK_ORDERED_PLACEMENT", "middle")
    monkeypatch.setenv("LEASETRACK_STRICT_ENUMS", "maybe")
    cfg = load_apply_config()
    assert cfg.access_cache_ttl_seconds == 300.0
    assert cfg.ordered_placement == PLACEMENT_START
    assert cfg.strict_enums is False


def test_configure_apply_logging_is_idempotent():
    cfg = ApplyConfig(log_level="warning", log_format="%(levelname)s %(message)s")
    apply_logger = configure_apply_logging(cfg)
    configure_apply_logging(cfg)
    own = [h for h in apply_logger.handlers if getattr(h, "_leasetrack_apply", False)]
    assert len(own) == 1
    assert apply_logger.level == logging.WARNING
    assert own[0].formatter._fmt == "%(levelname)s %(message)s"
