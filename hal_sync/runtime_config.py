from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
import logging
import tomllib

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "runtime.toml"


@dataclass(frozen=True)
class HalConfig:
    api_url: str
    author_id: Optional[str]
    timeout_secs: int
    rows: int


@dataclass(frozen=True)
class LocalConfig:
    publications_path: str


@dataclass(frozen=True)
class MatchingConfig:
    confidence_threshold: float
    workers: int


@dataclass(frozen=True)
class RuntimeConfig:
    hal: HalConfig
    local: LocalConfig
    matching: MatchingConfig


def _default_config() -> RuntimeConfig:
    return RuntimeConfig(
        hal=HalConfig(
            api_url="https://api.archives-ouvertes.fr/search/",
            author_id=None,
            timeout_secs=30,
            rows=1000,
        ),
        local=LocalConfig(publications_path="content/publication"),
        matching=MatchingConfig(confidence_threshold=0.8, workers=1),
    )


def _safe_int(value: Any, fallback: int) -> int:
    try:
        parsed = int(value)
        return parsed if parsed > 0 else fallback
    except (TypeError, ValueError):
        return fallback


def _safe_ratio(value: Any, fallback: Optional[float]) -> Optional[float]:
    """Parse a float in [0, 1]; anything else yields the fallback."""
    if isinstance(value, bool):
        return fallback
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return fallback
    if parsed != parsed or not 0.0 <= parsed <= 1.0:
        return fallback
    return parsed


def _str_field(d: dict, key: str, default: Optional[str]) -> Optional[str]:
    val = d.get(key, default)
    if not isinstance(val, str) or not val.strip():
        return default
    return val.strip()


def _section(raw: Any, name: str) -> dict:
    value = raw.get(name) if isinstance(raw, dict) else None
    return value if isinstance(value, dict) else {}


def load_runtime_config(config_path: Optional[Path] = None) -> RuntimeConfig:
    cfg = _default_config()
    path = config_path or _DEFAULT_CONFIG_PATH
    try:
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError:
        logger.warning("Runtime config file not found; using defaults", extra={"path": str(path)})
        return cfg
    except tomllib.TOMLDecodeError:
        logger.exception("Runtime config parse failed; using defaults", extra={"path": str(path)})
        return cfg
    except OSError:
        logger.exception("Runtime config load failed; using defaults", extra={"path": str(path)})
        return cfg

    hal_raw = _section(raw, "hal")
    local_raw = _section(raw, "local")
    matching_raw = _section(raw, "matching")

    threshold_raw = matching_raw.get("confidence_threshold", cfg.matching.confidence_threshold)
    threshold = _safe_ratio(threshold_raw, None)
    if threshold is None:
        threshold = cfg.matching.confidence_threshold
        logger.warning(
            "Invalid matching.confidence_threshold; using default",
            extra={"value": threshold_raw, "default": cfg.matching.confidence_threshold},
        )

    return RuntimeConfig(
        hal=HalConfig(
            api_url=_str_field(hal_raw, "api_url", cfg.hal.api_url),
            author_id=_str_field(hal_raw, "author_id", cfg.hal.author_id),
            timeout_secs=_safe_int(hal_raw.get("timeout_secs", cfg.hal.timeout_secs), cfg.hal.timeout_secs),
            rows=_safe_int(hal_raw.get("rows", cfg.hal.rows), cfg.hal.rows),
        ),
        local=LocalConfig(
            publications_path=_str_field(local_raw, "publications_path", cfg.local.publications_path),
        ),
        matching=MatchingConfig(
            confidence_threshold=threshold,
            workers=_safe_int(matching_raw.get("workers", cfg.matching.workers), cfg.matching.workers),
        ),
    )


RUNTIME_CONFIG = load_runtime_config()
