"""
User configuration file support and run settings.

Reads/writes ``~/.netspeed/config.json``.  Values on disk are merged over
:data:`DEFAULTS`; command-line flags are merged over both when the
immutable :class:`Settings` for a run is built.

Supported keys::

    algorithm = "max"          # "max" (best sample) or "avg" (mean)
    num_closest = 3            # candidates considered during auto-selection
    num_latency_tests = 5      # probes per server
    report_char = "|"          # report-mode field separator
    server = null              # preferred server id / name
    concurrency = 4            # parallel probes / transfer windows
    latency_timeout = 5.0      # seconds per probe
    transfer_timeout = 30.0    # seconds per transfer window
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import (
    DEFAULT_ALGORITHM,
    DEFAULT_CONCURRENCY,
    DEFAULT_LATENCY_TIMEOUT,
    DEFAULT_NUM_CLOSEST,
    DEFAULT_NUM_LATENCY_TESTS,
    DEFAULT_REPORT_CHAR,
    DEFAULT_TRANSFER_TIMEOUT,
    DOWNLOAD_SIZES,
    MAX_CONCURRENCY,
    MIN_CONCURRENCY,
    MIN_NUM_LATENCY_TESTS,
    UPLOAD_SIZES,
)
from .errors import InvalidParameter
from .stats import Algorithm

logger = logging.getLogger(__name__)

_CONFIG_DIR = os.path.join(Path.home(), ".netspeed")
_CONFIG_FILE = "config.json"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "algorithm": DEFAULT_ALGORITHM,
    "num_closest": DEFAULT_NUM_CLOSEST,
    "num_latency_tests": DEFAULT_NUM_LATENCY_TESTS,
    "report_char": DEFAULT_REPORT_CHAR,
    "server": None,
    "concurrency": DEFAULT_CONCURRENCY,
    "latency_timeout": DEFAULT_LATENCY_TIMEOUT,
    "transfer_timeout": DEFAULT_TRANSFER_TIMEOUT,
}


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys."""
    path = _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            config.update(user)
        else:
            logger.warning("Ignoring config %s: top level is not an object", path)
    except (json.JSONDecodeError, IOError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)

    return config


def save_config(config: Dict[str, Any]) -> str:
    """Write *config* to disk.  Returns the file path."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)

    return path


def get_config_value(key: str) -> Any:
    """Get a single config value."""
    return load_config().get(key, DEFAULTS.get(key))


def set_config_value(key: str, value: Any) -> str:
    """Set a single config value and persist.  Returns file path."""
    config = load_config()
    config[key] = value
    return save_config(config)


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()


# ---------------------------------------------------------------------------
# Run settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    """Immutable per-run settings passed explicitly to every tester."""

    algorithm: Algorithm = Algorithm(DEFAULT_ALGORITHM)
    num_closest: int = DEFAULT_NUM_CLOSEST
    num_latency_tests: int = DEFAULT_NUM_LATENCY_TESTS
    report_char: str = DEFAULT_REPORT_CHAR
    concurrency: int = DEFAULT_CONCURRENCY
    latency_timeout: float = DEFAULT_LATENCY_TIMEOUT
    transfer_timeout: float = DEFAULT_TRANSFER_TIMEOUT
    download_sizes: Tuple[int, ...] = DOWNLOAD_SIZES
    upload_sizes: Tuple[int, ...] = UPLOAD_SIZES

    def __post_init__(self) -> None:
        # Accept plain strings so callers can pass config values straight in.
        object.__setattr__(self, "algorithm", Algorithm.parse(self.algorithm))
        object.__setattr__(self, "download_sizes", tuple(self.download_sizes))
        object.__setattr__(self, "upload_sizes", tuple(self.upload_sizes))
        self.validate()

    def validate(self) -> None:
        """Raise :class:`InvalidParameter` if any value is out of range."""
        # num_closest <= 0 is allowed: it leaves no candidates to probe.
        if self.num_latency_tests < MIN_NUM_LATENCY_TESTS:
            raise InvalidParameter(
                f"Number of latency tests must be at least {MIN_NUM_LATENCY_TESTS}"
            )
        if not MIN_CONCURRENCY <= self.concurrency <= MAX_CONCURRENCY:
            raise InvalidParameter(
                f"Concurrency must be between {MIN_CONCURRENCY} and {MAX_CONCURRENCY}"
            )
        if self.latency_timeout <= 0 or self.transfer_timeout <= 0:
            raise InvalidParameter("Timeouts must be positive")
        if not self.report_char:
            raise InvalidParameter("Report separator must not be empty")
        if any(size <= 0 for size in self.download_sizes + self.upload_sizes):
            raise InvalidParameter("Transfer sizes must be positive")

    @classmethod
    def from_config(
        cls,
        config: Optional[Mapping[str, Any]] = None,
        **overrides: Any,
    ) -> Settings:
        """
        Build settings from a config mapping (defaults to the user file).

        *overrides* whose value is ``None`` are ignored, so unset CLI flags
        fall through to the config file.
        """
        merged = dict(DEFAULTS)
        merged.update(load_config() if config is None else config)
        merged.update({k: v for k, v in overrides.items() if v is not None})

        fields = {
            "algorithm", "num_closest", "num_latency_tests", "report_char",
            "concurrency", "latency_timeout", "transfer_timeout",
            "download_sizes", "upload_sizes",
        }
        try:
            kwargs = {k: v for k, v in merged.items() if k in fields}
            for key in ("num_closest", "num_latency_tests", "concurrency"):
                kwargs[key] = int(kwargs[key])
            for key in ("latency_timeout", "transfer_timeout"):
                kwargs[key] = float(kwargs[key])
        except (TypeError, ValueError) as exc:
            raise InvalidParameter(f"Invalid configuration value: {exc}") from exc
        return cls(**kwargs)
