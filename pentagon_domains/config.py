"""
pentagon_domains/config.py
══════════════════════════

Host-facing configuration: which domain to run, how long to delay
widening, and how chatty the package logger is.

    config = DomainConfig.from_mapping({"domain": "pentagons", "widen_delay": 2})
    state  = create_state(config)                      # ⊤ of the domain
    ...
    head   = extrapolate(previous, current, iteration, config)
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Union

from .environment import ValueEnvironment
from .errors import ConfigurationError, ErrorCode, UnknownDomainError
from .interval import Interval
from .pentagons import Pentagons
from .taint import Taint
from .upper_bounds import StrictUpperBounds

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "pentagon_domains"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class DomainConfig:
    """Tuning knobs for a domain instance."""
    domain: str = "pentagons"
    widen_delay: int = 3
    log_level: str = "WARNING"

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.widen_delay < 0:
            warnings.append("widen_delay must be non-negative")
        if self.log_level.upper() not in _LOG_LEVELS:
            warnings.append(f"unknown log_level {self.log_level!r}")
        if not default_registry.has(self.domain):
            warnings.append(f"unknown domain {self.domain!r}")
        return warnings

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> DomainConfig:
        """Build a config from plain settings, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(settings) - known)
        if unknown:
            raise ConfigurationError(
                f"unknown settings: {', '.join(unknown)}",
                hint=f"expected a subset of {sorted(known)}",
            )
        try:
            widen_delay = int(settings.get("widen_delay", cls.widen_delay))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"widen_delay must be an integer, got {settings['widen_delay']!r}",
                cause=exc,
            ) from exc
        return cls(
            domain=str(settings.get("domain", cls.domain)),
            widen_delay=widen_delay,
            log_level=str(settings.get("log_level", cls.log_level)),
        )


class DomainRegistry:
    """
    Registry of abstract domains by tag.

    Each factory returns the initial (⊤) state of its domain.
    """

    def __init__(self) -> None:
        self._domains: Dict[str, Callable[[], Any]] = {}
        self._domains["interval"] = lambda: ValueEnvironment(Interval.top())
        self._domains["upper_bounds"] = StrictUpperBounds
        self._domains["pentagons"] = Pentagons
        self._domains["taint"] = lambda: ValueEnvironment(Taint.top())

    def register(self, tag: str, factory: Callable[[], Any]) -> None:
        """Register a domain factory under the given *tag*."""
        self._domains[tag] = factory

    def get(self, tag: str) -> Callable[[], Any]:
        """Return the factory for *tag*, or raise ``UnknownDomainError``."""
        try:
            return self._domains[tag]
        except KeyError:
            raise UnknownDomainError(
                f"no domain registered under {tag!r}",
                hint=f"available: {', '.join(sorted(self._domains))}",
            ) from None

    def has(self, tag: str) -> bool:
        return tag in self._domains

    def tags(self) -> FrozenSet[str]:
        return frozenset(self._domains.keys())

    def create(self, tag: str) -> Any:
        """Instantiate a fresh ⊤ state for the domain identified by *tag*."""
        return self.get(tag)()


default_registry = DomainRegistry()


def create_state(config: Optional[DomainConfig] = None,
                 registry: Optional[DomainRegistry] = None) -> Any:
    """The initial state of the configured domain."""
    config = config or DomainConfig()
    registry = registry or default_registry
    for warning in config.validate():
        if not warning.startswith("unknown domain"):
            logger.warning("config: %s", warning)
    return registry.create(config.domain)


def extrapolate(previous: Any, current: Any, iteration: int,
                config: Optional[DomainConfig] = None) -> Any:
    """
    Loop-head operator: ``previous ⊔ current`` for the first
    ``widen_delay`` iterations, ``previous ∇ current`` afterwards.
    """
    delay = (config or DomainConfig()).widen_delay
    if iteration < delay:
        return previous.join(current)
    return previous.widen(current)


def configure_logging(level: Union[int, str] = logging.WARNING) -> logging.Logger:
    """Attach a stderr handler to the package logger."""
    if isinstance(level, str):
        name = level.upper()
        if name not in _LOG_LEVELS:
            raise ConfigurationError(
                f"unknown log level {level!r}", ErrorCode.INVALID_CONFIG
            )
        level = getattr(logging, name)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger(PACKAGE_LOGGER)
    root.setLevel(level)
    root.addHandler(handler)
    return root


__all__ = [
    "PACKAGE_LOGGER",
    "DomainConfig",
    "DomainRegistry",
    "default_registry",
    "create_state",
    "extrapolate",
    "configure_logging",
]
