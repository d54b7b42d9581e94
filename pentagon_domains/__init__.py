"""
pentagon_domains — Lattice Domains for Abstract Interpretation
==============================================================

Sound, decidable over-approximations of program variable values, for use
by a host static analyser that owns the CFG and the fixpoint iteration.

Modules
-------
mathnumber
    Extended integers  ℤ ∪ {-∞, +∞, NaN}  used as interval bounds.
expressions
    The expression AST and operator enums consumed from the host.
lattice
    ``Satisfiability`` and the protocols every domain implements.
representation
    Structured, deterministic snapshots (text, JSON, S-expressions).
environment
    Pointwise environments and expression evaluation dispatch.
interval
    The interval domain.
upper_bounds
    Strict upper bounds (``x < y`` facts between variables).
pentagons
    Reduced product of intervals and upper bounds.
errors
    Exception hierarchy.
config
    Domain selection, widening delay and logging setup.
taint
    Three-point taint domain and the sink check.

Quick start
-----------
>>> from pentagon_domains import Pentagons, Identifier, Constant, BinaryExpression, BinaryOperator
>>> x, y = Identifier("x"), Identifier("y")
>>> p = Pentagons().assign(y, Constant(5))
>>> p = p.assign(x, BinaryExpression(BinaryOperator.SUB, y, Constant(1)))
>>> print(p.intervals.get_state(x))
[4, 4]
>>> y in p.bounds.get_state(x)
True

Package layout
--------------
::

    pentagon_domains/
    ├── __init__.py            ← this file
    ├── mathnumber.py
    ├── expressions.py
    ├── lattice.py
    ├── representation.py
    ├── environment.py
    ├── interval.py
    ├── upper_bounds.py
    ├── pentagons.py
    ├── taint.py
    ├── errors.py
    └── config.py
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__author__ = "Pentagon Domains Contributors"
__license__ = "MIT"
__all__: List[str] = []          # populated incrementally below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_import)
#
# Every module is imported eagerly; a failure is fatal.
# ---------------------------------------------------------------------------

_MODULES = {
    "errors": [
        "ErrorCode",
        "DomainError",
        "SemanticError",
        "InvalidIntervalError",
        "ConfigurationError",
        "UnknownDomainError",
    ],
    "mathnumber": [
        "MathNumber",
        "PLUS_INFINITY",
        "MINUS_INFINITY",
    ],
    "expressions": [
        "UnaryOperator",
        "BinaryOperator",
        "TernaryOperator",
        "Constant",
        "Identifier",
        "PushAny",
        "UnaryExpression",
        "BinaryExpression",
        "TernaryExpression",
        "SemanticOracle",
        "TAINTED_ANNOTATION",
        "CLEAN_ANNOTATION",
        "SINK_ANNOTATION",
    ],
    "lattice": [
        "Satisfiability",
        "Lattice",
        "ValueDomain",
        "AbstractState",
    ],
    "representation": [
        "StructuredRepresentation",
        "StringRepresentation",
        "SetRepresentation",
        "ListRepresentation",
        "MapRepresentation",
    ],
    "environment": [
        "Environment",
        "ValueEnvironment",
    ],
    "interval": [
        "IntInterval",
        "Interval",
    ],
    "upper_bounds": [
        "UpperBoundSet",
        "StrictUpperBounds",
    ],
    "pentagons": [
        "Pentagons",
    ],
    "config": [
        "DomainConfig",
        "DomainRegistry",
        "create_state",
        "extrapolate",
        "configure_logging",
    ],
    "taint": [
        "Taint",
        "Parameter",
        "CallSite",
        "TaintWarning",
        "check_sink_call",
    ],
}

# ---------------------------------------------------------------------------
# Import helper
# ---------------------------------------------------------------------------

def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace.

    Parameters
    ----------
    module_rel_name:
        Module name relative to this package (e.g. ``"interval"``).
    names:
        Public symbols to re-export.
    """
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"pentagon_domains: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(
                f"pentagon_domains.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)

    setattr(current_module, module_rel_name, mod)
    if module_rel_name not in __all__:
        __all__.append(module_rel_name)

# ---------------------------------------------------------------------------
# Eagerly import everything at package load time
# ---------------------------------------------------------------------------

for _mod, _names in _MODULES.items():
    _import_names(_mod, _names)

del _mod, _names

# ---------------------------------------------------------------------------
# Package-level utilities
# ---------------------------------------------------------------------------

def list_submodules() -> List[str]:
    """Return the names of all submodules in the package."""
    return sorted(_MODULES)


def package_info() -> dict:
    """Return a dict of metadata about the package, for diagnostics."""
    loaded = []
    missing = []
    for mod_name in list_submodules():
        fq = f"{__name__}.{mod_name}"
        if fq in sys.modules:
            loaded.append(mod_name)
        else:
            missing.append(mod_name)

    return {
        "package": __name__,
        "version": __version__,
        "python": sys.version,
        "loaded_submodules": loaded,
        "missing_submodules": missing,
        "domains": sorted(config.default_registry.tags()),  # noqa: F821
    }


__all__ += ["list_submodules", "package_info", "__version__"]

# ---------------------------------------------------------------------------
# TYPE_CHECKING block — gives IDEs full visibility without runtime cost
# ---------------------------------------------------------------------------

if TYPE_CHECKING:
    from .errors import (
        ErrorCode as ErrorCode,
        DomainError as DomainError,
        SemanticError as SemanticError,
        InvalidIntervalError as InvalidIntervalError,
        ConfigurationError as ConfigurationError,
        UnknownDomainError as UnknownDomainError,
    )
    from .mathnumber import (
        MathNumber as MathNumber,
        PLUS_INFINITY as PLUS_INFINITY,
        MINUS_INFINITY as MINUS_INFINITY,
    )
    from .expressions import (
        UnaryOperator as UnaryOperator,
        BinaryOperator as BinaryOperator,
        TernaryOperator as TernaryOperator,
        Constant as Constant,
        Identifier as Identifier,
        PushAny as PushAny,
        UnaryExpression as UnaryExpression,
        BinaryExpression as BinaryExpression,
        TernaryExpression as TernaryExpression,
        SemanticOracle as SemanticOracle,
        TAINTED_ANNOTATION as TAINTED_ANNOTATION,
        CLEAN_ANNOTATION as CLEAN_ANNOTATION,
        SINK_ANNOTATION as SINK_ANNOTATION,
    )
    from .lattice import (
        Satisfiability as Satisfiability,
        Lattice as Lattice,
        ValueDomain as ValueDomain,
        AbstractState as AbstractState,
    )
    from .representation import (
        StructuredRepresentation as StructuredRepresentation,
        StringRepresentation as StringRepresentation,
        SetRepresentation as SetRepresentation,
        ListRepresentation as ListRepresentation,
        MapRepresentation as MapRepresentation,
    )
    from .environment import (
        Environment as Environment,
        ValueEnvironment as ValueEnvironment,
    )
    from .interval import (
        IntInterval as IntInterval,
        Interval as Interval,
    )
    from .upper_bounds import (
        UpperBoundSet as UpperBoundSet,
        StrictUpperBounds as StrictUpperBounds,
    )
    from .pentagons import Pentagons as Pentagons
    from .config import (
        DomainConfig as DomainConfig,
        DomainRegistry as DomainRegistry,
        create_state as create_state,
        extrapolate as extrapolate,
        configure_logging as configure_logging,
    )
    from .taint import (
        Taint as Taint,
        Parameter as Parameter,
        CallSite as CallSite,
        TaintWarning as TaintWarning,
        check_sink_call as check_sink_call,
    )
