"""Deprecation marker and static usage analyzer.

The analyzer lives in :mod:`deprecheck.pipeline`; importing the package root
only loads the runtime marker.
"""

from .marker import deprecated, get_deprecation_message, is_deprecated, registry
from .models import Diagnostic, DeprecationMarker, Severity, SymbolReference
from .config import AnalyzerConfig, resolve_config

__all__ = [
    "deprecated",
    "get_deprecation_message",
    "is_deprecated",
    "registry",
    "Diagnostic",
    "DeprecationMarker",
    "Severity",
    "SymbolReference",
    "AnalyzerConfig",
    "resolve_config",
]
