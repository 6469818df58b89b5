"""fixgate - severity-gated formatting fixes for Python source."""

from __future__ import annotations

from fixgate.categories import FixCategory
from fixgate.decision import FixDecision, decide
from fixgate.documents import Diagnostic, DiagnosticDescriptor, SourceDocument
from fixgate.options import ConfigurationStore
from fixgate.severity import InvalidSeverityError, Severity

__version__ = "0.1.0"

__all__ = [
    "ConfigurationStore",
    "Diagnostic",
    "DiagnosticDescriptor",
    "FixCategory",
    "FixDecision",
    "InvalidSeverityError",
    "Severity",
    "SourceDocument",
    "__version__",
    "decide",
]
