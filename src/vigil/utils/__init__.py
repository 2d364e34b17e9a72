"""Vigil utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: Parser availability checks
"""

from vigil.utils.logging import get_logger, setup_logging
from vigil.utils.preflight import PreflightChecker, PreflightResult

__all__ = [
    "get_logger",
    "setup_logging",
    "PreflightChecker",
    "PreflightResult",
]
