"""Vigil data models.

This module exports all core entities used throughout the application:
- Finding: One reported issue with severity, category, location, and rule
- FileResult / FileMetrics: Per-file analysis outcome
- RepositoryResult: Aggregated repository run outcome
- AnalysisError: Non-fatal errors encountered during analysis
"""

from vigil.models.analysis import (
    AnalysisError,
    AnalysisStatus,
    ComplexitySummary,
    FileMetrics,
    FileResult,
    RepositoryResult,
    SeverityTally,
)
from vigil.models.finding import (
    Category,
    Finding,
    FindingStatus,
    Location,
    RuleRef,
    Severity,
    Suggestion,
)

__all__ = [
    "AnalysisError",
    "AnalysisStatus",
    "Category",
    "ComplexitySummary",
    "FileMetrics",
    "FileResult",
    "Finding",
    "FindingStatus",
    "Location",
    "RepositoryResult",
    "RuleRef",
    "Severity",
    "SeverityTally",
    "Suggestion",
]
