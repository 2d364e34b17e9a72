"""Vigil report rendering.

This module provides Jinja2-based rendering of repository results as text,
Markdown, or JSON. Templates are designed to produce identical output for
identical input.
"""

from vigil.templates.renderer import REPORT_FORMATS, ReportRenderer

__all__ = ["REPORT_FORMATS", "ReportRenderer"]
