"""
Report assembly and rendering.
"""

from .report import ReportAssembler, ValidationReport, presentation_order
from .renderers import (
    render,
    render_csv,
    render_html,
    render_json,
    render_markdown,
    write_report,
)

__all__ = [
    "ReportAssembler",
    "ValidationReport",
    "presentation_order",
    "render",
    "render_csv",
    "render_html",
    "render_json",
    "render_markdown",
    "write_report",
]
