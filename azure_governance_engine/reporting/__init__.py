"""Reporting package — multi-format output generation."""

from .json_export import export_json
from .csv_export import export_csv
from .rendered_reports import export_html, export_markdown, render_html, render_markdown

__all__ = [
    "export_json",
    "export_csv",
    "export_markdown",
    "export_html",
    "render_markdown",
    "render_html",
]
