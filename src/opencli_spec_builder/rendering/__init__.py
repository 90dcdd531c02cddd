"""Rendering exports."""

from .document_renderer import (
    OutputFormat,
    RenderError,
    document_to_mapping,
    format_for_path,
    render_document,
    render_mapping,
    write_document,
)

__all__ = [
    "OutputFormat",
    "RenderError",
    "document_to_mapping",
    "format_for_path",
    "render_document",
    "render_mapping",
    "write_document",
]
