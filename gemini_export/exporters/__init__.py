"""Output formats. Each exporter turns a Transcript into bytes."""

from collections import namedtuple

from ..errors import UnsupportedFormat
from . import csv_export, markdown, pdf

ExportFormat = namedtuple("ExportFormat", "name extension mime_type render")

FORMATS = {
    "pdf": ExportFormat("pdf", "pdf", "application/pdf", pdf.export_pdf),
    "markdown": ExportFormat("markdown", "md", "text/markdown;charset=utf-8", markdown.export_markdown),
    "csv": ExportFormat("csv", "csv", "text/csv;charset=utf-8", csv_export.export_csv),
}

ALIASES = {
    "document": "pdf",
    "md": "markdown",
    "linear-markup": "markdown",
    "delimited-text": "csv",
}


def resolve_format(name) -> ExportFormat:
    key = str(name or "").strip().lower()
    key = ALIASES.get(key, key)
    if key not in FORMATS:
        raise UnsupportedFormat(name, FORMATS)
    return FORMATS[key]
