"""Export Gemini conversations, including lazily loaded history, to PDF, Markdown or CSV."""

from .assembler import TranscriptAssembler, deduplicate_turns
from .config import Settings, load_config
from .converger import ConvergenceResult, HistoryConverger, State
from .errors import (
    ContainerNotFound,
    EmptyTranscript,
    ExportError,
    PerTurnExtractionError,
    RenderDependencyMissing,
    UnsupportedFormat,
)
from .exporter import ExportController, ExportResult, export
from .models import Report, Role, Transcript, Turn
from .progress import ProgressChannel, ProgressEvent
from .render import SemanticTextRenderer, render

__version__ = "1.0.0"
