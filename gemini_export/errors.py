"""Error taxonomy for the export pipeline.

Every error carries a short ``user_message`` that is safe to show as-is;
the export entry point converts these into failed results.
"""


class ExportError(Exception):
    user_message = "Export failed"

    def __init__(self, message: str = None):
        self.user_message = message or self.user_message
        super().__init__(self.user_message)


class ContainerNotFound(ExportError):
    user_message = "No chat found. Open a Gemini conversation first."


class EmptyTranscript(ExportError):
    user_message = "No messages found in this chat"


class PerTurnExtractionError(ExportError):
    """One conversation container could not be rendered. Never fatal."""

    def __init__(self, index: int, cause: Exception):
        self.index = index
        self.cause = cause
        super().__init__(f"Error extracting container {index}: {cause}")


class RenderDependencyMissing(ExportError):
    def __init__(self, engine: str, package: str):
        self.engine = engine
        self.package = package
        super().__init__(
            f"The {engine} engine is not available. Install it with: pip install {package}"
        )


class UnsupportedFormat(ExportError):
    def __init__(self, fmt, supported):
        self.format = fmt
        self.supported = tuple(supported)
        choices = ", ".join(f'"{s}"' for s in self.supported)
        super().__init__(f'Unsupported export format: "{fmt}". Use {choices}.')
