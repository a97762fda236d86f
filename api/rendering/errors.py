"""Exceptions raised by the certificate render paths."""


class RenderError(RuntimeError):
    """Base class for unrecoverable certificate rendering failures."""


class CertificateRenderError(RenderError):
    """Raised when the headless browser cannot launch, load or export a page."""


class CanvasTaintedError(RenderError):
    """Raised when a preview canvas holds a cross-origin image and can't be exported."""

    def __init__(self, source: str | None = None):
        self.source = source
        message = "Certificate preview can't be exported: the template image"
        if source:
            message += f" from {source}"
        message += " was loaded cross-origin without CORS permission"
        super().__init__(message)


class TemplateImageUnavailableError(RenderError):
    """Raised when no image load strategy produced a usable template image."""
