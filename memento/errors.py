"""Exceptions raised by the memento composition engine."""

from typing import List


class MementoError(Exception):
    """Base class for every error the engine reports to its caller."""


class UnknownTemplateError(MementoError, LookupError):
    """Raised when a render request names a template that is not registered."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Unknown template: {template_id}")


class MalformedPhotoError(MementoError, ValueError):
    """Raised when an embedded photo data URI cannot be parsed."""


class RasterizeError(MementoError):
    """Raised when neither the primary nor the fallback rasterizer produced an image."""


class EncodeError(MementoError):
    """Raised when the composed canvas cannot be encoded as PNG."""


class RenderValidationError(ValueError):
    """Raised by callers when a render request fails structural validation."""

    def __init__(self, issues: List[str]):
        self.issues = [str(i).strip() for i in issues if str(i).strip()]
        if not self.issues:
            self.issues = ["Invalid render request"]
        super().__init__(self._format())

    def _format(self) -> str:
        if len(self.issues) == 1:
            return self.issues[0]
        return "; ".join(self.issues)
