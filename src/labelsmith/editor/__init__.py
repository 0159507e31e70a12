"""Editor package: document buffers, the resident workspace and scoped access."""

from .access import DocumentAccessManager, DocumentHandle, Residency
from .document_model import DocumentMetadata, DocumentState
from .workspace import DocumentWorkspace

__all__ = [
    "DocumentAccessManager",
    "DocumentHandle",
    "Residency",
    "DocumentMetadata",
    "DocumentState",
    "DocumentWorkspace",
]
