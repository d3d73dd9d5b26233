"""Resolution of resume and attachment references.

Blobs live in external document storage; the pipeline only keeps the
reference string.
"""

from abc import ABC, abstractmethod
from urllib.parse import urlparse

from talentflow.core.config import settings


class DocumentResolver(ABC):
    """Checks references to externally stored documents."""

    @abstractmethod
    async def resolve(self, reference: str) -> str | None:
        """Resolve a document reference.

        Args:
            reference: Opaque reference supplied by the client

        Returns:
            The canonical reference to store, or None if it is unknown
        """
        pass


class SchemeDocumentResolver(DocumentResolver):
    """Accepts URI references whose scheme points at a known storage backend."""

    def __init__(self, allowed_schemes: list[str] | None = None):
        schemes = allowed_schemes or settings.document_reference_schemes
        self.allowed_schemes = {scheme.lower() for scheme in schemes}

    async def resolve(self, reference: str) -> str | None:
        reference = reference.strip()
        if not reference:
            return None

        parsed = urlparse(reference)
        if parsed.scheme.lower() not in self.allowed_schemes or not parsed.netloc:
            return None
        return reference
