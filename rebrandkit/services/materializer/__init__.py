"""Project materializer service."""

from .service import MaterializerService, is_same_or_nested

__all__ = ["MaterializerService", "is_same_or_nested"]
