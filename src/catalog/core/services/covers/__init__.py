"""Cover image storage."""

from .cover_storage import CoverStorage, CoverUpload

__all__ = ["CoverStorage", "CoverUpload"]
