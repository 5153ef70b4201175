"""Transformers for turning downloaded archives into merged output."""

from .archive_extractor import ArchiveExtractor
from .payload_merger import PayloadMerger

__all__ = ["ArchiveExtractor", "PayloadMerger"]
