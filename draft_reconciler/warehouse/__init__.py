"""
Storage adapters for drafts, reservations and audit entries.
"""

from .draft_repository import DraftRepository, InMemoryDraftRepository

__all__ = ["DraftRepository", "InMemoryDraftRepository"]
