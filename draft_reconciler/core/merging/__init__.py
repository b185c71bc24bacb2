"""
Layered merge of draft documents into an effective record.
"""

from .field_merger import NULL_LITERALS, merge

__all__ = ["merge", "NULL_LITERALS"]
