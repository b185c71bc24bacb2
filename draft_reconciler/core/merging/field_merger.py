"""
Field Merger: layers parsed, normalized and manual documents into the effective record.
"""

from typing import Any

from ..models.fields import PERSISTENCE_ASSIGNED

# Literal strings that reviewers and older clients use to mean "no value"
NULL_LITERALS = frozenset({"null", ""})


def merge(
    parsed: dict[str, Any] | None,
    normalized: dict[str, Any] | None,
    manual: dict[str, Any] | None,
) -> dict[str, Any]:
    """
    Compute the effective record with precedence manual > normalized > parsed.

    Precedence is per field and presence based: a key present in a higher
    layer wins even when its value is None, while a key absent from the
    manual patch leaves the lower layers in force. Values are not merged
    deeply; a nested mapping in a higher layer replaces the lower one whole.

    Fields carrying PERSISTENCE_ASSIGNED are dropped so the storage layer
    assigns them. The strings "null" and "" become None.

    None layers count as empty and inputs are never mutated.
    """
    effective: dict[str, Any] = {}
    for layer in (parsed, normalized, manual):
        if layer:
            effective.update(layer)

    merged = {}
    for key, value in effective.items():
        if value is PERSISTENCE_ASSIGNED:
            continue
        if isinstance(value, str) and value in NULL_LITERALS:
            value = None
        merged[key] = value
    return merged
