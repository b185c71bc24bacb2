"""
Unit tests for the field merger.
"""

from hypothesis import given
from hypothesis import strategies as st

from draft_reconciler.core.merging import merge
from draft_reconciler.core.models import PERSISTENCE_ASSIGNED, from_wire


class TestMerge:
    """Tests for layered precedence"""

    def test_scenario_manual_overrides_normalized(self):
        effective = merge(
            {"payment_status": "확정?"},
            {"payment_status": "pending"},
            {"payment_status": "confirmed"},
        )
        assert effective["payment_status"] == "confirmed"

    def test_normalized_overrides_parsed(self):
        effective = merge({"adults": "2명"}, {"adults": 2}, {})
        assert effective["adults"] == 2

    def test_missing_manual_key_is_not_a_patch(self):
        effective = merge({"memo": "a"}, {"memo": "b"}, {"adults": 3})
        assert effective["memo"] == "b"
        assert effective["adults"] == 3

    def test_explicit_none_in_manual_wins(self):
        effective = merge({}, {"email": "a@b.co"}, {"email": None})
        assert effective["email"] is None

    def test_null_literals_coerced(self):
        effective = merge({"memo": "null"}, {"kakao_id": ""}, {"phone": "null"})
        assert effective == {"memo": None, "kakao_id": None, "phone": None}

    def test_persistence_assigned_fields_dropped(self):
        effective = merge(
            {"created_at": "2025-01-01"},
            {},
            {"updated_at": PERSISTENCE_ASSIGNED, "created_at": PERSISTENCE_ASSIGNED},
        )
        assert "updated_at" not in effective
        assert "created_at" not in effective

    def test_legacy_wire_token_becomes_marker(self):
        patch = from_wire({"updated_at": "NOW()", "memo": "NOW()"})
        assert patch["updated_at"] is PERSISTENCE_ASSIGNED
        assert patch["memo"] == "NOW()"
        assert "updated_at" not in merge({}, {}, patch)

    def test_nested_values_replaced_not_merged(self):
        effective = merge({}, {"extras": {"pickup": "hotel", "seats": 2}}, {"extras": {"pickup": "port"}})
        assert effective["extras"] == {"pickup": "port"}

    def test_none_layers_are_empty(self):
        assert merge(None, None, None) == {}
        assert merge(None, {"adults": 2}, None) == {"adults": 2}

    def test_inputs_not_mutated(self):
        parsed = {"memo": "null"}
        normalized = {"memo": None, "adults": 2}
        manual = {"updated_at": PERSISTENCE_ASSIGNED}
        merge(parsed, normalized, manual)
        assert parsed == {"memo": "null"}
        assert normalized == {"memo": None, "adults": 2}
        assert manual == {"updated_at": PERSISTENCE_ASSIGNED}


layers = st.dictionaries(
    keys=st.sampled_from(["adults", "memo", "email", "payment_status", "product_name"]),
    values=st.one_of(st.none(), st.integers(), st.text(min_size=1).filter(lambda s: s not in ("null", ""))),
    max_size=5,
)


class TestMergeProperties:
    """Property tests for merge precedence"""

    @given(layers, layers, layers)
    def test_property_manual_always_wins(self, parsed, normalized, manual):
        effective = merge(parsed, normalized, manual)
        for key, value in manual.items():
            assert effective[key] == value

    @given(layers, layers)
    def test_property_normalized_wins_without_manual(self, parsed, normalized):
        effective = merge(parsed, normalized, {})
        for key, value in normalized.items():
            assert effective[key] == value
        assert set(effective) == set(parsed) | set(normalized)
