"""
Unit tests for the draft CLI.
"""

import io
import json

import pytest

from draft_reconciler.cli.draft_cli import main


def write_json(path, document):
    path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
    return str(path)


@pytest.fixture
def parsed_file(tmp_path, complete_parsed):
    return write_json(tmp_path / "parsed.json", complete_parsed)


class TestNormalizeCommand:
    """Tests for the normalize command"""

    def test_normalize(self, parsed_file, capsys):
        assert main(["normalize", "--input", parsed_file]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["reservation_number"] == "NOL-88231"
        assert output["guest_count"] == 3
        assert output["usage_date"] == "2025-03-15"

    def test_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO('{"reservation_number": "R-1", "adults": "3명"}'))
        assert main(["normalize", "--input", "-"]) == 0
        assert json.loads(capsys.readouterr().out)["adults"] == 3

    def test_policy_definitions_coerce_extras(self, tmp_path, policy_path, capsys):
        path = write_json(tmp_path / "parsed.json", {
            "reservation_number": "R-1",
            "extras": {"pickup_time": "오후 2시", "dietary": "vegan, halal"},
        })

        assert main(["normalize", "--input", path, "--policy", policy_path]) == 0

        extras = json.loads(capsys.readouterr().out)["extras"]
        assert extras == {"pickup_time": "14:00", "dietary": ["vegan", "halal"]}

    def test_extras_untouched_without_policy(self, tmp_path, capsys):
        path = write_json(tmp_path / "parsed.json", {"extras": {"pickup_time": "오후 2시"}})
        assert main(["normalize", "--input", path]) == 0
        assert json.loads(capsys.readouterr().out)["extras"] == {"pickup_time": "오후 2시"}


class TestValidateCommand:
    """Tests for the validate command"""

    def test_valid_record(self, tmp_path, complete_parsed, capsys):
        assert main(["normalize", "--input", write_json(tmp_path / "p.json", complete_parsed)]) == 0
        record = json.loads(capsys.readouterr().out)
        record_file = write_json(tmp_path / "record.json", record)

        assert main(["validate", "--input", record_file, "--today", "2025-03-01"]) == 0

        result = json.loads(capsys.readouterr().out)
        assert result["valid"] is True
        assert result["flags"] == []

    def test_invalid_record_exit_code(self, tmp_path, capsys):
        record_file = write_json(tmp_path / "record.json", {"reservation_number": "R-1"})

        assert main(["validate", "--input", record_file, "--today", "2025-03-01"]) == 2

        result = json.loads(capsys.readouterr().out)
        assert result["valid"] is False
        errors = {error["path"]: error for error in result["errors"]}
        assert errors["/guest_count"]["kind"] == "schema"

    def test_policy_file(self, tmp_path, policy_path, capsys):
        record = {
            "reservation_number": "R-1", "quantity": 1, "adults": 1, "children": 0, "infants": 0,
            "guest_count": 1, "payment_status": "pending", "code_issued": False, "kakao_id": "!",
        }
        record_file = write_json(tmp_path / "record.json", record)

        assert main(["validate", "--input", record_file, "--policy", policy_path, "--today", "2025-03-01"]) == 0
        assert "suspicious_kakao_id" in json.loads(capsys.readouterr().out)["flags"]


class TestDiffCommand:
    """Tests for the diff command"""

    def test_diff(self, tmp_path, capsys):
        before = write_json(tmp_path / "a.json", {"a": 1, "b": {"c": 2}})
        after = write_json(tmp_path / "b.json", {"a": 1, "b": {"c": 3}, "d": 4})

        assert main(["diff", "--before", before, "--after", after]) == 0
        assert json.loads(capsys.readouterr().out) == {
            "b": {"action": "modified", "nested": {"c": {"action": "changed", "old": 2, "new": 3}}},
            "d": {"action": "added", "new": 4},
        }

    def test_summary(self, tmp_path, capsys):
        before = write_json(tmp_path / "a.json", {"a": 1, "b": {"c": 2}})
        after = write_json(tmp_path / "b.json", {"a": 1, "b": {"c": 3}, "d": 4})

        assert main(["diff", "--before", before, "--after", after, "--summary"]) == 0
        assert json.loads(capsys.readouterr().out) == ["Changed b.c: 2 -> 3", "Added d: 4"]


class TestErrors:
    """Tests for error exit codes"""

    def test_missing_file(self, tmp_path, capsys):
        assert main(["normalize", "--input", str(tmp_path / "missing.json")]) == 1
        assert json.loads(capsys.readouterr().err)["status"] == "error"

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert main(["normalize", "--input", str(path)]) == 1

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        assert main(["diff", "--before", str(path), "--after", str(path)]) == 1

    def test_no_command(self):
        assert main([]) == 1

    def test_malformed_policy_yaml(self, tmp_path, parsed_file, capsys):
        policy = tmp_path / "policy.yaml"
        policy.write_text("policy: [unclosed\n  price_tolerance: {", encoding="utf-8")

        assert main(["validate", "--input", parsed_file, "--policy", str(policy)]) == 1
        assert json.loads(capsys.readouterr().err)["status"] == "error"

    def test_policy_section_not_a_mapping(self, tmp_path, parsed_file):
        policy = tmp_path / "policy.yaml"
        policy.write_text("policy:\n  - price_tolerance\n", encoding="utf-8")

        assert main(["validate", "--input", parsed_file, "--policy", str(policy)]) == 1
