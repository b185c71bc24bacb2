"""
Draft CLI for running the pure pipeline stages over JSON documents.

Usage:
    python -m draft_reconciler.cli.draft_cli normalize --input parsed.json [--policy config/validation_policy.yaml]
    python -m draft_reconciler.cli.draft_cli validate --input record.json [--policy config/validation_policy.yaml]
    python -m draft_reconciler.cli.draft_cli diff --before a.json --after b.json [--summary]

"-" reads a document from stdin. Results are printed as JSON on stdout.
"""

import argparse
import json
import sys
from datetime import date
from typing import Any

import yaml

from draft_reconciler.core.diff import diff, summarize
from draft_reconciler.core.normalization import normalize
from draft_reconciler.core.rules import RuleConfigLoader, validate
from draft_reconciler.observability.logger import get_logger

logger = get_logger(__name__)


def load_document(path: str) -> dict[str, Any]:
    """Read a JSON object from a file path, or stdin for "-"."""
    if path == "-":
        document = json.load(sys.stdin)
    else:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    if not isinstance(document, dict):
        raise ValueError(f"{path}: expected a JSON object, got {type(document).__name__}")
    return document


def print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def load_policy(path: str | None):
    return RuleConfigLoader(path).load_policy() if path else None


def normalize_command(args: argparse.Namespace) -> int:
    policy = load_policy(args.policy)
    definitions = policy.field_definitions if policy else None
    print_json(normalize(load_document(args.input), field_definitions=definitions))
    return 0


def validate_command(args: argparse.Namespace) -> int:
    policy = load_policy(args.policy)
    today = date.fromisoformat(args.today) if args.today else None

    result = validate(load_document(args.input), policy=policy, today=today)
    print_json(result.model_dump())
    return 0 if result.valid else 2


def diff_command(args: argparse.Namespace) -> int:
    changes = diff(load_document(args.before), load_document(args.after))
    print_json(summarize(changes) if args.summary else changes)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the draft CLI. Exit codes: 0 ok, 1 error, 2 invalid record."""
    parser = argparse.ArgumentParser(
        description="Normalize, validate and diff reservation documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Normalize an extractor guess
  %(prog)s normalize --input parsed.json

  # Validate an effective record against a policy, as of a given day
  %(prog)s validate --input record.json --policy config/validation_policy.yaml --today 2025-03-01

  # Human-readable change summary
  %(prog)s diff --before parsed.json --after record.json --summary
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    normalize_parser = subparsers.add_parser("normalize", help="Normalize a parsed document")
    normalize_parser.add_argument("--input", required=True, help="Parsed JSON document ('-' for stdin)")
    normalize_parser.add_argument("--policy", help="Validation policy YAML whose extras field definitions apply (optional)")

    validate_parser = subparsers.add_parser("validate", help="Validate an effective record")
    validate_parser.add_argument("--input", required=True, help="Record JSON document ('-' for stdin)")
    validate_parser.add_argument("--policy", help="Validation policy YAML (optional)")
    validate_parser.add_argument("--today", help="Reference date YYYY-MM-DD (default: today)")

    diff_parser = subparsers.add_parser("diff", help="Diff two documents")
    diff_parser.add_argument("--before", required=True, help="Original JSON document")
    diff_parser.add_argument("--after", required=True, help="Changed JSON document")
    diff_parser.add_argument("--summary", action="store_true", help="Print summary lines instead of the diff")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "normalize": normalize_command,
        "validate": validate_command,
        "diff": diff_command,
    }

    try:
        return commands[args.command](args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(json.dumps({"status": "error", "error": str(e)}), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
