"""Build a cursor rule file from an exported project file.

Usage:
    rulegraph-export my-project-cursor-rules.json
    rulegraph-export my-project-cursor-rules.json -o - --indent 4
"""

import argparse
import json
import sys
from pathlib import Path

from rulegraph.errors import ProjectValidationError
from rulegraph.models.rule_file import RULE_FILE_NAME
from rulegraph.projects import parse_project
from rulegraph.rule_tree import generate_rule_file


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Convert an exported rule project into a cursor rule file."
    )
    parser.add_argument(
        "project_file",
        type=Path,
        help="path to the project JSON file",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=RULE_FILE_NAME,
        help=f"output path, or '-' for stdout (default: {RULE_FILE_NAME})",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)",
    )

    args = parser.parse_args(argv)

    if not args.project_file.exists():
        print(f"Error: project file not found: {args.project_file}", file=sys.stderr)
        return 1

    try:
        project = parse_project(args.project_file.read_text(encoding="utf-8"))
    except ProjectValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    rule_file = generate_rule_file(project.graph())
    text = json.dumps(rule_file.model_dump(mode="json"), indent=args.indent)

    if args.output == "-":
        print(text)
    else:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        print(f"✓ Wrote {len(rule_file.rules)} top-level rule(s) to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
