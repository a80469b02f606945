from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

from . import validate_script


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate a script.json against the schema and editorial rules.")
    parser.add_argument("--script", type=Path, required=True, help="Path to the script JSON file.")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 on warnings as well as errors.",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    if not args.script.exists():
        print(f"[ERROR] Script not found: {args.script}", file=sys.stderr)
        return 1
    try:
        script = json.loads(args.script.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        print(f"[ERROR] Invalid JSON in {args.script}: {exc}", file=sys.stderr)
        return 1

    report = validate_script(script)
    print(json.dumps(report.model_dump(), ensure_ascii=False, indent=2))
    if not report.is_valid or (args.strict and report.issues):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
