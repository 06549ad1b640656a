"""Command-line interface for the Concept Vault client."""
from __future__ import annotations
import argparse
import os
import sys
from typing import List, Optional

from concept_vault.application.outcome import Outcome
from concept_vault.application.workspace import ConceptWorkspace
from concept_vault.container import build_workspace
from concept_vault.core.config import API_BASE_URL, CACHE_PATH, HOST, LOG_LEVEL, PORT
from concept_vault.core.log import configure_logging
from concept_vault.domain.concept.models import Concept
from concept_vault.domain.concept.rules import ValidationResult

_LEVEL_MARKS = {"error": "❌", "warning": "⚠️ ", "info": "ℹ️ ", "success": "✅"}


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concept-vault",
        description="Personal knowledge base of software concepts",
    )
    parser.add_argument("--api", default=API_BASE_URL, help="Base URL of the Concept Vault API")
    parser.add_argument("--cache", default=CACHE_PATH, help="Path of the local cache file")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level (default: %(default)s)")

    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=HOST)
    serve.add_argument("--port", type=int, default=PORT)

    sub.add_parser("list", help="List all concepts grouped by topic")

    search = sub.add_parser("search", help="Search concepts (case-insensitive substring)")
    search.add_argument("query")

    sub.add_parser("stats", help="Show concept and topic counts")

    export = sub.add_parser("export", help="Export all concepts to a JSON file")
    export.add_argument("--out", default=".", help="Directory to write the export into")

    imp = sub.add_parser("import", help="Validate (and optionally import) a JSON file")
    imp.add_argument("file")
    imp.add_argument("--yes", action="store_true", help="Import after a successful validation")

    sub.add_parser("push", help="Replace the database contents with the local concepts")
    sub.add_parser("pull", help="Replace the local concepts with the database contents")
    return parser


# ------------------------------------------------------------------
# Output helpers
# ------------------------------------------------------------------
def print_outcome(outcome: Outcome) -> None:
    mark = _LEVEL_MARKS.get(outcome.level, "")
    print(f"{mark} {outcome.title}: {outcome.detail}")


def print_concepts(grouped: dict) -> None:
    if not grouped:
        print("No concepts found.")
        return
    for topic, concepts in grouped.items():
        print(f"\n📚 {topic} ({len(concepts)})")
        for concept in concepts:
            print(f"  • {concept.title} [{concept.keyword}] {_short(concept)}")


def _short(concept: Concept, width: int = 60) -> str:
    text = concept.definition.replace("\n", " ")
    return text if len(text) <= width else text[: width - 1] + "…"


def print_validation(result: ValidationResult) -> None:
    status = "Valid" if result.is_valid else "Invalid"
    print(
        f"{status}: {result.total_concepts} total, {len(result.valid_concepts)} valid, "
        f"{len(result.errors)} errors, {len(result.warnings)} warnings"
    )
    for diagnostic in result.diagnostics:
        mark = _LEVEL_MARKS.get(diagnostic.level, "")
        line = f"{mark} {diagnostic.describe()}"
        if diagnostic.field:
            line += f" (field: {diagnostic.field})"
        if diagnostic.line:
            line += f" (line: {diagnostic.line})"
        print(line)
    preview = result.valid_concepts[:5]
    if preview:
        print("\nPreview of concepts to be imported:")
        for concept in preview:
            print(f"  • {concept.title} • {concept.topic}")
        if len(result.valid_concepts) > 5:
            print(f"  ... and {len(result.valid_concepts) - 5} more concepts")


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------
def _serve(args) -> int:
    import uvicorn

    uvicorn.run("concept_vault.main:app", host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


def _import(workspace: ConceptWorkspace, args) -> int:
    staged = workspace.stage_import_file(args.file)
    if not staged.is_success:
        print_outcome(Outcome.error("Invalid file", staged.error))
        return 1
    print_validation(staged.value)
    if not args.yes:
        workspace.discard_import()
        if staged.value.is_valid:
            print("\nRe-run with --yes to import.")
        return 0 if staged.value.is_valid else 1
    outcome = workspace.commit_import()
    print_outcome(outcome)
    return 0 if outcome.ok else 1


def run(args) -> int:
    if args.command == "serve":
        return _serve(args)

    workspace = build_workspace(args.api, args.cache)
    loaded = workspace.load()
    if not loaded.ok and args.command not in ("pull", "import"):
        print_outcome(loaded)
        return 1

    if args.command == "list":
        print_concepts(workspace.search_by_topic(""))
        return 0
    if args.command == "search":
        print_concepts(workspace.search_by_topic(args.query))
        return 0
    if args.command == "stats":
        stats = workspace.stats()
        print(f"Total concepts: {stats.total}")
        print(f"Topics: {stats.topics}")
        return 0
    if args.command == "import":
        return _import(workspace, args)

    if args.command == "export":
        outcome = workspace.export(os.path.abspath(args.out))
    elif args.command == "push":
        outcome = workspace.push()
    elif args.command == "pull":
        outcome = workspace.pull()
    else:
        raise ValueError(f"Unknown command: {args.command}")
    print_outcome(outcome)
    return 0 if outcome.ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
