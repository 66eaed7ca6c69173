"""Command-line front door for reftree.

Runs a references or implementations query for one cursor position, loads
each matching file, and prints the grouped result tree.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

from .config import SearchSettings, load_search_settings
from .documents import TextDocument
from .locations import Position
from .model import MatchTree
from .providers import ProviderRegistry, QueryKind, default_registry
from .rendering import render_tree


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Group references or implementations of the symbol at a cursor position by file."
    )
    parser.add_argument("path", help="File containing the cursor.")
    parser.add_argument("line", type=_positive_int, help="1-based cursor line.")
    parser.add_argument("column", type=_positive_int, help="1-based cursor column.")
    parser.add_argument(
        "--implementations",
        action="store_true",
        help="List definitions instead of references.",
    )
    parser.add_argument("--root", default=None, help="Search root. Defaults to the git top-level of PATH.")
    parser.add_argument("--style", default=None, help="Pygments style name for previews.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument("--hidden", action="store_true", help="Search hidden files too.")
    parser.add_argument(
        "--skip-gitignored",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Skip files ignored by git (default comes from config).",
    )
    return parser


async def collect_documents(tree: MatchTree) -> dict[Path, TextDocument]:
    """Load every group's document in tree order, prefetching the next one.

    Files that fail to load are left out; their rows render without preview.
    """
    documents: dict[Path, TextDocument] = {}
    for group in tree.groups:
        try:
            documents[group.uri] = await group.get_document(prefetch_next=True)
        except OSError:
            continue
    return documents


async def run_query(
    path: Path,
    position: Position,
    kind: QueryKind,
    registry: ProviderRegistry,
) -> tuple[MatchTree | None, dict[Path, TextDocument]]:
    tree = await MatchTree.create(path, position, kind, registry=registry)
    if tree is None:
        return None, {}
    return tree, await collect_documents(tree)


def _settings_from_args(args: argparse.Namespace, base: SearchSettings) -> SearchSettings:
    settings = base
    if args.hidden:
        settings = replace(settings, show_hidden=True)
    if args.skip_gitignored is not None:
        settings = replace(settings, skip_gitignored=bool(args.skip_gitignored))
    if args.style:
        settings = replace(settings, style=args.style)
    return settings


def main(argv: list[str] | None = None, registry: ProviderRegistry | None = None) -> None:
    """Parse CLI arguments, run the query, and print the result tree.

    ``registry`` is primarily for tests; when omitted the ripgrep/Tree-sitter
    providers are used with persisted settings plus CLI overrides.
    """
    args = build_parser().parse_args(argv)

    path = Path(args.path)
    if not path.is_file():
        raise SystemExit(f"File not found: {path}")
    path = path.resolve()
    root = Path(args.root).resolve() if args.root else None
    if root is not None and not root.is_dir():
        raise SystemExit(f"Directory not found: {root}")

    settings = _settings_from_args(args, load_search_settings())
    if registry is None:
        registry = default_registry(settings, root=root)

    kind = QueryKind.IMPLEMENTATIONS if args.implementations else QueryKind.REFERENCES
    position = Position(args.line - 1, args.column - 1)
    tree, documents = asyncio.run(run_query(path, position, kind, registry))
    if tree is None:
        raise SystemExit(f"No {kind.label} available at {path}:{args.line}:{args.column}")

    display_root = root if root is not None else path.parent
    rows = render_tree(tree, documents, root=display_root, style=settings.style, no_color=args.no_color)
    sys.stdout.write("\n".join(rows) + "\n")


if __name__ == "__main__":
    main()
