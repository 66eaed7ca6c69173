"""CLI argument handling and output tests.

Drives ``reftree.cli.main`` with an in-memory provider registry.
Prevents regressions in row layout and error exits.
"""

from __future__ import annotations

import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from reftree import cli
from reftree.config import SearchSettings
from reftree.locations import Position, location_at
from reftree.providers import ProviderRegistry, QueryKind


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("reftree.cli.load_search_settings", return_value=SearchSettings())
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_prints_grouped_tree_with_current_match(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            a = root / "a.py"
            a.write_text("foo = 1\nprint(foo)\n", encoding="utf-8")
            b = root / "pkg" / "b.py"
            b.parent.mkdir()
            b.write_text("from a import foo\n", encoding="utf-8")
            calls: list[tuple[Path, Position]] = []

            def provider(uri: Path, position: Position):
                calls.append((uri, position))
                return [location_at(b, 0, 14, 17), location_at(a, 1, 6, 9), location_at(a, 0, 0, 3)]

            registry = ProviderRegistry()
            registry.register(QueryKind.REFERENCES, provider)
            stdout = io.StringIO()
            with mock.patch("sys.stdout", stdout):
                cli.main([str(a), "2", "8", "--no-color", "--root", str(root)], registry=registry)

        self.assertEqual(calls, [(a, Position(1, 7))])
        self.assertEqual(
            stdout.getvalue(),
            "a.py (2)\n"
            "  L1:1  foo = 1\n"
            "> L2:7  print(foo)\n"
            "pkg/b.py (1)\n"
            "  L1:15  from a import foo\n"
            "3 results in 2 files\n",
        )

    def test_implementations_flag_selects_query_kind(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "a.py"
            path.write_text("x = 1\n", encoding="utf-8")
            registry = ProviderRegistry()
            registry.register(QueryKind.IMPLEMENTATIONS, lambda _uri, _position: [])
            stdout = io.StringIO()
            with mock.patch("sys.stdout", stdout):
                cli.main([str(path), "1", "1", "--implementations", "--no-color"], registry=registry)

        self.assertEqual(stdout.getvalue(), "0 results in 0 files\n")

    def test_missing_provider_result_exits_with_message(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "a.py"
            path.write_text("x = 1\n", encoding="utf-8")
            registry = ProviderRegistry()
            registry.register(QueryKind.REFERENCES, lambda _uri, _position: None)

            with self.assertRaises(SystemExit) as ctx:
                cli.main([str(path), "1", "1"], registry=registry)

        self.assertIn("No references available", str(ctx.exception.code))

    def test_missing_file_exits(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SystemExit) as ctx:
                cli.main([str(Path(tmp) / "missing.py"), "1", "1"], registry=ProviderRegistry())

        self.assertIn("File not found", str(ctx.exception.code))

    def test_unreadable_match_file_renders_without_preview(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            path = root / "a.py"
            path.write_text("foo\n", encoding="utf-8")
            gone = root / "gone.py"
            registry = ProviderRegistry()
            registry.register(
                QueryKind.REFERENCES,
                lambda _uri, _position: [location_at(path, 0, 0, 3), location_at(gone, 4, 0, 3)],
            )
            stdout = io.StringIO()
            with mock.patch("sys.stdout", stdout):
                cli.main([str(path), "1", "1", "--no-color"], registry=registry)

        self.assertEqual(
            stdout.getvalue().splitlines(),
            ["a.py (1)", "> L1:1  foo", "gone.py (1)", "  L5:1", "2 results in 2 files"],
        )

    def test_settings_overrides_from_flags(self) -> None:
        parser = cli.build_parser()
        args = parser.parse_args(["a.py", "1", "1", "--hidden", "--no-skip-gitignored", "--style", "native"])

        settings = cli._settings_from_args(args, SearchSettings())

        self.assertTrue(settings.show_hidden)
        self.assertFalse(settings.skip_gitignored)
        self.assertEqual(settings.style, "native")

    def test_line_and_column_must_be_positive(self) -> None:
        with mock.patch("sys.stderr", io.StringIO()), self.assertRaises(SystemExit):
            cli.main(["a.py", "0", "1"], registry=ProviderRegistry())


if __name__ == "__main__":
    unittest.main()
