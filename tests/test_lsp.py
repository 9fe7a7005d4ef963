"""Tests for the LSP server: diagnostic generation."""

from __future__ import annotations

from pathlib import Path

import pytest
from lsprotocol.types import (
    DiagnosticSeverity,
    PublishDiagnosticsParams,
    TextDocumentItem,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer
from pygls.workspace import Workspace

from psargs.lsp import _validate

CONFIG = """\
[[set]]
name = "Copy"

[[set.parameter]]
name = "Source"
position = 0
required = true

[[set.parameter]]
name = "Count"
type = "int"
"""


@pytest.fixture
def lsp_env(tmp_path: Path):
    """Create a LanguageServer with an initialized workspace and captured diagnostics."""
    ls = LanguageServer("test", "v0", text_document_sync_kind=TextDocumentSyncKind.Full)
    ws = Workspace(None)
    ls.protocol._workspace = ws

    published: list[PublishDiagnosticsParams] = []
    ls.text_document_publish_diagnostics = lambda params: published.append(params)

    uri = (tmp_path / "commands.args").as_uri()

    def put(source: str) -> str:
        ws.put_text_document(TextDocumentItem(uri=uri, language_id="psargs", version=0, text=source))
        return uri

    return ls, published, put


@pytest.fixture
def configured(tmp_path: Path) -> Path:
    (tmp_path / "psargs.toml").write_text(CONFIG)
    return tmp_path


# ---------------------------------------------------------------------------
# Lex and parse errors → Error severity
# ---------------------------------------------------------------------------


class TestSyntaxErrors:
    def test_unterminated_string(self, lsp_env) -> None:
        ls, published, put = lsp_env
        _validate(ls, put("-Name 'open"))

        assert len(published) == 1
        diags = published[0].diagnostics
        assert len(diags) == 1
        d = diags[0]
        assert d.severity == DiagnosticSeverity.Error
        assert "unterminated string" in d.message
        assert d.source == "psargs"
        # the string starts at column 7 (1-based) → character 6 (0-based)
        assert d.range.start.line == 0
        assert d.range.start.character == 6

    def test_parse_error(self, lsp_env) -> None:
        ls, published, put = lsp_env
        _validate(ls, put("a,"))

        (d,) = published[0].diagnostics
        assert d.severity == DiagnosticSeverity.Error
        assert "expected a value after ','" in d.message

    def test_error_on_later_line(self, lsp_env) -> None:
        ls, published, put = lsp_env
        _validate(ls, put("# comment\n\n-ok 1\n$nope"))

        (d,) = published[0].diagnostics
        assert d.range.start.line == 3
        assert d.range.start.character == 0


# ---------------------------------------------------------------------------
# Bind errors → Warning severity
# ---------------------------------------------------------------------------


class TestBindErrors:
    def test_incompatible_type(self, lsp_env, configured) -> None:
        ls, published, put = lsp_env
        _validate(ls, put("a.txt -Count many"))

        (d,) = published[0].diagnostics
        assert d.severity == DiagnosticSeverity.Warning
        assert d.message.startswith("Cannot bind 'many' to parameter 'Count'")
        assert d.range.start.character == 13
        assert d.range.end.character == 17

    def test_missing_required_spans_line(self, lsp_env, configured) -> None:
        ls, published, put = lsp_env
        _validate(ls, put("-Count 2"))

        (d,) = published[0].diagnostics
        assert d.message == "Missing required parameter: 'Source'"
        assert d.range.start.character == 0
        assert d.range.end.character == len("-Count 2")

    def test_no_config_means_syntax_only(self, lsp_env) -> None:
        ls, published, put = lsp_env
        _validate(ls, put("-Anything goes"))
        assert published[0].diagnostics == []

    def test_unsupported_shape(self, lsp_env, tmp_path: Path) -> None:
        (tmp_path / "psargs.toml").write_text(
            '[[set]]\nname = "Ids"\n\n[[set.parameter]]\nname = "Ids"\ntype = "tuple[int, ...]"\n'
        )
        ls, published, put = lsp_env
        _validate(ls, put("-Ids @{a=1}"))

        (d,) = published[0].diagnostics
        assert d.severity == DiagnosticSeverity.Error
        assert d.message == "config: int has no unique two-argument constructor"

    def test_invalid_config(self, lsp_env, tmp_path: Path) -> None:
        (tmp_path / "psargs.toml").write_text("[[set]]\nname = 3\n")
        ls, published, put = lsp_env
        _validate(ls, put("x"))

        (d,) = published[0].diagnostics
        assert d.severity == DiagnosticSeverity.Error
        assert d.message.startswith("config: ")


# ---------------------------------------------------------------------------
# Clean document → empty diagnostics
# ---------------------------------------------------------------------------


class TestCleanDocument:
    def test_valid_lines(self, lsp_env, configured) -> None:
        ls, published, put = lsp_env
        _validate(ls, put("a.txt\n# note\n-Source b -Count 3\n"))

        assert len(published) == 1
        assert published[0].diagnostics == []
