"""Minimal LSP server for psargs argument files: diagnostics only.

Each non-blank line not starting with ``#`` is one command line. Lexical
and syntax errors are reported as errors; when ``psargs.toml`` declares
parameter sets, the best match's bind errors are reported as warnings.
"""

from __future__ import annotations

from pathlib import Path

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from psargs.binder import BinderSettings, ParameterSetBinder
from psargs.config import load_config, sets_from_config, settings_from_config
from psargs.errors import (
    ConfigError,
    LexError,
    ParameterDefinitionError,
    ParameterSetDefinitionError,
    ParseError,
    UnsupportedTypeError,
)
from psargs.parser import parse
from psargs.resolver import ParameterSetCollection
from psargs.results import BindError
from psargs.tokens import Span

server = LanguageServer("psargs-lsp", "0.1.0", text_document_sync_kind=TextDocumentSyncKind.Full)


def _diagnostic(line: int, start: int, end: int, message: str, severity: DiagnosticSeverity) -> Diagnostic:
    return Diagnostic(
        range=Range(
            start=Position(line=line, character=start),
            end=Position(line=line, character=max(end, start + 1)),
        ),
        message=message,
        severity=severity,
        source="psargs",
    )


def _span_diagnostic(line: int, span: Span, message: str, severity: DiagnosticSeverity) -> Diagnostic:
    # command lines are single-line, so only columns matter
    return _diagnostic(line, span.start.column - 1, span.end.column - 1, message, severity)


def _bind_diagnostic(line: int, text: str, error: BindError) -> Diagnostic:
    if error.nodes:
        start = min(n.span.start.column for n in error.nodes) - 1
        end = max(n.span.end.column for n in error.nodes) - 1
    else:
        start, end = 0, len(text)
    return _diagnostic(line, start, end, error.message, DiagnosticSeverity.Warning)


def _load_sets(search_dir: Path) -> tuple[ParameterSetCollection, list[str]]:
    try:
        config = load_config(None, search_dir)
        settings = settings_from_config(config)
        binder = ParameterSetBinder(BinderSettings(validate=settings.validate))
        return ParameterSetCollection(sets_from_config(config), binder), []
    except (ConfigError, ParameterDefinitionError, ParameterSetDefinitionError) as exc:
        return ParameterSetCollection(), [str(exc)]


def _validate(ls: LanguageServer, uri: str) -> None:
    """Check every command line in the document and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    search_dir = Path(doc.path).parent if doc.path else Path(".")
    collection, problems = _load_sets(search_dir)
    diagnostics = [_diagnostic(0, 0, 1, f"config: {p}", DiagnosticSeverity.Error) for p in problems]

    for line, text in enumerate(doc.source.splitlines()):
        stripped = text.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            sequence = parse(text)
        except LexError as exc:
            col = exc.position.column - 1
            diagnostics.append(_diagnostic(line, col, col + 1, exc.message, DiagnosticSeverity.Error))
            continue
        except ParseError as exc:
            diagnostics.append(_span_diagnostic(line, exc.span, exc.message, DiagnosticSeverity.Error))
            continue

        if not len(collection):
            continue
        try:
            result = collection.resolve(sequence)
        except (ParameterDefinitionError, UnsupportedTypeError) as exc:
            diagnostics.append(_diagnostic(0, 0, 1, f"config: {exc}", DiagnosticSeverity.Error))
            break
        best = result.best_match
        if result.is_match or best is None:
            continue
        if best.success:
            names = ", ".join(r.parameter_set.name for r in result if r.success)
            diagnostics.append(
                _diagnostic(
                    line,
                    0,
                    len(text),
                    f"matches more than one parameter set: {names}",
                    DiagnosticSeverity.Warning,
                )
            )
            continue
        diagnostics.extend(_bind_diagnostic(line, text, error) for error in best.errors)

    ls.text_document_publish_diagnostics(PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics))


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
