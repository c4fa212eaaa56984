"""Extraction of top-level type declarations from TypeScript sources."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from tree_sitter import Node

from ..errors import ParseError
from ..logging import get_logger
from ..models import ALIAS, INTERFACE, Diagnostic, SourceFile, TypeDeclaration
from ..shapes import Intersection, Record, Shape
from .grammar import language_for_path, parse
from .shape_builder import ShapeBuilder, named_children

_DECLARATIONS = {"type_alias_declaration": ALIAS, "interface_declaration": INTERFACE}

# Nodes whose bytes may legitimately hold quotes, backticks or comment openers.
_OPAQUE_NODES = {"comment", "html_comment", "hash_bang_line", "regex", "jsx_text"}
_LITERAL_NODES = {"string", "template_string", "template_literal_type"}

_UNTERMINATED = re.compile(rb"[\"'`]|/\*")
_UNTERMINATED_MESSAGES = {
    b'"': "Unterminated string literal",
    b"'": "Unterminated string literal",
    b"`": "Unterminated template literal",
    b"/*": "Unterminated block comment",
}


@dataclass
class ExtractionResult:
    """Declarations recovered from one file plus non-fatal diagnostics."""

    declarations: List[TypeDeclaration] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


class DeclarationExtractor:
    """Finds top-level type aliases and interfaces in a source file."""

    def __init__(self) -> None:
        self.logger = get_logger("extractor")

    def extract(self, source: SourceFile) -> ExtractionResult:
        """Return declarations found in ``source``.

        Raises ParseError when a string, template or block comment is never
        closed, since nothing after it can be trusted. Any other syntax error
        only costs the declaration it sits in: that declaration becomes a
        ``parse`` diagnostic and the rest of the file is still scanned.
        """
        text = source.text[1:] if source.text.startswith("\ufeff") else source.text
        source_bytes = text.encode("utf-8")
        tree = parse(source_bytes, language_for_path(source.rel_path))
        root = tree.root_node
        if root.has_error:
            _check_terminated(root, source_bytes, source.rel_path)

        context = _FileContext(source, ShapeBuilder(source_bytes))
        for child in root.children:
            self._visit(child, context, exported=False)

        self.logger.debug(
            "Extracted %d declarations from %s", len(context.result.declarations), source.rel_path
        )
        return context.result

    def _visit(self, node: Node, context: "_FileContext", *, exported: bool) -> None:
        if node.type in _DECLARATIONS:
            self._declaration(node, context, exported=exported)
        elif node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is not None:
                self._visit(declaration, context, exported=True)
            elif node.has_error:
                self._recover(node, context, exported=True)
        elif node.type == "ambient_declaration":
            for child in named_children(node):
                self._visit(child, context, exported=exported)
        elif node.type == "ERROR":
            self._recover(node, context, exported=exported)

    def _recover(self, node: Node, context: "_FileContext", *, exported: bool) -> None:
        """Keep the clean declarations inside an error region and report the rest."""
        reported = len(context.result.diagnostics)
        for child in node.children:
            self._visit(child, context, exported=exported)
        if len(context.result.diagnostics) > reported:
            return
        keyword = next((child for child in node.children if child.type in {"type", "interface"}), None)
        if keyword is None:
            return
        context.diagnose(
            "parse",
            f"Skipped malformed declaration: {_describe_error(node, context.builder)}",
            keyword,
        )

    def _declaration(self, node: Node, context: "_FileContext", *, exported: bool) -> None:
        if node.has_error:
            context.diagnose(
                "parse",
                f"Skipped malformed declaration: {_describe_error(node, context.builder)}",
                node,
            )
            return
        try:
            declaration = _build_declaration(node, context, exported=exported)
        except RecursionError:
            context.diagnose("internal", "Skipped declaration that nests too deeply to parse", node)
            return
        context.result.declarations.append(declaration)


class _FileContext:
    def __init__(self, source: SourceFile, builder: ShapeBuilder) -> None:
        self.source = source
        self.builder = builder
        self.result = ExtractionResult()

    def position(self, node: Node) -> Tuple[int, int]:
        row, byte_column = node.start_point
        return row + 1, _char_column(self.builder.source, node.start_byte, byte_column)

    def diagnose(self, kind: str, message: str, node: Node) -> None:
        line, _ = self.position(node)
        self.result.diagnostics.append(
            Diagnostic(kind=kind, path=self.source.rel_path, message=message, line=line)
        )


def _build_declaration(node: Node, context: _FileContext, *, exported: bool) -> TypeDeclaration:
    builder = context.builder
    name = node.child_by_field_name("name")
    type_params = builder.type_parameter_names(node.child_by_field_name("type_parameters"))

    shape: Shape
    if node.type == "type_alias_declaration":
        shape = builder.build(node.child_by_field_name("value"))
    else:
        shape = Record(builder.members(node.child_by_field_name("body")))
        heritage = _first_named(node, "extends_type_clause")
        if heritage is not None:
            shape = Intersection((shape, *(builder.build(base) for base in named_children(heritage))))

    line, column = context.position(node)
    return TypeDeclaration(
        name=builder.text(name),
        path=context.source.rel_path,
        line=line,
        column=column,
        kind=_DECLARATIONS[node.type],
        shape=shape,
        type_params=type_params,
        exported=exported,
    )


def _first_named(node: Node, node_type: str) -> Optional[Node]:
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


def _describe_error(node: Node, builder: ShapeBuilder) -> str:
    for child in _walk(node):
        if child.is_missing:
            return f"missing '{child.type}'"
        if child.type == "ERROR":
            text = builder.compact(child)
            if len(text) > 30:
                text = text[:27] + "..."
            return f"unexpected '{text}'" if text else "unexpected end of input"
    return "syntax error"


def _walk(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _check_terminated(root: Node, source_bytes: bytes, rel_path: str) -> None:
    """Raise ParseError for the first quote, backtick or ``/*`` outside a closed literal."""
    masked: List[Tuple[int, int]] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in _OPAQUE_NODES or (node.type in _LITERAL_NODES and not node.has_error):
            masked.append((node.start_byte, node.end_byte))
            continue
        stack.extend(node.children)
    masked.sort()

    start = 0
    for mask_start, mask_end in masked + [(len(source_bytes), len(source_bytes))]:
        match = _UNTERMINATED.search(source_bytes, start, max(mask_start, start))
        if match is not None:
            offset = match.start()
            line = source_bytes.count(b"\n", 0, offset) + 1
            line_start = source_bytes.rfind(b"\n", 0, offset) + 1
            raise ParseError(
                _UNTERMINATED_MESSAGES[match.group()],
                path=rel_path,
                line=line,
                column=_char_column(source_bytes, offset, offset - line_start),
            )
        start = max(start, mask_end)


def _char_column(source_bytes: bytes, offset: int, byte_column: int) -> int:
    """Convert a 0-based byte column into a 1-based character column."""
    prefix = source_bytes[offset - byte_column : offset]
    return len(prefix.decode("utf-8", errors="replace")) + 1


__all__ = ["DeclarationExtractor", "ExtractionResult"]
