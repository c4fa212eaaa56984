"""Tests for typedupes.parsing.extractor."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from typedupes.errors import ParseError
from typedupes.models import ALIAS, INTERFACE, SourceFile
from typedupes.parsing import DeclarationExtractor, ExtractionResult, language_for_path
from typedupes.parsing.grammar import get_parser
from typedupes.shapes import (
    Function,
    Generic,
    Intersection,
    Mapped,
    Member,
    Operator,
    Param,
    Primitive,
    Record,
    Reference,
    Tuple,
    TupleElement,
)


def _extract(text: str, path: str = "src/a.ts") -> ExtractionResult:
    source = SourceFile(path=Path(path), rel_path=path, text=textwrap.dedent(text).lstrip("\n"))
    return DeclarationExtractor().extract(source)


def test_extracts_aliases_and_interfaces() -> None:
    result = _extract(
        """
        export type User = { id: string; name?: string };
        interface Props extends Base<string>, Other {
          readonly label: string
          onClick(event: MouseEvent): void
        }
        """
    )

    assert result.diagnostics == []
    user, props = result.declarations
    assert (user.name, user.kind, user.line, user.exported) == ("User", ALIAS, 1, True)
    assert user.shape == Record(
        (
            Member("id", Primitive("string")),
            Member("name", Primitive("string"), optional=True),
        )
    )

    assert (props.name, props.kind, props.line, props.exported) == ("Props", INTERFACE, 2, False)
    assert isinstance(props.shape, Intersection)
    assert props.shape.members[0] == Record(
        (
            Member("label", Primitive("string"), readonly=True),
            Member("onClick", Function((Param(Reference("MouseEvent")),), Primitive("void"))),
        )
    )
    assert props.shape.members[1:] == (Generic("Base", (Primitive("string"),)), Reference("Other"))


def test_only_top_level_declarations_are_extracted() -> None:
    result = _extract(
        """
        function f() {
          type Local = string;
        }
        namespace N {
          export interface Inner { a: string }
        }
        type Top = number;
        """
    )

    assert [declaration.name for declaration in result.declarations] == ["Top"]


def test_declaration_type_parameters_are_captured() -> None:
    result = _extract("type Box<T extends object = {}> = { value: T };")

    (box,) = result.declarations
    assert box.type_params == ("T",)
    assert box.arity == 1
    assert box.shape == Record((Member("value", Reference("T")),))


def test_malformed_declaration_is_skipped_with_diagnostic() -> None:
    result = _extract(
        """
        type Broken = { a: string b: number };
        type Fine = { c: boolean };
        """
    )

    assert [declaration.name for declaration in result.declarations] == ["Fine"]
    assert result.diagnostics
    diagnostic = result.diagnostics[0]
    assert diagnostic.kind == "parse"
    assert diagnostic.line == 1
    assert diagnostic.path == "src/a.ts"
    assert diagnostic.message.startswith("Skipped malformed declaration")


def test_unterminated_string_is_fatal_for_the_file() -> None:
    with pytest.raises(ParseError) as info:
        _extract('type A = { a: "oops };\ntype B = string;\n')

    assert info.value.path == "src/a.ts"
    assert info.value.line == 1


def test_type_keyword_used_as_identifier_is_ignored() -> None:
    result = _extract(
        """
        const type = 1;
        obj.type = 2;
        import type { Foo } from "./foo";
        type Real = string;
        """
    )

    assert [declaration.name for declaration in result.declarations] == ["Real"]


def test_tsx_files_with_jsx_text() -> None:
    result = _extract(
        """
        export const Card = () => <p>Don't panic</p>;
        export type CardProps = { title: string };
        """,
        path="src/card.tsx",
    )

    assert result.diagnostics == []
    assert [declaration.name for declaration in result.declarations] == ["CardProps"]


def test_quoted_member_names_lose_their_quotes() -> None:
    (declaration,) = _extract("type A = { 'a-b': string; \"c\": number }").declarations

    assert [member.name for member in declaration.shape.members] == ["a-b", "c"]


def test_generic_function_type_with_predicate() -> None:
    (declaration,) = _extract(
        "type Guard = <T>(value: T, ...rest: string[]) => value is T;"
    ).declarations

    assert declaration.shape == Function(
        (
            Param(Reference("T")),
            Param(Generic("Array", (Primitive("string"),)), rest=True),
        ),
        Operator("predicate", (Reference("value"), Reference("T"))),
        ("T",),
    )


def test_mapped_type() -> None:
    (declaration,) = _extract("type M<T> = { readonly [K in keyof T]?: T[K] };").declarations

    assert declaration.shape == Mapped(
        key="K",
        constraint=Operator("keyof", (Reference("T"),)),
        value=Operator("index", (Reference("T"), Reference("K"))),
        optional="?",
        readonly="+",
    )


def test_conditional_type_with_infer() -> None:
    (declaration,) = _extract("type C<T> = T extends (infer U)[] ? U : never;").declarations

    assert declaration.shape == Operator(
        "conditional",
        (
            Reference("T"),
            Generic("Array", (Operator("infer", (Reference("U"),)),)),
            Reference("U"),
            Primitive("never"),
        ),
    )


def test_named_tuple_elements() -> None:
    (declaration,) = _extract(
        "type P = [x: number, y?: string, ...rest: boolean[]];"
    ).declarations

    assert declaration.shape == Tuple(
        (
            TupleElement(Primitive("number")),
            TupleElement(Primitive("string"), optional=True),
            TupleElement(Generic("Array", (Primitive("boolean"),)), rest=True),
        )
    )


def test_index_call_and_construct_signatures() -> None:
    (declaration,) = _extract(
        """
        interface Registry {
          [key: string]: number;
          (input: string): boolean;
          new (size: number): Registry;
        }
        """
    ).declarations

    names = [member.name for member in declaration.shape.members]
    assert names == ["[string]", "()", "new()"]
    assert declaration.shape.members[2].shape.constructor is True


def test_empty_file_yields_nothing() -> None:
    result = _extract("")

    assert result.declarations == []
    assert result.diagnostics == []


def test_unterminated_block_comment_is_fatal() -> None:
    with pytest.raises(ParseError) as info:
        _extract("type A = string;\n/* never closed\ntype B = number;\n")

    assert info.value.message == "Unterminated block comment"
    assert info.value.line == 2
    assert info.value.column == 1


def test_unterminated_template_is_fatal() -> None:
    with pytest.raises(ParseError) as info:
        _extract("type A = string;\nconst s = `abc ${value\n")

    assert info.value.message == "Unterminated template literal"
    assert info.value.line == 2


def test_quotes_inside_comments_and_regex_are_not_fatal() -> None:
    result = _extract(
        """
        // don't worry
        const re = /"/g;
        type Broken = { a: string b: number };
        type Fine = { c: boolean };
        """
    )

    assert [declaration.name for declaration in result.declarations] == ["Fine"]
    assert result.diagnostics[0].line == 3


def test_declare_and_export_declare_forms() -> None:
    result = _extract(
        """
        declare type Ambient = string;
        export declare type Shown = number;
        """
    )

    assert [(d.name, d.exported) for d in result.declarations] == [("Ambient", False), ("Shown", True)]


def test_literal_types_are_canonical() -> None:
    (declaration,) = _extract("type L = { a: 'on'; b: 0x10; c: -1; d: true; e: null };").declarations

    rendered = [member.shape.render() for member in declaration.shape.members]
    assert rendered == ['"on"', "16", "-1", "true", "null"]


def test_tsx_grammar_is_chosen_by_suffix() -> None:
    assert language_for_path("src/view.tsx") == "tsx"
    assert language_for_path("src/model.ts") == "typescript"
    assert language_for_path("src/types.d.ts") == "typescript"


def test_parsers_are_reused_within_a_thread() -> None:
    assert get_parser("tsx") is get_parser("tsx")
    assert get_parser("tsx") is not get_parser("typescript")
