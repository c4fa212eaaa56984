"""Conversion of tree-sitter type nodes into Shape values."""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional

from tree_sitter import Node

from ..shapes import (
    PRIMITIVE_NAMES,
    Function,
    Generic,
    Intersection,
    Literal,
    Mapped,
    Member,
    Operator,
    Param,
    Primitive,
    Record,
    Reference,
    Shape,
    Tuple,
    TupleElement,
    Union,
)

_ANY = Primitive("any")
_TEMPLATE_SPAN = re.compile(r"\$\{\s*(.*?)\s*\}", re.S)

# Annotation nodes on mapped members, keyed to the optional modifier they carry.
_MAPPED_OPTIONAL = {
    "type_annotation": "",
    "opting_type_annotation": "?",
    "adding_type_annotation": "?",
    "omitting_type_annotation": "-?",
}


def string_content(raw: str) -> str:
    """Return the text of a quoted string without quotes or quote escapes."""
    body = raw[1:-1]
    return body.replace("\\'", "'").replace('\\"', '"')


def canonical_string(raw: str) -> str:
    content = string_content(raw).replace('"', '\\"')
    return f'"{content}"'


def canonical_number(raw: str) -> str:
    text = raw.replace("_", "").lower()
    if text.endswith("n"):
        return text
    try:
        return str(int(text, 0))
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return text
    if value.is_integer():
        return str(int(value))
    return repr(value)


def named_children(node: Node) -> List[Node]:
    return [child for child in node.named_children if child.type != "comment"]


def has_token(node: Node, token: str) -> bool:
    return any(child.type == token for child in node.children)


class ShapeBuilder:
    """Builds shapes from the type nodes of one parsed file.

    Node kinds without a dedicated handler are unwrapped when they hold a
    single type, and otherwise kept as an opaque reference to their text.
    """

    def __init__(self, source_bytes: bytes) -> None:
        self.source = source_bytes
        self._handlers: Dict[str, Callable[[Node], Shape]] = {
            "predefined_type": self._predefined,
            "type_identifier": self._identifier,
            "identifier": self._identifier,
            "nested_type_identifier": self._reference,
            "generic_type": self._generic,
            "literal_type": self._literal,
            "this_type": self._this,
            "parenthesized_type": self._single,
            "object_type": self._object,
            "array_type": self._array,
            "tuple_type": self._tuple,
            "union_type": self._union,
            "intersection_type": self._intersection,
            "function_type": self.signature,
            "constructor_type": self._constructor,
            "conditional_type": self._conditional,
            "lookup_type": self._lookup,
            "index_type_query": self._keyof,
            "readonly_type": self._readonly,
            "infer_type": self._infer,
            "type_query": self._type_query,
            "template_literal_type": self._template,
            "type_predicate": self._predicate,
            "asserts": self._asserts,
        }

    def text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def compact(self, node: Node) -> str:
        return " ".join(self.text(node).split())

    def build(self, node: Node) -> Shape:
        handler = self._handlers.get(node.type)
        if handler is not None:
            return handler(node)
        children = named_children(node)
        if len(children) == 1:
            return self.build(children[0])
        return Reference(self.compact(node))

    # declarations

    def type_parameter_names(self, node: Optional[Node]) -> tuple[str, ...]:
        if node is None:
            return ()
        names: List[str] = []
        for child in named_children(node):
            if child.type != "type_parameter":
                continue
            name = child.child_by_field_name("name")
            names.append(self.text(name if name is not None else child))
        return tuple(names)

    def members(self, node: Node) -> tuple[Member, ...]:
        members: List[Member] = []
        for child in named_children(node):
            if child.type == "property_signature":
                members.append(self._property(child))
            elif child.type == "method_signature":
                members.append(self._method(child))
            elif child.type == "call_signature":
                members.append(Member("()", self.signature(child)))
            elif child.type == "construct_signature":
                members.append(Member("new()", self.signature(child, constructor=True)))
            elif child.type == "index_signature":
                members.append(self._index_member(child))
        return tuple(members)

    def signature(self, node: Node, *, constructor: bool = False) -> Function:
        type_params = self.type_parameter_names(node.child_by_field_name("type_parameters"))
        parameters = node.child_by_field_name("parameters")
        params = self._parameters(parameters) if parameters is not None else ()
        returns_node = node.child_by_field_name("return_type")
        if returns_node is None:
            returns_node = node.child_by_field_name("type")
        returns = self.build(returns_node) if returns_node is not None else _ANY
        return Function(params, returns, type_params, constructor)

    # members

    def _property(self, node: Node) -> Member:
        type_node = node.child_by_field_name("type")
        shape = self.build(type_node) if type_node is not None else _ANY
        return Member(
            self._property_name(node.child_by_field_name("name")),
            shape,
            has_token(node, "?"),
            has_token(node, "readonly"),
        )

    def _method(self, node: Node) -> Member:
        name = self._property_name(node.child_by_field_name("name"))
        optional = has_token(node, "?")
        signature = self.signature(node)
        if has_token(node, "get"):
            return Member(name, signature.returns, optional)
        if has_token(node, "set"):
            shape = signature.params[0].shape if signature.params else _ANY
            return Member(name, shape, optional)
        return Member(name, signature, optional)

    def _index_member(self, node: Node) -> Member:
        clause = _first_of(node, "mapped_type_clause")
        if clause is not None:
            name = f"[{self.compact(clause)}]"
            return Member(name, self._mapped(node), readonly=has_token(node, "readonly"))
        key_node = node.child_by_field_name("index_type")
        key = self.build(key_node) if key_node is not None else _ANY
        type_node = _annotation(node)
        shape = self.build(type_node) if type_node is not None else _ANY
        return Member(f"[{key.render()}]", shape, readonly=has_token(node, "readonly"))

    def _property_name(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        if node.type == "string":
            return string_content(self.text(node))
        if node.type == "number":
            return canonical_number(self.text(node))
        if node.type == "computed_property_name":
            return "".join(self.text(node).split())
        return self.text(node)

    def _parameters(self, node: Node) -> tuple[Param, ...]:
        params: List[Param] = []
        for child in named_children(node):
            if child.type not in {"required_parameter", "optional_parameter"}:
                continue
            type_node = child.child_by_field_name("type")
            shape = self.build(type_node) if type_node is not None else _ANY
            rest = any(part.type == "rest_pattern" for part in child.children)
            params.append(Param(shape, child.type == "optional_parameter", rest))
        return tuple(params)

    # types

    def _predefined(self, node: Node) -> Shape:
        text = self.compact(node)
        if text.startswith("unique"):
            return Operator("unique", (Primitive("symbol"),))
        return Primitive(text)

    def _identifier(self, node: Node) -> Shape:
        text = self.text(node)
        if text in PRIMITIVE_NAMES:
            return Primitive(text)
        return Reference(text)

    def _reference(self, node: Node) -> Shape:
        return Reference("".join(self.text(node).split()))

    def _this(self, node: Node) -> Shape:
        return Primitive("this")

    def _single(self, node: Node) -> Shape:
        children = named_children(node)
        if len(children) != 1:
            return Reference(self.compact(node))
        return self.build(children[0])

    def _generic(self, node: Node) -> Shape:
        name = node.child_by_field_name("name")
        arguments = node.child_by_field_name("type_arguments")
        if name is None or arguments is None:
            return Reference(self.compact(node))
        base = "".join(self.text(name).split())
        return Generic(base, tuple(self.build(arg) for arg in named_children(arguments)))

    def _literal(self, node: Node) -> Shape:
        children = named_children(node)
        if not children:
            return Literal(self.compact(node))
        value = children[0]
        if value.type == "string":
            return Literal(canonical_string(self.text(value)))
        if value.type == "number":
            return Literal(canonical_number(self.text(value)))
        if value.type in {"null", "undefined"}:
            return Primitive(value.type)
        if value.type == "unary_expression":
            argument = value.child_by_field_name("argument")
            sign = self.text(value).strip()[:1]
            if argument is not None and argument.type == "number":
                number = canonical_number(self.text(argument))
                return Literal(f"-{number}" if sign == "-" else number)
        return Literal(self.compact(value))

    def _object(self, node: Node) -> Shape:
        children = named_children(node)
        if (
            len(children) == 1
            and children[0].type == "index_signature"
            and _first_of(children[0], "mapped_type_clause") is not None
        ):
            return self._mapped(children[0])
        return Record(self.members(node))

    def _mapped(self, node: Node) -> Mapped:
        clause = _first_of(node, "mapped_type_clause")
        key_node = clause.child_by_field_name("name")
        constraint_node = clause.child_by_field_name("type")
        alias_node = clause.child_by_field_name("alias")
        type_node = _annotation(node)

        readonly = ""
        if has_token(node, "readonly"):
            readonly = "-" if has_token(node, "-") else "+"
        optional = ""
        value: Shape = _ANY
        if type_node is not None:
            optional = _MAPPED_OPTIONAL.get(type_node.type, "")
            value = self.build(type_node)
        return Mapped(
            key=self.text(key_node) if key_node is not None else "",
            constraint=self.build(constraint_node) if constraint_node is not None else _ANY,
            value=value,
            optional=optional,
            readonly=readonly,
            remap=self.build(alias_node) if alias_node is not None else None,
        )

    def _array(self, node: Node) -> Shape:
        return Generic("Array", (self._single(node),))

    def _tuple(self, node: Node) -> Shape:
        elements: List[TupleElement] = []
        for child in named_children(node):
            if child.type in {"required_parameter", "optional_parameter"}:
                type_node = child.child_by_field_name("type")
                shape = self.build(type_node) if type_node is not None else _ANY
                rest = any(part.type == "rest_pattern" for part in child.children)
                elements.append(TupleElement(shape, child.type == "optional_parameter", rest))
            elif child.type == "optional_type":
                elements.append(TupleElement(self._single(child), optional=True))
            elif child.type == "rest_type":
                elements.append(TupleElement(self._single(child), rest=True))
            else:
                elements.append(TupleElement(self.build(child)))
        return Tuple(tuple(elements))

    def _operands(self, node: Node) -> tuple[Shape, ...]:
        return tuple(self.build(child) for child in named_children(node))

    def _union(self, node: Node) -> Shape:
        return Union(self._operands(node))

    def _intersection(self, node: Node) -> Shape:
        return Intersection(self._operands(node))

    def _constructor(self, node: Node) -> Shape:
        return self.signature(node, constructor=True)

    def _conditional(self, node: Node) -> Shape:
        parts = [node.child_by_field_name(field) for field in ("left", "right", "consequence", "alternative")]
        if any(part is None for part in parts):
            return Operator("conditional", self._operands(node))
        return Operator("conditional", tuple(self.build(part) for part in parts))

    def _lookup(self, node: Node) -> Shape:
        return Operator("index", self._operands(node))

    def _keyof(self, node: Node) -> Shape:
        return Operator("keyof", self._operands(node))

    def _readonly(self, node: Node) -> Shape:
        return Operator("readonly", self._operands(node))

    def _infer(self, node: Node) -> Shape:
        children = named_children(node)
        name = Reference(self.text(children[0])) if children else Reference("")
        if len(children) > 1:
            return Operator("infer", (name, self.build(children[1])))
        return Operator("infer", (name,))

    def _type_query(self, node: Node) -> Shape:
        target = "".join(self.text(node).split())
        if target.startswith("typeof"):
            target = target[len("typeof") :]
        return Operator("typeof", (Reference(target),))

    def _template(self, node: Node) -> Shape:
        return Literal(_TEMPLATE_SPAN.sub(r"${\1}", self.text(node)))

    def _predicate(self, node: Node) -> Shape:
        name = node.child_by_field_name("name")
        type_node = node.child_by_field_name("type")
        if name is None or type_node is None:
            return Operator("predicate", self._operands(node))
        return Operator("predicate", (Reference(self.text(name)), self.build(type_node)))

    def _asserts(self, node: Node) -> Shape:
        children = named_children(node)
        if not children:
            return Operator("asserts", (Reference(self.compact(node)),))
        subject = children[0]
        if subject.type == "type_predicate":
            predicate = self._predicate(subject)
            return Operator("asserts", predicate.operands)
        return Operator("asserts", (Reference(self.text(subject)),))


def _first_of(node: Node, node_type: str) -> Optional[Node]:
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


def _annotation(node: Node) -> Optional[Node]:
    annotation = node.child_by_field_name("type")
    if annotation is not None:
        return annotation
    for child in reversed(node.named_children):
        if child.type.endswith("_annotation"):
            return child
    return None


__all__ = [
    "ShapeBuilder",
    "canonical_number",
    "canonical_string",
    "has_token",
    "named_children",
    "string_content",
]
