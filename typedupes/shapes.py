"""Structural shape variants used to compare type declarations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union as _TypingUnion


@dataclass(frozen=True)
class Primitive:
    """Built-in keyword type such as ``string`` or ``never``."""

    name: str

    def render(self) -> str:
        return self.name


@dataclass(frozen=True)
class Literal:
    """String, numeric, boolean or template literal type."""

    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True)
class Reference:
    """Named type that is never resolved further."""

    name: str

    def render(self) -> str:
        return self.name


@dataclass(frozen=True)
class Generic:
    """Application of a named type to type arguments."""

    base: str
    args: tuple["Shape", ...]

    def render(self) -> str:
        inner = ", ".join(arg.render() for arg in self.args)
        return f"{self.base}<{inner}>"


@dataclass(frozen=True)
class Member:
    """A single record member: property, method, index or call signature."""

    name: str
    shape: "Shape"
    optional: bool = False
    readonly: bool = False

    def render(self) -> str:
        prefix = "readonly " if self.readonly else ""
        marker = "?" if self.optional else ""
        return f"{prefix}{self.name}{marker}: {self.shape.render()}"


@dataclass(frozen=True)
class Record:
    """Object-like shape; members keep source order until normalized."""

    members: tuple[Member, ...]

    def render(self) -> str:
        if not self.members:
            return "{}"
        return "{ " + "; ".join(member.render() for member in self.members) + " }"


@dataclass(frozen=True)
class Union:
    members: tuple["Shape", ...]

    def render(self) -> str:
        return " | ".join(_wrap(member) for member in self.members)


@dataclass(frozen=True)
class Intersection:
    members: tuple["Shape", ...]

    def render(self) -> str:
        return " & ".join(_wrap(member) for member in self.members)


@dataclass(frozen=True)
class TupleElement:
    shape: "Shape"
    optional: bool = False
    rest: bool = False

    def render(self) -> str:
        text = _wrap(self.shape)
        if self.rest:
            return f"...{text}"
        return f"{text}?" if self.optional else text


@dataclass(frozen=True)
class Tuple:
    elements: tuple[TupleElement, ...]

    def render(self) -> str:
        return "[" + ", ".join(element.render() for element in self.elements) + "]"


@dataclass(frozen=True)
class Param:
    """Function parameter; its name never takes part in comparison."""

    shape: "Shape"
    optional: bool = False
    rest: bool = False

    def render(self) -> str:
        text = self.shape.render()
        if self.rest:
            return f"...{text}"
        return f"{text}?" if self.optional else text


@dataclass(frozen=True)
class Function:
    params: tuple[Param, ...]
    returns: "Shape"
    type_params: tuple[str, ...] = ()
    constructor: bool = False

    def render(self) -> str:
        generics = f"<{', '.join(self.type_params)}>" if self.type_params else ""
        prefix = "new " if self.constructor else ""
        params = ", ".join(param.render() for param in self.params)
        return f"{prefix}{generics}({params}) => {self.returns.render()}"


@dataclass(frozen=True)
class Operator:
    """Type operator application (keyof, typeof, indexed access, conditional, ...)."""

    op: str
    operands: tuple["Shape", ...]

    def render(self) -> str:
        parts = [_wrap(operand) for operand in self.operands]
        if self.op == "index":
            return f"{parts[0]}[{self.operands[1].render()}]"
        if self.op == "conditional":
            check, extends, when_true, when_false = parts
            return f"{check} extends {extends} ? {when_true} : {when_false}"
        if self.op == "predicate":
            return f"{parts[0]} is {parts[1]}"
        if self.op == "asserts":
            if len(parts) == 1:
                return f"asserts {parts[0]}"
            return f"asserts {parts[0]} is {parts[1]}"
        if self.op == "infer" and len(parts) == 2:
            return f"infer {parts[0]} extends {parts[1]}"
        if self.op == "typeof" and len(parts) > 1:
            args = ", ".join(operand.render() for operand in self.operands[1:])
            return f"typeof {parts[0]}<{args}>"
        return f"{self.op} " + " ".join(parts)


@dataclass(frozen=True)
class Mapped:
    """Mapped type ``{ [key in constraint as remap]: value }``."""

    key: str
    constraint: "Shape"
    value: "Shape"
    optional: str = ""
    readonly: str = ""
    remap: Optional["Shape"] = None

    def render(self) -> str:
        readonly = f"{self.readonly}readonly " if self.readonly else ""
        remap = f" as {self.remap.render()}" if self.remap is not None else ""
        return (
            f"{{ {readonly}[{self.key} in {self.constraint.render()}{remap}]"
            f"{self.optional}: {self.value.render()} }}"
        )


Shape = _TypingUnion[
    Primitive,
    Literal,
    Reference,
    Generic,
    Record,
    Union,
    Intersection,
    Tuple,
    Function,
    Operator,
    Mapped,
]

PRIMITIVE_NAMES = frozenset(
    {
        "any",
        "bigint",
        "boolean",
        "never",
        "null",
        "number",
        "object",
        "string",
        "symbol",
        "undefined",
        "unknown",
        "void",
    }
)


def _wrap(shape: "Shape") -> str:
    text = shape.render()
    if isinstance(shape, (Union, Intersection, Function)):
        return f"({text})"
    if isinstance(shape, Operator) and shape.op in {"conditional", "infer", "keyof", "typeof", "unique"}:
        return f"({text})"
    return text


__all__ = [
    "Function",
    "Generic",
    "Intersection",
    "Literal",
    "Mapped",
    "Member",
    "Operator",
    "PRIMITIVE_NAMES",
    "Param",
    "Primitive",
    "Record",
    "Reference",
    "Shape",
    "Tuple",
    "TupleElement",
    "Union",
]
