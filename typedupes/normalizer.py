"""Canonicalisation of parsed shapes into comparable values."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Sequence

from .errors import InternalInvariantError
from .models import TypeDeclaration
from .shapes import (
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

# Operators that only restrict mutation and never change the accepted value set.
_PRESENTATIONAL_OPERATORS = {"readonly"}
_ARRAY_ALIASES = {"ReadonlyArray": "Array"}


def normalize(shape: Shape, type_params: Sequence[str] = ()) -> Shape:
    """Return the canonical form of ``shape``.

    Record members are sorted by name and lose presentational modifiers,
    unions and intersections become flattened sorted sets, and the
    declaration's own type parameters are replaced by positional
    placeholders. References are never expanded, so a self-referential
    declaration stays finite. The result is a fixed point:
    ``normalize(normalize(x)) == normalize(x)``.
    """
    bindings = {name: f"${index}" for index, name in enumerate(type_params)}
    try:
        return _Normalizer(bindings).visit(shape)
    except RecursionError as exc:
        raise InternalInvariantError("Type nests too deeply to normalize") from exc


def normalize_declaration(declaration: TypeDeclaration) -> TypeDeclaration:
    """Return a copy of ``declaration`` with its normalized shape filled in."""
    normalized = normalize(declaration.shape, declaration.type_params)
    return replace(declaration, normalized=normalized)


def shape_sort_key(shape: Shape) -> tuple[str, str]:
    return (shape.render(), repr(shape))


class _Normalizer:
    def __init__(self, bindings: Dict[str, str]) -> None:
        self._scopes: List[Dict[str, str]] = [bindings]
        self._mapped_depth = 0
        self._function_depth = 0

    def visit(self, shape: Shape) -> Shape:
        if isinstance(shape, (Primitive, Literal)):
            return shape
        if isinstance(shape, Reference):
            return Reference(self._lookup(shape.name))
        if isinstance(shape, Generic):
            base = _ARRAY_ALIASES.get(shape.base, shape.base)
            return Generic(base, tuple(self.visit(arg) for arg in shape.args))
        if isinstance(shape, Record):
            return Record(self._members(shape.members))
        if isinstance(shape, Union):
            return self._set_of(Union, shape.members)
        if isinstance(shape, Intersection):
            return self._set_of(Intersection, shape.members)
        if isinstance(shape, Tuple):
            return Tuple(
                tuple(
                    TupleElement(self.visit(element.shape), element.optional, element.rest)
                    for element in shape.elements
                )
            )
        if isinstance(shape, Function):
            return self._function(shape)
        if isinstance(shape, Operator):
            if shape.op in _PRESENTATIONAL_OPERATORS and len(shape.operands) == 1:
                return self.visit(shape.operands[0])
            return Operator(shape.op, tuple(self.visit(operand) for operand in shape.operands))
        if isinstance(shape, Mapped):
            return self._mapped(shape)
        raise InternalInvariantError(f"Unknown shape variant: {type(shape).__name__}")

    def _lookup(self, name: str) -> str:
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return name

    def _members(self, members: Iterable[Member]) -> tuple[Member, ...]:
        normalized = [
            Member(member.name, self.visit(member.shape), member.optional, False)
            for member in members
        ]
        normalized.sort(key=lambda member: (member.name, member.optional, *shape_sort_key(member.shape)))
        return tuple(dict.fromkeys(normalized))

    def _set_of(self, kind: type, members: Iterable[Shape]) -> Shape:
        flattened: List[Shape] = []
        for member in members:
            visited = self.visit(member)
            if isinstance(visited, kind):
                flattened.extend(visited.members)  # type: ignore[attr-defined]
            else:
                flattened.append(visited)
        unique = sorted(set(flattened), key=shape_sort_key)
        if len(unique) == 1:
            return unique[0]
        return kind(tuple(unique))

    def _function(self, shape: Function) -> Function:
        self._function_depth += 1
        scope = {
            name: f"$f{self._function_depth}.{index}"
            for index, name in enumerate(shape.type_params)
        }
        self._scopes.append(scope)
        try:
            params = tuple(
                Param(self.visit(param.shape), param.optional, param.rest)
                for param in shape.params
            )
            returns = self.visit(shape.returns)
        finally:
            self._scopes.pop()
            self._function_depth -= 1
        return Function(params, returns, tuple(scope.values()), shape.constructor)

    def _mapped(self, shape: Mapped) -> Mapped:
        constraint = self.visit(shape.constraint)
        self._mapped_depth += 1
        key = f"$k{self._mapped_depth}"
        self._scopes.append({shape.key: key})
        try:
            value = self.visit(shape.value)
            remap = self.visit(shape.remap) if shape.remap is not None else None
        finally:
            self._scopes.pop()
            self._mapped_depth -= 1
        return Mapped(key, constraint, value, shape.optional, "", remap)


__all__ = ["normalize", "normalize_declaration", "shape_sort_key"]
