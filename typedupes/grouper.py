"""Indexes declarations by shape and by name and emits duplicate groups."""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .models import NAME_DUPLICATE, SHAPE_DUPLICATE, DuplicateGroup, TypeDeclaration
from .normalizer import normalize
from .shapes import Shape

ShapeKey = Tuple[int, Shape]
_Location = Tuple[str, int, int]


class DuplicateGrouper:
    """Merges per-file declaration batches into two indices.

    ``add`` may be called from several threads; index insertion is guarded
    by a lock. Grouping only depends on set membership, never on the
    order in which batches arrive.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_shape: Dict[ShapeKey, List[TypeDeclaration]] = defaultdict(list)
        self._by_name: Dict[str, List[TypeDeclaration]] = defaultdict(list)
        self._seen: set[_Location] = set()

    def add(self, declarations: Iterable[TypeDeclaration]) -> None:
        prepared = [(declaration, _shape_key(declaration)) for declaration in declarations]
        with self._lock:
            for declaration, key in prepared:
                if declaration.location in self._seen:
                    continue
                self._seen.add(declaration.location)
                self._by_shape[key].append(declaration)
                self._by_name[declaration.name].append(declaration)

    @property
    def declaration_count(self) -> int:
        return len(self._seen)

    @property
    def unique_names(self) -> int:
        return len(self._by_name)

    def groups(self) -> List[DuplicateGroup]:
        """Return duplicate groups in a deterministic order."""
        with self._lock:
            shape_buckets = [
                (key, _sorted_members(members))
                for key, members in self._by_shape.items()
                if len(members) >= 2
            ]
            name_buckets = [
                (name, _sorted_members(members))
                for name, members in self._by_name.items()
                if len(members) >= 2
            ]

        name_by_members: Dict[FrozenSet[_Location], str] = {
            _member_set(members): name for name, members in name_buckets
        }
        merged: set[FrozenSet[_Location]] = set()
        groups: List[DuplicateGroup] = []

        for key, members in shape_buckets:
            member_set = _member_set(members)
            tags: Tuple[str, ...] = (SHAPE_DUPLICATE,)
            if member_set in name_by_members:
                tags = (SHAPE_DUPLICATE, NAME_DUPLICATE)
                merged.add(member_set)
            groups.append(
                DuplicateGroup(
                    tags=tags,
                    members=members,
                    shape=key[1],
                    name=_common_name(members),
                )
            )

        for name, members in name_buckets:
            if _member_set(members) in merged:
                continue
            groups.append(
                DuplicateGroup(
                    tags=(NAME_DUPLICATE,),
                    members=members,
                    shape=_common_shape(members),
                    name=name,
                )
            )

        groups.sort(key=_group_sort_key)
        return groups


def _shape_key(declaration: TypeDeclaration) -> ShapeKey:
    shape = declaration.normalized
    if shape is None:
        shape = normalize(declaration.shape, declaration.type_params)
    return (declaration.arity, shape)


def _sorted_members(members: Iterable[TypeDeclaration]) -> Tuple[TypeDeclaration, ...]:
    return tuple(sorted(members, key=lambda declaration: declaration.location))


def _member_set(members: Iterable[TypeDeclaration]) -> FrozenSet[_Location]:
    return frozenset(declaration.location for declaration in members)


def _common_name(members: Tuple[TypeDeclaration, ...]) -> Optional[str]:
    names = {declaration.name for declaration in members}
    return names.pop() if len(names) == 1 else None


def _common_shape(members: Tuple[TypeDeclaration, ...]) -> Optional[Shape]:
    keys = {_shape_key(declaration) for declaration in members}
    if len(keys) != 1:
        return None
    return keys.pop()[1]


def _group_sort_key(group: DuplicateGroup) -> tuple:
    rendered = group.shape.render() if group.shape is not None else ""
    return (rendered, group.name or "", group.members[0].location)


__all__ = ["DuplicateGrouper", "ShapeKey"]
