"""Relationship graph: reduces with/without declarations to groups.

``with`` edges are contracted into AND-groups (presence of any member
requires presence of all), ``without`` edges into XOR-groups (at most one
member present). Both are connected components of a union-find over field
names, built in one pass per relation kind.
"""

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from schemaforge.schema.errors import ConflictingRelationError
from schemaforge.schema.resolver import EffectiveRule

logger = logging.getLogger(__name__)


class GroupMode(Enum):
    """How the members of a relationship group constrain each other."""

    AND = "and"  # all or nothing
    XOR = "xor"  # at most one


@dataclass(frozen=True)
class RelationshipGroup:
    """A set of fields bound by one presence mode.

    Attributes:
        mode: AND or XOR
        members: Field names in first-declaration order
    """

    mode: GroupMode
    members: tuple[str, ...]

    def present(self, keys: Collection[str]) -> list[str]:
        return [m for m in self.members if m in keys]

    def absent(self, keys: Collection[str]) -> list[str]:
        return [m for m in self.members if m not in keys]

    def to_dict(self) -> dict[str, Any]:
        return {"mode": self.mode.value, "members": list(self.members)}


class UnionFind:
    """Disjoint sets over field names (path halving, union by size).

    Components keep their members in first-seen order so grouping is
    deterministic for a given declaration order.
    """

    def __init__(self) -> None:
        self._parent: dict[str, str] = {}
        self._size: dict[str, int] = {}
        self._order: dict[str, int] = {}

    def add(self, item: str) -> None:
        if item not in self._parent:
            self._parent[item] = item
            self._size[item] = 1
            self._order[item] = len(self._order)

    def find(self, item: str) -> str:
        self.add(item)
        while self._parent[item] != item:
            self._parent[item] = self._parent[self._parent[item]]
            item = self._parent[item]
        return item

    def union(self, a: str, b: str) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return
        if self._size[root_a] < self._size[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._size[root_a] += self._size[root_b]

    def components(self) -> list[tuple[str, ...]]:
        """All components, each ordered by first-seen, ordered by first member."""
        groups: dict[str, list[str]] = {}
        for item in sorted(self._order, key=self._order.__getitem__):
            groups.setdefault(self.find(item), []).append(item)
        return [tuple(members) for members in groups.values()]


def build_groups(rules: Mapping[str, EffectiveRule]) -> tuple[RelationshipGroup, ...]:
    """Compute AND-groups and XOR-groups for a schema.

    Args:
        rules: Effective rules keyed by field name, in schema order

    Returns:
        AND-groups followed by XOR-groups; singletons are dropped

    Raises:
        ConflictingRelationError: If a field excludes itself, or two fields
            are both required together and mutually exclusive
    """
    with_sets = UnionFind()
    without_sets = UnionFind()

    for name, rule in rules.items():
        for target in rule.with_fields:
            if target not in rules:
                logger.debug("Field '%s' declares with() on non-schema key '%s'", name, target)
            with_sets.union(name, target)
        for target in rule.without_fields:
            if target == name:
                raise ConflictingRelationError([name], "A field cannot be declared without itself")
            if target not in rules:
                logger.debug("Field '%s' declares without() on non-schema key '%s'", name, target)
            without_sets.union(name, target)

    and_groups = [
        RelationshipGroup(GroupMode.AND, members)
        for members in with_sets.components()
        if len(members) > 1
    ]
    xor_groups = [
        RelationshipGroup(GroupMode.XOR, members)
        for members in without_sets.components()
        if len(members) > 1
    ]
    _check_conflicts(and_groups, xor_groups)
    return tuple(and_groups + xor_groups)


def _check_conflicts(
    and_groups: list[RelationshipGroup],
    xor_groups: list[RelationshipGroup],
) -> None:
    """Reject AND- and XOR-groups that share two or more members.

    Two fields in the same AND-group and the same XOR-group can only be
    satisfied by omitting both. A single shared member is legal: a field may
    require one neighbour and exclude another.
    """
    xor_index = {
        member: i for i, group in enumerate(xor_groups) for member in group.members
    }
    for and_group in and_groups:
        shared: dict[int, list[str]] = {}
        for member in and_group.members:
            if member in xor_index:
                shared.setdefault(xor_index[member], []).append(member)
        for members in shared.values():
            if len(members) > 1:
                raise ConflictingRelationError(
                    members,
                    "Fields are declared both with() and without() each other",
                )
