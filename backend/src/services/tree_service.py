"""
Note hierarchy helpers: building the display forest and validating moves.

Both functions are pure and operate on data already read from the database,
so a move can be validated against one consistent snapshot of parent links.
"""
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from services.exceptions import CorruptHierarchyError, InvalidMoveError


class TreeSource(Protocol):
    """Fields build_tree reads from each note summary."""

    id: int
    parent_id: int | None
    title: str


@dataclass
class TreeNode:
    """One node of the note forest."""

    id: int
    parent_id: int | None
    title: str
    owner_username: str | None = None
    updated_at: datetime | None = None
    children: list["TreeNode"] = field(default_factory=list)


def _sort_key(node: TreeNode) -> tuple[str, int]:
    return (node.title.casefold(), node.id)


def build_tree(notes: Iterable[TreeSource]) -> list[TreeNode]:
    """
    Turn a flat list of notes into a forest.

    A note whose parent_id is null, or points at a note not in the input,
    becomes a root. Siblings are ordered by case-folded title, then id.
    Notes caught in a stored parent cycle are unreachable from any root; they
    are promoted to roots so nothing is silently dropped.
    """
    nodes: dict[int, TreeNode] = {}
    for note in notes:
        nodes[note.id] = TreeNode(
            id=note.id,
            parent_id=note.parent_id,
            title=note.title,
            owner_username=getattr(note, "owner_username", None),
            updated_at=getattr(note, "updated_at", None),
        )

    roots: list[TreeNode] = []
    for node in nodes.values():
        parent = nodes.get(node.parent_id) if node.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    reachable: set[int] = set()
    stack = list(roots)
    while stack:
        node = stack.pop()
        reachable.add(node.id)
        stack.extend(node.children)

    if len(reachable) < len(nodes):
        for node_id in sorted(set(nodes) - reachable):
            node = nodes[node_id]
            if node_id in reachable:
                continue
            # Break the cycle at this node: detach it from its parent
            parent = nodes[node.parent_id]
            parent.children = [child for child in parent.children if child.id != node_id]
            roots.append(node)
            stack = [node]
            while stack:
                current = stack.pop()
                reachable.add(current.id)
                stack.extend(current.children)

    _sort_forest(roots)
    return roots


def _sort_forest(nodes: list[TreeNode]) -> None:
    nodes.sort(key=_sort_key)
    for node in nodes:
        _sort_forest(node.children)


def validate_move(
    parent_links: Mapping[int, int | None],
    note_id: int,
    new_parent_id: int | None,
    max_depth: int,
) -> None:
    """
    Check that re-parenting note_id under new_parent_id keeps the tree acyclic.

    Args:
        parent_links: Snapshot of every note's parent (id -> parent_id).
        note_id: Note being moved; must be present in parent_links.
        new_parent_id: Proposed parent, or None to move to the root level.
        max_depth: Ceiling on ancestor steps before the data is declared corrupt.

    Raises:
        InvalidMoveError: Self-parenting, missing parent, or moving under a descendant.
        CorruptHierarchyError: The ancestor chain loops or exceeds max_depth.
    """
    if new_parent_id is None:
        return
    if new_parent_id == note_id:
        raise InvalidMoveError("A note cannot be its own parent")
    if new_parent_id not in parent_links:
        raise InvalidMoveError("Parent note not found")

    visited: set[int] = set()
    current: int | None = new_parent_id
    steps = 0
    while current is not None:
        if current == note_id:
            raise InvalidMoveError("A note cannot be moved under its own descendant")
        if current in visited or steps >= max_depth:
            raise CorruptHierarchyError(current)
        visited.add(current)
        steps += 1
        # Dangling parent reference: the chain ends at a de facto root
        current = parent_links.get(current)
