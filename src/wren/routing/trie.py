"""Segment trie used by the router.

Each node holds one path segment. ``:name`` segments match any single
segment, ``*name`` segments match the rest of the path. A node that
terminates a registered route carries the full pattern string.

Matching example: with ``/p/:lang/doc`` registered, ``/p/go/doc``
walks ``p`` exactly, ``go`` through the ``:lang`` child, then ``doc``.
"""

from __future__ import annotations

from wren.errors import RouteConflictError


def is_wild(part: str) -> bool:
    return part.startswith((":", "*"))


class Node:
    """A trie vertex. Mutable during registration only."""

    __slots__ = ("children", "is_wild", "part", "pattern")

    def __init__(self, part: str = "") -> None:
        # Segment text as registered, e.g. "users", ":id", "*filepath"
        self.part = part
        # Full route pattern; empty unless a route terminates here
        self.pattern = ""
        # Insertion order is search precedence
        self.children: list[Node] = []
        self.is_wild = is_wild(part)

    def __repr__(self) -> str:
        return f"Node(part={self.part!r}, pattern={self.pattern!r}, wild={self.is_wild})"

    def match_child(self, part: str, pattern: str = "") -> Node | None:
        """Return the child a registration of *part* should descend into.

        An exact ``part`` match is reused. A wild segment that meets a
        wild sibling with different text cannot share the branch.
        """
        for child in self.children:
            if child.part == part:
                return child
        if is_wild(part):
            for child in self.children:
                if child.is_wild:
                    raise RouteConflictError(pattern, child.part, part)
        return None

    def match_children(self, part: str) -> list[Node]:
        """All children that can match a request segment, in insertion order."""
        return [child for child in self.children if child.part == part or child.is_wild]

    def insert(self, pattern: str, parts: list[str], height: int) -> None:
        if len(parts) == height:
            self.pattern = pattern
            return

        part = parts[height]
        child = self.match_child(part, pattern)
        if child is None:
            child = Node(part)
            self.children.append(child)
        child.insert(pattern, parts, height + 1)

    def search(self, parts: list[str], height: int) -> Node | None:
        # A wildcard swallows whatever is left, including nothing
        if len(parts) == height or self.part.startswith("*"):
            return self if self.pattern else None

        for child in self.match_children(parts[height]):
            result = child.search(parts, height + 1)
            if result is not None:
                return result
        return None

    def travel(self) -> list[Node]:
        """Every node with a registered pattern, depth-first."""
        found = [self] if self.pattern else []
        for child in self.children:
            found.extend(child.travel())
        return found
