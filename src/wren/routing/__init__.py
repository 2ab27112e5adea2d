"""Routing: per-method segment tries with backtracking search.

Routes are registered during setup; the router is frozen when the
engine serves its first request.
"""

from wren.routing.router import RouteMatch, Router, parse_pattern, split_path
from wren.routing.trie import Node

__all__ = ["Node", "RouteMatch", "Router", "parse_pattern", "split_path"]
