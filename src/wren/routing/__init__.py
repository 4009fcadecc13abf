"""Routing: prefix trie with literal > parameter > wildcard matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""

from wren.routing.group import RouteGroup
from wren.routing.route import Route, RouteMatch
from wren.routing.router import Router

__all__ = ["Route", "RouteGroup", "RouteMatch", "Router"]
