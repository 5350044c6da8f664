"""Kida template globals backed by a navigation registry.

Rendering menu markup is left to the application's templates; this
module only exposes registry queries to them::

    env = Environment(loader=FileSystemLoader("templates"))
    register_navigation_globals(env, registry)

    {% for node in nav_scope("main").children %}
      {% if nav_is_active(node) %}<strong>{{ node.title_default }}</strong>{% end %}
    {% end %}

Request-dependent globals (``nav_active_path``, ``nav_active_node``,
``nav_is_active``) read the state bound by ``request_scope()``. Outside a
request scope nothing is active: they return ``None`` or ``False``.
"""

from collections.abc import Callable
from typing import Any

from kida import Environment

from signpost.nodes import NODE_PATH_SEPARATOR, NavigationNode
from signpost.registry import NavigationRegistry


def navigation_globals(registry: NavigationRegistry) -> dict[str, Callable[..., Any]]:
    """Template-callable wrappers around ``registry``."""

    def nav_active_path() -> str | None:
        try:
            return registry.active_path(None)
        except LookupError:
            return None

    def nav_active_node() -> NavigationNode | None:
        try:
            return registry.active_node(None)
        except LookupError:
            return None

    def nav_is_active(node: NavigationNode | str | None) -> bool:
        """True if ``node`` is the active node or one of its ancestors."""
        active = nav_active_path()
        if not active or node is None:
            return False
        node_id = node if isinstance(node, str) else node.id
        return active == node_id or active.startswith(node_id + NODE_PATH_SEPARATOR)

    return {
        "nav_scope": registry.scope_by_name,
        "nav_node": registry.node_for_id,
        "nav_path": registry.nodes_for_path,
        "nav_active_path": nav_active_path,
        "nav_active_node": nav_active_node,
        "nav_is_active": nav_is_active,
    }


def register_navigation_globals(env: Environment, registry: NavigationRegistry) -> Environment:
    """Add ``navigation_globals(registry)`` to a kida environment."""
    for name, value in navigation_globals(registry).items():
        env.add_global(name, value)
    return env
