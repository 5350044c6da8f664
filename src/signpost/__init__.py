"""Signpost — application navigation for web apps.

Builds named navigation scopes (``main``, ``footer``, ...) from nested
declarations plus auto-discovered route handlers, and tracks which item
is active for each request.

Basic usage::

    from signpost import HandlerDirectory, NavigationRegistry

    handlers = HandlerDirectory()

    @handlers.register
    class OrdersController:
        def index(self, request): ...
        def show(self, request): ...

    nav = NavigationRegistry(handlers=handlers)

    @nav.declaration()
    def navigation(nav):
        with nav.main:
            nav.home(controller="home", action="index")

    nav.reload_all()
    nav.node_for_controller_action("orders", "show").id   # "app/orders/show"
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "ConfigurationError",
    "DeclarationError",
    "DeclarationSource",
    "DuplicateIdError",
    "HandlerDirectory",
    "HandlerInfo",
    "LinkTarget",
    "NavigationConfig",
    "NavigationDSL",
    "NavigationItem",
    "NavigationNode",
    "NavigationRegistry",
    "NavigationScope",
    "SignpostError",
    "discover_sources",
    "evaluate",
    "get_request_state",
    "request_scope",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import signpost`` fast while providing a clean top-level API.
    """
    if name == "NavigationRegistry":
        from signpost.registry import NavigationRegistry

        return NavigationRegistry

    if name == "NavigationConfig":
        from signpost.config import NavigationConfig

        return NavigationConfig

    if name in ("HandlerDirectory", "HandlerInfo"):
        from signpost import handlers as _handlers

        return getattr(_handlers, name)

    if name in ("DeclarationSource", "discover_sources"):
        from signpost import sources as _sources

        return getattr(_sources, name)

    if name in ("NavigationDSL", "evaluate"):
        from signpost import dsl as _dsl

        return getattr(_dsl, name)

    if name in ("LinkTarget", "NavigationItem", "NavigationNode", "NavigationScope"):
        from signpost import nodes as _nodes

        return getattr(_nodes, name)

    if name in ("get_request_state", "request_scope"):
        from signpost import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ConfigurationError",
        "DeclarationError",
        "DuplicateIdError",
        "SignpostError",
    ):
        from signpost import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
