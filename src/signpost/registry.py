"""Navigation registry — owns the published forest and answers queries.

Setup registers declaration sources and a handler directory; ``reload_all()``
builds the forest and publishes it::

    handlers = HandlerDirectory()
    nav = NavigationRegistry(handlers=handlers)

    @nav.declaration()
    def navigation(nav):
        with nav.main:
            nav.home(controller="home", action="index")

    nav.reload_all()
    nav.node_for_controller_action("home", "index").id   # "main/home"

Thread safety:
    Every query reads ``self._snapshot`` once and works on that
    ``NavigationSnapshot``. A reload builds a new snapshot off to the side
    and publishes it with one attribute assignment, so readers see either
    the old forest or the new one, never a partial build. Reloads
    themselves are serialized by ``_reload_lock``. If a reload fails the
    previous snapshot stays published.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

import anyio.to_thread

from signpost.builder import GraphBuilder, StagingForest
from signpost.config import NavigationConfig
from signpost.context import RequestState, resolve_state
from signpost.discovery import discover_handlers
from signpost.dsl import NavigationDSL, evaluate
from signpost.handlers import HandlerDirectory
from signpost.index import NavigationSnapshot, build_index
from signpost.nodes import (
    NavigationItem,
    NavigationNode,
    NavigationScope,
    make_path,
    split_path,
)
from signpost.sources import DeclarationSource

logger = logging.getLogger("signpost.registry")


class NavigationRegistry:
    """The navigation structure of an entire application."""

    __slots__ = ("_handlers", "_reload_lock", "_snapshot", "_sources", "config")

    def __init__(
        self,
        config: NavigationConfig | None = None,
        *,
        handlers: HandlerDirectory | None = None,
        sources: Iterable[DeclarationSource] = (),
    ) -> None:
        self.config: NavigationConfig = config or NavigationConfig()
        self._handlers: HandlerDirectory = handlers if handlers is not None else HandlerDirectory()
        self._sources: list[DeclarationSource] = list(sources)
        self._snapshot: NavigationSnapshot = NavigationSnapshot()
        self._reload_lock: threading.Lock = threading.Lock()

    # -- Setup --

    @property
    def handlers(self) -> HandlerDirectory:
        return self._handlers

    @property
    def sources(self) -> tuple[DeclarationSource, ...]:
        return tuple(self._sources)

    def add_source(self, source: DeclarationSource) -> None:
        """Register a declaration source. Takes effect on the next reload."""
        self._sources.append(source)

    def declaration(
        self, *, plugin: str | None = None, name: str | None = None
    ) -> Callable[[Callable[[NavigationDSL], Any]], Callable[[NavigationDSL], Any]]:
        """Register a declaration function as a source.

        Usage::

            @registry.declaration(plugin="billing")
            def navigation(nav):
                with nav.billing:
                    nav.invoices(controller="invoice", action="index")
        """

        def decorator(func: Callable[[NavigationDSL], Any]) -> Callable[[NavigationDSL], Any]:
            self.add_source(
                DeclarationSource(
                    name=name or f"{func.__module__}.{func.__qualname__}",
                    declare=func,
                    plugin=plugin,
                )
            )
            return func

        return decorator

    # -- Reload --

    def reload_all(self) -> NavigationSnapshot:
        """Rebuild the whole forest and publish it.

        Runs every declaration source in registration order, then
        auto-discovery, then indexes the result. Raises
        ``DeclarationError`` or ``DuplicateIdError`` (or whatever a
        declaration callable raises) without publishing anything.
        """
        with self._reload_lock:
            logger.info("Reloading navigation structure")
            try:
                snapshot = self._build()
            except Exception:
                logger.exception("Navigation reload failed, keeping previous structure")
                raise
            self._snapshot = snapshot
            logger.info(
                "Navigation reloaded: %d scopes, %d nodes",
                len(snapshot.scopes),
                len(snapshot.index.by_id),
            )
            return snapshot

    def reload(self, source: object = None) -> NavigationSnapshot:
        """Development reload hook for a changed source.

        Always a full reload: a partial rebuild cannot tell which
        auto-discovered nodes a changed declaration now suppresses.
        """
        logger.debug("Reload requested for %r", source)
        return self.reload_all()

    async def areload_all(self) -> NavigationSnapshot:
        """``reload_all()`` in a worker thread, for async reload hooks."""
        return await anyio.to_thread.run_sync(self.reload_all)

    def _build(self) -> NavigationSnapshot:
        forest = StagingForest()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Loading %d navigation sources...", len(self._sources))
        for source in self._sources:
            logger.debug("Loading navigation source [%s]", source.name)
            commands = evaluate(source.declare)
            GraphBuilder(forest, source=source.name).build(commands, None, source.plugin)

        if self.config.auto_discover:
            declared = build_index(forest.scopes.values())
            discover_handlers(forest, self._handlers, declared, self.config)

        return NavigationSnapshot.from_scopes(forest.scopes)

    # -- Forest queries --

    @property
    def snapshot(self) -> NavigationSnapshot:
        """The currently published forest and index."""
        return self._snapshot

    @property
    def scopes(self) -> list[NavigationScope]:
        return list(self._snapshot.scopes.values())

    def scope_by_name(self, name: str) -> NavigationScope | None:
        return self._snapshot.scopes.get(name)

    def node_for_id(self, node_id: str | None) -> NavigationNode | None:
        """O(1) lookup of a scope or item by id."""
        return self._snapshot.index.node_for_id(node_id)

    def node_for_controller_action(
        self, controller: str, action: str | None
    ) -> NavigationItem | None:
        """O(1) reverse lookup from a controller/action pair to its item."""
        return self._snapshot.index.node_for_controller_action(controller, action)

    def nodes_for_path(self, path: str | None) -> list[NavigationItem]:
        """Items from the scope's child down to ``path``, scope excluded."""
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Getting nodes for path [%s]", path)
        node = self.node_for_id(path)
        nodes: list[NavigationItem] = []
        while isinstance(node, NavigationItem):
            nodes.append(node)
            node = node.parent
        nodes.reverse()
        return nodes

    def get_first_ancestor(self, path: str | None) -> NavigationItem | None:
        """The top-level item (direct child of the scope) on ``path``."""
        parts = split_path(path)
        if len(parts) < 2:
            return None
        node = self.node_for_id(make_path(parts[0], parts[1]))
        return node if isinstance(node, NavigationItem) else None

    def first_node_of_path(self, path: str | None) -> NavigationItem | None:
        return self.get_first_ancestor(path)

    def scope_for_id(self, path: str | None) -> str | None:
        """Name of the scope that owns ``path``, if the node exists."""
        node = self.node_for_id(path)
        return node.scope.name if node is not None else None

    def default_controller_action(self, controller: str) -> str:
        """The action used when a request names only a controller."""
        info = self._handlers.get(controller)
        if info is not None and info.default_action:
            return info.default_action
        return self.config.default_action

    # -- Request state --

    def _key(self, name: str) -> str:
        return self.config.request_key_prefix + name

    def set_active_path(self, request: RequestState | None, path: str | None) -> None:
        """Record ``path`` and the node it resolves to for this request."""
        logger.debug("Setting navigation active path for this request to: %s", path)
        state = resolve_state(request)
        state[self._key("activePath")] = path
        state[self._key("activeNode")] = self.node_for_id(path)

    def set_active_path_from_request(
        self,
        request: RequestState | None,
        controller: str | None,
        action: str | None = None,
    ) -> None:
        """Derive the active path from the request's controller and action.

        A missing action means the controller's default action. Nothing
        is recorded when no item links to the pair.
        """
        if not controller:
            return
        if not action:
            action = self.default_controller_action(controller)

        node = self.node_for_controller_action(controller, action)
        logger.debug(
            "Active path from controller/action [%s] and [%s] found node %r",
            controller,
            action,
            node,
        )
        if node is not None:
            self.set_active_path_was_auto(request, True)
            self.set_active_path(request, node.id)

    def set_active_path_was_auto(self, request: RequestState | None, value: bool) -> None:
        resolve_state(request)[self._key("activePath.auto")] = value

    def active_path_was_auto(self, request: RequestState | None) -> bool:
        return bool(resolve_state(request).get(self._key("activePath.auto"), False))

    def active_path(self, request: RequestState | None) -> str | None:
        return resolve_state(request).get(self._key("activePath"))

    def active_node(self, request: RequestState | None) -> NavigationNode | None:
        return resolve_state(request).get(self._key("activeNode"))

    def scope_for_active_node(self, request: RequestState | None) -> str | None:
        return self.scope_for_id(self.active_path(request))

    def first_active_node(self, request: RequestState | None) -> NavigationItem | None:
        node = self.active_node(request)
        return self.get_first_ancestor(node.id if node is not None else None)

    def primary_scope_for(
        self, path: str | None = None, request: RequestState | None = None
    ) -> NavigationScope | None:
        """Scope of ``path``'s top-level item, or of the active node's."""
        first = self.first_node_of_path(path) if path else self.first_active_node(request)
        return first.scope if first is not None else None
