"""Tests for signpost.registry — reload, lookups, and active paths."""

import logging
import threading

import pytest

from signpost.config import NavigationConfig
from signpost.context import request_scope
from signpost.errors import DeclarationError, DuplicateIdError
from signpost.handlers import HandlerDirectory, HandlerInfo
from signpost.index import NavigationSnapshot
from signpost.nodes import NavigationItem, NavigationScope
from signpost.registry import NavigationRegistry
from signpost.sources import DeclarationSource


def shop_navigation(nav):
    with nav.main:
        nav.home(controller="home", action="index")
        with nav.orders(controller="orders", action="index"):
            with nav.list(action="list"):
                nav.detail(action="show")
    with nav.footer:
        nav.about(uri="/about")


def _registry(*declarations, handlers=None, config=None) -> NavigationRegistry:
    registry = NavigationRegistry(config, handlers=handlers)
    for i, declare in enumerate(declarations):
        registry.add_source(DeclarationSource(name=f"source{i}", declare=declare))
    return registry


def _widgets() -> HandlerDirectory:
    return HandlerDirectory(
        [HandlerInfo(name="widgets", actions=("index", "show", "edit"), default_action="index")]
    )


class TestSetup:
    def test_empty_before_reload(self) -> None:
        registry = _registry(shop_navigation)
        assert registry.scopes == []
        assert registry.node_for_id("main") is None

    def test_declaration_decorator(self) -> None:
        registry = _registry()

        @registry.declaration(plugin="shop")
        def navigation(nav):
            with nav.main:
                nav.home(controller="home")

        assert len(registry.sources) == 1
        assert registry.sources[0].plugin == "shop"
        assert registry.sources[0].name.endswith("navigation")

        registry.reload_all()
        assert registry.node_for_id("main/home").defined_by == "shop"

    def test_sources_constructor_argument(self) -> None:
        source = DeclarationSource(name="shop", declare=shop_navigation)
        registry = NavigationRegistry(sources=[source])
        registry.reload_all()
        assert registry.scope_by_name("main") is not None


class TestReloadAll:
    def test_builds_scopes_in_order(self) -> None:
        registry = _registry(shop_navigation)
        registry.reload_all()
        assert [s.name for s in registry.scopes] == ["main", "footer"]
        assert all(isinstance(s, NavigationScope) for s in registry.scopes)

    def test_returns_published_snapshot(self) -> None:
        registry = _registry(shop_navigation)
        snapshot = registry.reload_all()
        assert isinstance(snapshot, NavigationSnapshot)
        assert registry.snapshot is snapshot

    def test_idempotent(self) -> None:
        registry = _registry(shop_navigation, handlers=_widgets())
        first = set(registry.reload_all().index.by_id)
        second = set(registry.reload_all().index.by_id)
        assert first == second

    def test_reload_builds_new_forest(self) -> None:
        registry = _registry(shop_navigation)
        registry.reload_all()
        old_home = registry.node_for_id("main/home")
        registry.reload_all()
        assert registry.node_for_id("main/home") is not old_home

    def test_reload_hook_is_full_reload(self) -> None:
        registry = _registry(shop_navigation)
        snapshot = registry.reload(shop_navigation)
        assert registry.snapshot is snapshot
        assert registry.node_for_id("footer/about") is not None

    def test_sources_extend_shared_scope_in_order(self) -> None:
        def extra(nav):
            with nav.main:
                nav.blog(controller="blog", action="index")

        registry = _registry(shop_navigation, extra)
        registry.reload_all()
        names = [c.name for c in registry.scope_by_name("main").children]
        assert names == ["home", "orders", "blog"]

    def test_duplicate_across_sources(self) -> None:
        def again(nav):
            with nav.main:
                nav.home(controller="home", action="index")

        registry = _registry(shop_navigation, again)
        with pytest.raises(DuplicateIdError) as exc_info:
            registry.reload_all()
        assert exc_info.value.id == "main/home"

    def test_duplicate_inside_request_scope(self) -> None:
        def again(nav):
            with nav.main:
                nav.home(controller="home", action="index")

        registry = _registry(shop_navigation, again)
        with pytest.raises(DuplicateIdError) as exc_info, request_scope():
            registry.reload_all()
        assert exc_info.value.id == "main/home"

    def test_forest_and_index_agree(self) -> None:
        registry = _registry(shop_navigation, handlers=_widgets())
        registry.reload_all()

        walked: set[str] = set()
        for scope in registry.scopes:
            walked.add(scope.id)
            walked.update(item.id for item in scope.walk())

        assert walked == set(registry.snapshot.index.by_id)
        for node_id in walked:
            assert registry.node_for_id(node_id).id == node_id

    async def test_async_reload(self) -> None:
        registry = _registry(shop_navigation)
        snapshot = await registry.areload_all()
        assert registry.snapshot is snapshot
        assert registry.node_for_id("main/orders") is not None

    def test_logs_reload(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _registry(shop_navigation)
        with caplog.at_level(logging.INFO, logger="signpost.registry"):
            registry.reload_all()
        assert "Reloading navigation structure" in caplog.text


class TestFailedReload:
    def test_declaration_error_keeps_previous_snapshot(self) -> None:
        broken = False

        def navigation(nav):
            with nav.main:
                nav.home(controller="home", action="index")
                if broken:
                    nav.title = "oops"

        registry = _registry(navigation)
        good = registry.reload_all()

        broken = True
        with pytest.raises(DeclarationError, match="title"):
            registry.reload_all()

        assert registry.snapshot is good
        assert registry.node_for_id("main/home") is not None

    def test_first_reload_failure_leaves_empty(self) -> None:
        def navigation(nav):
            with nav.overrides:
                pass

        registry = _registry(navigation)
        with pytest.raises(DeclarationError, match="overrides"):
            registry.reload_all()
        assert registry.scopes == []

    def test_error_in_declaration_callable(self, caplog: pytest.LogCaptureFixture) -> None:
        def navigation(nav):
            msg = "cannot read menu"
            raise RuntimeError(msg)

        registry = _registry(navigation)
        with caplog.at_level(logging.ERROR, logger="signpost.registry"):
            with pytest.raises(RuntimeError, match="cannot read menu"):
                registry.reload_all()
        assert "Navigation reload failed" in caplog.text

    def test_error_names_source(self) -> None:
        def navigation(nav):
            with nav.main(controller="x"):
                pass

        registry = _registry(navigation)
        with pytest.raises(DeclarationError) as exc_info:
            registry.reload_all()
        assert exc_info.value.source == "source0"

    def test_lock_released_after_failure(self) -> None:
        def navigation(nav):
            nav.x = 1

        registry = _registry(navigation)
        with pytest.raises(DeclarationError):
            registry.reload_all()
        assert not registry._reload_lock.locked()


class TestLookups:
    @pytest.fixture
    def registry(self):
        registry = _registry(shop_navigation, handlers=_widgets())
        registry.reload_all()
        return registry

    def test_node_for_id(self, registry) -> None:
        node = registry.node_for_id("main/orders/list")
        assert isinstance(node, NavigationItem)
        assert node.name == "list"

    def test_node_for_id_scope(self, registry) -> None:
        assert registry.node_for_id("main") is registry.scope_by_name("main")

    def test_node_for_controller_action(self, registry) -> None:
        node = registry.node_for_controller_action("orders", "list")
        assert node.id == "main/orders/list"

    def test_inherited_controller_is_indexed(self, registry) -> None:
        assert registry.node_for_controller_action("orders", "show").id == "main/orders/list/detail"

    def test_unknown_pair(self, registry) -> None:
        assert registry.node_for_controller_action("orders", "delete") is None
        assert registry.node_for_controller_action("nobody", "index") is None

    def test_nodes_for_path_three_levels(self, registry) -> None:
        nodes = registry.nodes_for_path("main/orders/list/detail")
        assert [n.name for n in nodes] == ["orders", "list", "detail"]

    def test_nodes_for_path_excludes_scope(self, registry) -> None:
        assert registry.nodes_for_path("main") == []
        assert [n.id for n in registry.nodes_for_path("main/home")] == ["main/home"]

    def test_nodes_for_unknown_path(self, registry) -> None:
        assert registry.nodes_for_path("main/nope") == []
        assert registry.nodes_for_path(None) == []

    def test_get_first_ancestor(self, registry) -> None:
        first = registry.get_first_ancestor("main/orders/list/detail")
        assert first.id == "main/orders"
        assert first.parent is registry.scope_by_name("main")
        assert registry.first_node_of_path("main/orders/list") is first

    def test_get_first_ancestor_edges(self, registry) -> None:
        assert registry.get_first_ancestor("main") is None
        assert registry.get_first_ancestor("") is None
        assert registry.get_first_ancestor(None) is None
        assert registry.get_first_ancestor("main/nope/deeper") is None

    def test_scope_for_id(self, registry) -> None:
        assert registry.scope_for_id("footer/about") == "footer"
        assert registry.scope_for_id("main") == "main"
        assert registry.scope_for_id("missing/x") is None

    def test_default_controller_action(self) -> None:
        handlers = HandlerDirectory(
            [HandlerInfo(name="orders", actions=("list",), default_action="list")]
        )
        registry = _registry(handlers=handlers, config=NavigationConfig(default_action="home"))
        assert registry.default_controller_action("orders") == "list"
        assert registry.default_controller_action("unknown") == "home"


class TestAutoDiscovery:
    def test_widgets_discovered(self) -> None:
        registry = _registry(shop_navigation, handlers=_widgets())
        registry.reload_all()

        widgets = registry.node_for_id("app/widgets")
        assert [c.name for c in widgets.children] == ["show", "edit"]
        assert registry.node_for_id("app/widgets/index") is None
        assert registry.node_for_controller_action("widgets", "index") is widgets
        assert registry.node_for_controller_action("widgets", "edit").id == "app/widgets/edit"

    def test_single_declared_action_suppresses_discovery(self) -> None:
        def navigation(nav):
            with nav.main:
                nav.gadget(controller="widgets", action="show")

        registry = _registry(navigation, handlers=_widgets())
        registry.reload_all()

        assert registry.scope_by_name("app") is None
        assert registry.node_for_controller_action("widgets", "edit") is None
        widget_nodes = [
            n for n in registry.snapshot.index.by_id.values()
            if n.link is not None and n.link.controller == "widgets"
        ]
        assert [n.id for n in widget_nodes] == ["main/gadget"]

    def test_auto_discover_disabled(self) -> None:
        registry = _registry(handlers=_widgets(), config=NavigationConfig(auto_discover=False))
        registry.reload_all()
        assert registry.scopes == []

    def test_handler_registered_after_reload_appears_on_next(self) -> None:
        handlers = HandlerDirectory()
        registry = _registry(handlers=handlers)
        registry.reload_all()
        assert registry.node_for_id("app/widgets") is None

        handlers.add(HandlerInfo(name="widgets", actions=("index",)))
        registry.reload_all()
        assert registry.node_for_id("app/widgets") is not None


class TestActivePath:
    @pytest.fixture
    def registry(self):
        handlers = HandlerDirectory(
            [HandlerInfo(name="orders", actions=("index", "list", "show"), default_action="list")]
        )
        registry = _registry(shop_navigation, handlers=handlers)
        registry.reload_all()
        return registry

    def test_set_active_path(self, registry) -> None:
        request: dict[str, object] = {}
        registry.set_active_path(request, "main/orders")
        assert registry.active_path(request) == "main/orders"
        assert registry.active_node(request) is registry.node_for_id("main/orders")
        assert registry.active_path_was_auto(request) is False

    def test_set_active_path_unknown_id(self, registry) -> None:
        request: dict[str, object] = {}
        registry.set_active_path(request, "main/ghost")
        assert registry.active_path(request) == "main/ghost"
        assert registry.active_node(request) is None

    def test_request_keys_use_prefix(self, registry) -> None:
        request: dict[str, object] = {}
        registry.set_active_path(request, "main/home")
        assert request["signpost.navigation.activePath"] == "main/home"

    def test_from_request_with_action(self, registry) -> None:
        request: dict[str, object] = {}
        registry.set_active_path_from_request(request, "orders", "show")
        assert registry.active_path(request) == "main/orders/list/detail"
        assert registry.active_path_was_auto(request) is True

    def test_from_request_defaults_action(self, registry) -> None:
        request: dict[str, object] = {}
        registry.set_active_path_from_request(request, "orders")
        # "orders" declares default_action="list", not the configured "index"
        assert registry.active_path(request) == "main/orders/list"

    def test_from_request_default_for_unknown_handler(self, registry) -> None:
        request: dict[str, object] = {}
        registry.set_active_path_from_request(request, "home", None)
        assert registry.active_path(request) == "main/home"

    def test_from_request_no_match_leaves_state(self, registry) -> None:
        request: dict[str, object] = {}
        registry.set_active_path_from_request(request, "orders", "delete")
        assert registry.active_path(request) is None
        assert registry.active_path_was_auto(request) is False
        assert request == {}

    def test_from_request_without_controller(self, registry) -> None:
        request: dict[str, object] = {}
        registry.set_active_path_from_request(request, None, "show")
        assert request == {}

    def test_bound_request_state(self, registry) -> None:
        with request_scope():
            registry.set_active_path_from_request(None, "orders", "show")
            assert registry.active_path(None) == "main/orders/list/detail"
            assert registry.scope_for_active_node(None) == "main"
            assert registry.first_active_node(None).id == "main/orders"

    def test_unbound_request_state_raises(self, registry) -> None:
        with pytest.raises(LookupError):
            registry.active_path(None)

    def test_primary_scope_for(self, registry) -> None:
        request: dict[str, object] = {}
        registry.set_active_path(request, "main/orders/list")
        assert registry.primary_scope_for("footer/about").name == "footer"
        assert registry.primary_scope_for(request=request).name == "main"
        assert registry.primary_scope_for("nowhere/x") is None

    def test_first_active_node_without_active(self, registry) -> None:
        assert registry.first_active_node({}) is None


class TestConcurrentReads:
    def test_readers_never_see_partial_forest(self) -> None:
        registry = _registry(shop_navigation, handlers=_widgets())
        registry.reload_all()
        expected = set(registry.snapshot.index.by_id)
        errors: list[str] = []
        stop = threading.Event()

        def reader() -> None:
            while not stop.is_set():
                snapshot = registry.snapshot
                if set(snapshot.index.by_id) != expected:
                    errors.append("partial snapshot")
                if registry.node_for_id("main/orders/list") is None:
                    errors.append("missing node")

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        try:
            for _ in range(50):
                registry.reload_all()
        finally:
            stop.set()
            for t in threads:
                t.join()

        assert errors == []
