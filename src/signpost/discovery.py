"""Auto-discovery — navigation nodes for handlers nobody declared.

Runs after every declaration source has been built. For each handler in
the directory that no declared item links to, one node is synthesized
for the handler itself (linked to its default action) with one child per
remaining action.

A handler is skipped entirely as soon as *any* of its actions is
declared. Declaring ``orders:list`` by hand therefore hides
``orders:show`` and ``orders:edit`` from auto-discovery too; declare
them as well if they should appear.

The scope for a discovered handler is, in order of priority:

1. the handler's explicit ``scope`` (``navigation_scope`` on the class);
2. ``config.internal_scope`` for handlers owned by ``config.internal_plugin``;
3. ``config.app_scope`` for handlers with no owning plugin;
4. the owning plugin's name.
"""

import logging
from collections.abc import Iterable

from signpost.builder import StagingForest
from signpost.config import NavigationConfig
from signpost.handlers import HandlerInfo
from signpost.index import NavigationIndex
from signpost.nodes import LinkTarget, NavigationItem, natural_name

logger = logging.getLogger("signpost.discovery")


def scope_for_handler(info: HandlerInfo, config: NavigationConfig) -> str:
    """Pick the scope a discovered handler's node goes into."""
    if info.scope:
        return info.scope
    if info.plugin == config.internal_plugin:
        return config.internal_scope
    if info.plugin is None:
        return config.app_scope
    return info.plugin


def discover_handlers(
    forest: StagingForest,
    handlers: Iterable[HandlerInfo],
    declared: NavigationIndex,
    config: NavigationConfig,
) -> list[NavigationItem]:
    """Add nodes for undeclared handlers to ``forest``.

    Args:
        forest: The forest being built. Nodes go in via ``add_item()``,
            so an id clash with a declared node raises ``DuplicateIdError``.
        handlers: Every known handler, in directory order.
        declared: Index of the declared forest, used to find handlers
            that already have at least one declared action.
        config: Supplies scope names and the fallback default action.

    Returns:
        The synthesized handler nodes, one per discovered handler.
    """
    discovered: list[NavigationItem] = []
    for info in handlers:
        logger.debug("Found actions %s for handler %s", info.actions, info.name)

        if declared.has_controller(info.name):
            logger.debug(
                "Skipping auto-register of handler %s, manual declarations exist",
                info.name,
            )
            continue

        scope_name = scope_for_handler(info, config)
        default_action = info.default_action or config.default_action
        logger.debug("Scope for actions of handler %s is %s", info.name, scope_name)

        handler_node = forest.add_item(
            forest.get_or_create_scope(scope_name),
            NavigationItem(
                info.name,
                title_default=natural_name(info.name),
                link=LinkTarget(controller=info.name, action=default_action),
                defined_by=info.plugin,
            ),
        )
        for action in info.actions:
            if action == default_action:
                continue
            forest.add_item(
                handler_node,
                NavigationItem(
                    action,
                    title_default=natural_name(action),
                    link=LinkTarget(controller=info.name, action=action),
                    defined_by=info.plugin,
                ),
            )
        discovered.append(handler_node)

    return discovered
