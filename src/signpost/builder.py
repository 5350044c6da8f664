"""Graph builder — interprets declaration commands into a navigation forest.

Commands are interpreted against a ``StagingForest``: a forest that is
still being assembled and is not visible to readers. The registry
publishes it only once every source and auto-discovery have finished.

Rules enforced here:

- At the top level only blocks are allowed, and they name scopes.
  A scope block carrying arguments is an error.
- ``overrides`` is a reserved block name and is rejected at every depth.
- Keyword calls declare leaf items and need an enclosing scope.
- Property assignments and positional calls are always rejected.
- An item that declares ``action`` without ``controller`` inherits the
  controller of its parent's link.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from signpost.commands import (
    BlockCommand,
    Command,
    NamedArgsBlockCommand,
    NamedArgsCallCommand,
    PlainCallCommand,
    SetValueCommand,
)
from signpost.errors import DeclarationError, DuplicateIdError
from signpost.nodes import (
    NODE_PATH_SEPARATOR,
    LinkTarget,
    NavigationItem,
    NavigationNode,
    NavigationScope,
    make_path,
    natural_name,
)

logger = logging.getLogger("signpost.builder")

OVERRIDES_BLOCK = "overrides"


def check_name(name: str, *, source: str | None = None) -> None:
    """Reject names that cannot form a distinct path segment."""
    if not name:
        raise DeclarationError("Navigation node names cannot be empty", source=source)
    if NODE_PATH_SEPARATOR in name:
        msg = f"Navigation node name [{name}] cannot contain {NODE_PATH_SEPARATOR!r}"
        raise DeclarationError(msg, source=source)


class StagingForest:
    """A forest under construction: scopes by name plus every id in use.

    ``add_item()`` is the only way items enter the forest and the only
    place id uniqueness is checked.
    """

    __slots__ = ("_ids", "_scopes")

    def __init__(self) -> None:
        self._scopes: dict[str, NavigationScope] = {}
        self._ids: set[str] = set()

    @property
    def scopes(self) -> Mapping[str, NavigationScope]:
        return self._scopes

    def get_or_create_scope(self, name: str) -> NavigationScope:
        scope = self._scopes.get(name)
        if scope is None:
            check_name(name)
            logger.debug("Creating scope [%s]", name)
            scope = NavigationScope(name)
            self._scopes[name] = scope
            self._ids.add(scope.id)
        return scope

    def add_item(self, parent: NavigationNode, item: NavigationItem) -> NavigationItem:
        """Attach ``item`` under ``parent``.

        Raises ``DuplicateIdError`` if the item's id is already taken
        anywhere in this forest.
        """
        check_name(item.name)
        item_id = make_path(parent.id, item.name)
        if item_id in self._ids:
            raise DuplicateIdError(item_id)
        parent._attach(item)
        self._ids.add(item_id)
        return item

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)


class GraphBuilder:
    """Interprets command sequences into a ``StagingForest``.

    Usage::

        forest = StagingForest()
        builder = GraphBuilder(forest, source="shop")
        builder.build(evaluate(navigation), None, defined_by=None)
    """

    __slots__ = ("_forest", "_source")

    def __init__(self, forest: StagingForest, *, source: str | None = None) -> None:
        self._forest = forest
        self._source = source

    def build(
        self,
        commands: Iterable[Command],
        parent: NavigationNode | None = None,
        defined_by: str | None = None,
    ) -> None:
        """Interpret ``commands`` under ``parent`` (``None`` for top level).

        ``defined_by`` names the plugin that owns the declaration; it is
        recorded on every item created.
        """
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Parsing navigation commands %r in parent %s, defined by plugin %s",
                commands,
                parent.id if parent is not None else None,
                defined_by,
            )
        for command in commands:
            match command:
                case BlockCommand() | NamedArgsBlockCommand():
                    self._build_block(command, parent, defined_by)
                case NamedArgsCallCommand(name=name, arguments=arguments):
                    if parent is None:
                        raise self._error(
                            "We don't support named argument method calls unless you "
                            f"are in a scope. Your navigation tried to call "
                            f"[{name}]({_format_arguments(arguments)})"
                        )
                    self._add_item_from_args(name, arguments, parent, defined_by)
                case SetValueCommand(name=name, value=value):
                    raise self._error(
                        "We don't support property setting or simple method calls in "
                        f"navigation declarations. Your navigation tried to set "
                        f"[{name}] to {value!r}"
                    )
                case PlainCallCommand(name=name, arguments=arguments):
                    raise self._error(
                        "We don't support property setting or simple method calls in "
                        f"navigation declarations. Your navigation tried to call "
                        f"[{name}] with args {list(arguments)!r}"
                    )
                case _:
                    raise self._error(
                        f"We don't support command type {type(command).__name__}"
                    )

    def _build_block(
        self,
        command: BlockCommand | NamedArgsBlockCommand,
        parent: NavigationNode | None,
        defined_by: str | None,
    ) -> None:
        arguments = command.arguments if isinstance(command, NamedArgsBlockCommand) else {}

        if command.name == OVERRIDES_BLOCK:
            if parent is None:
                raise self._error("Sorry but the 'overrides' block is not yet implemented")
            raise self._error(
                "Sorry but the 'overrides' block is not valid except at the scope level"
            )

        node: NavigationNode
        if parent is None:
            if arguments:
                raise self._error(
                    f"You cannot define a root scope [{command.name}] and pass it "
                    "arguments. Arguments are for nodes only"
                )
            check_name(command.name, source=self._source)
            node = self._forest.get_or_create_scope(command.name)
        else:
            node = self._add_item_from_args(command.name, arguments, parent, defined_by)

        self.build(command.children, node, defined_by)

    def _add_item_from_args(
        self,
        name: str,
        arguments: Mapping[str, Any],
        parent: NavigationNode,
        defined_by: str | None,
    ) -> NavigationItem:
        check_name(name, source=self._source)
        link = LinkTarget.from_arguments(arguments)

        # Inherit controller from parent
        if not link.controller and link.action and parent.link is not None:
            link = link.with_controller(parent.link.controller)

        item = NavigationItem(
            name,
            title_default=arguments.get("titleText") or natural_name(name),
            title_message_code=arguments.get("title"),
            link=link,
            visible=arguments.get("visible"),
            enabled=arguments.get("enabled"),
            defined_by=defined_by,
        )
        logger.debug(
            "Adding item %s to parent %s with link %s", name, parent.id, link.as_dict()
        )
        return self._forest.add_item(parent, item)

    def _error(self, message: str) -> DeclarationError:
        return DeclarationError(message, source=self._source)


def _format_arguments(arguments: Mapping[str, Any]) -> str:
    return ", ".join(f"{k}={v!r}" for k, v in arguments.items())
