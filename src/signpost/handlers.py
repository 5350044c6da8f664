"""Handler directory — the route handlers auto-discovery can see.

A handler is a named group of actions (``orders`` with ``index``,
``show``, ``edit``). Handlers are usually classes whose public methods
are the actions::

    handlers = HandlerDirectory()

    @handlers.register
    class OrdersController:
        default_action = "list"

        def list(self, request): ...
        def show(self, request, id): ...

    @handlers.register(plugin="billing", scope="admin")
    class InvoiceHandler:
        def index(self, request): ...

``HandlerInfo`` is the frozen description (like ``Route``);
``HandlerDirectory`` is the ordered lookup table (like ``Router``).
"""

import inspect
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, overload

from signpost.errors import ConfigurationError

# Class attributes that configure a handler rather than name an action
NON_ACTION_ATTRIBUTES = frozenset({"default_action", "navigation_scope"})

_NAME_SUFFIXES = ("Controller", "Handler")


@dataclass(frozen=True, slots=True)
class HandlerInfo:
    """A frozen handler description.

    Attributes:
        name: Handler name used in link targets (``orders``).
        actions: Every action, in declaration order.
        default_action: Action used when a request names none.
            ``None`` means the configured default.
        plugin: Owning plugin, or ``None`` for the application itself.
        scope: Explicit navigation scope for auto-discovered nodes.
    """

    name: str
    actions: tuple[str, ...] = ()
    default_action: str | None = None
    plugin: str | None = None
    scope: str | None = None


def handler_name(class_name: str) -> str:
    """Derive a handler name from a class name.

    ``OrderHistoryController`` -> ``orderHistory``; ``URLHandler`` -> ``URL``.
    """
    for suffix in _NAME_SUFFIXES:
        if class_name.endswith(suffix) and class_name != suffix:
            class_name = class_name[: -len(suffix)]
            break
    if len(class_name) > 1 and class_name[1].isupper():
        return class_name
    return class_name[:1].lower() + class_name[1:]


def discover_actions(cls: type) -> tuple[str, ...]:
    """Public plain methods of ``cls`` and its bases, bases first."""
    actions: dict[str, None] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, value in vars(klass).items():
            if name.startswith("_") or name in NON_ACTION_ATTRIBUTES:
                continue
            if inspect.isfunction(value):
                actions.setdefault(name, None)
    return tuple(actions)


def handler_info(
    cls: type,
    *,
    name: str | None = None,
    plugin: str | None = None,
    default_action: str | None = None,
    scope: str | None = None,
) -> HandlerInfo:
    """Introspect a handler class into a ``HandlerInfo``.

    Keyword arguments win over the class's ``default_action`` and
    ``navigation_scope`` attributes.
    """
    return HandlerInfo(
        name=name or handler_name(cls.__name__),
        actions=discover_actions(cls),
        default_action=default_action or getattr(cls, "default_action", None),
        plugin=plugin,
        scope=scope or getattr(cls, "navigation_scope", None),
    )


class HandlerDirectory:
    """Ordered table of known handlers, keyed by name."""

    __slots__ = ("_handlers",)

    def __init__(self, handlers: list[HandlerInfo] | None = None) -> None:
        self._handlers: dict[str, HandlerInfo] = {}
        for info in handlers or ():
            self.add(info)

    def add(self, info: HandlerInfo) -> HandlerInfo:
        """Add a handler. Raises ``ConfigurationError`` on a name clash."""
        if info.name in self._handlers:
            msg = f"Duplicate handler name: {info.name!r}"
            raise ConfigurationError(msg)
        self._handlers[info.name] = info
        return info

    @overload
    def register(self, cls: type, /) -> type: ...

    @overload
    def register(
        self,
        cls: None = None,
        /,
        *,
        name: str | None = None,
        plugin: str | None = None,
        default_action: str | None = None,
        scope: str | None = None,
    ) -> Callable[[type], type]: ...

    def register(
        self,
        cls: type | None = None,
        /,
        *,
        name: str | None = None,
        plugin: str | None = None,
        default_action: str | None = None,
        scope: str | None = None,
    ) -> Any:
        """Register a handler class. Usable bare or with arguments."""

        def decorator(klass: type) -> type:
            self.add(
                handler_info(
                    klass,
                    name=name,
                    plugin=plugin,
                    default_action=default_action,
                    scope=scope,
                )
            )
            return klass

        if cls is not None:
            return decorator(cls)
        return decorator

    def get(self, name: str) -> HandlerInfo | None:
        """Look up a handler by name. Returns ``None`` if not found."""
        return self._handlers.get(name)

    def __iter__(self) -> Iterator[HandlerInfo]:
        return iter(self._handlers.values())

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers
