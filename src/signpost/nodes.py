"""Navigation forest entities.

A forest is a set of ``NavigationScope`` roots (``main``, ``footer``,
``app``, ...), each owning an ordered tree of ``NavigationItem`` nodes.
Every node has an ``id``: the ``/``-joined path of names from its scope,
e.g. ``main/orders/list``. A scope's id is its name.

Nodes are only created and attached while a reload builds a new forest.
Once that forest is published nothing mutates it, so readers on any
thread can walk it without locks.
"""

import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Any

NODE_PATH_SEPARATOR = "/"

LINK_KEYS = ("controller", "action", "mapping", "uri", "url", "view")

_WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+")
_SPLIT_RE = re.compile(r"[\s_\-.]+")

# A visibility/enabled flag: None (yes), a bool, or a predicate over a context
type Flag = bool | Callable[[Any], Any] | None


def natural_name(name: str) -> str:
    """Turn an identifier into a natural phrase.

    Examples::

        "orderHistory"  -> "Order History"
        "order_history" -> "Order History"
        "URLSettings"   -> "URL Settings"
    """
    words: list[str] = []
    for part in _SPLIT_RE.split(name):
        words.extend(_WORD_RE.findall(part))
    return " ".join(w[:1].upper() + w[1:] for w in words)


def make_path(*elements: str) -> str:
    """Join path elements into a node id."""
    return NODE_PATH_SEPARATOR.join(e for e in elements if e)


def split_path(path: str | None) -> list[str]:
    """Split a node id into its names. Empty or ``None`` gives ``[]``."""
    if not path:
        return []
    return path.split(NODE_PATH_SEPARATOR)


@dataclass(frozen=True, slots=True)
class LinkTarget:
    """Where a navigation item points.

    Either a ``controller``/``action`` pair (what auto-discovery and
    reverse lookup understand) or one of the alternates: a named URL
    ``mapping``, a raw ``uri``/``url``, or a ``view``.
    """

    controller: str | None = None
    action: str | None = None
    mapping: str | None = None
    uri: str | None = None
    url: str | None = None
    view: str | None = None

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> "LinkTarget":
        """Pick the link keys out of a declaration's arguments."""
        return cls(**{k: arguments[k] for k in LINK_KEYS if k in arguments})

    def with_controller(self, controller: str | None) -> "LinkTarget":
        return replace(self, controller=controller)

    @property
    def key(self) -> str | None:
        """``"controller:action"`` index key, or ``None`` when unlinked."""
        if not self.controller:
            return None
        return f"{self.controller}:{self.action}"

    def as_dict(self) -> dict[str, str]:
        """Only the keys that were set, ready to pass to a URL builder."""
        return {k: v for k in LINK_KEYS if (v := getattr(self, k)) is not None}

    def __bool__(self) -> bool:
        return bool(self.as_dict())


class NavigationNode:
    """Common base for scopes and items: a name, a parent, ordered children."""

    __slots__ = ("_children", "_id", "name", "parent")

    def __init__(self, name: str) -> None:
        self.name = name
        self.parent: NavigationNode | None = None
        self._children: list[NavigationItem] = []
        self._id = name

    @property
    def id(self) -> str:
        return self._id

    @property
    def children(self) -> tuple["NavigationItem", ...]:
        return tuple(self._children)

    @property
    def link(self) -> LinkTarget | None:
        return None

    @property
    def scope(self) -> "NavigationScope":
        """The scope at the root of this node's tree."""
        node = self
        while node.parent is not None:
            node = node.parent
        if not isinstance(node, NavigationScope):
            msg = f"Navigation node {self.id!r} is not attached to a scope"
            raise RuntimeError(msg)
        return node

    def walk(self) -> Iterator["NavigationItem"]:
        """Yield every descendant depth-first, parents before children."""
        for child in self._children:
            yield child
            yield from child.walk()

    def _attach(self, child: "NavigationItem") -> None:
        child.parent = self
        child._id = make_path(self._id, child.name)
        self._children.append(child)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id!r}>"


class NavigationScope(NavigationNode):
    """A named root of the forest. Never linked, never has a parent."""

    __slots__ = ()

    @property
    def scope(self) -> "NavigationScope":
        return self


class NavigationItem(NavigationNode):
    """One navigation entry, optionally linked to a controller/action."""

    __slots__ = (
        "_link",
        "defined_by",
        "enabled",
        "title_default",
        "title_message_code",
        "visible",
    )

    def __init__(
        self,
        name: str,
        *,
        title_default: str | None = None,
        title_message_code: str | None = None,
        link: LinkTarget | None = None,
        visible: Flag = None,
        enabled: Flag = None,
        defined_by: str | None = None,
    ) -> None:
        super().__init__(name)
        self.title_default = title_default if title_default is not None else natural_name(name)
        self.title_message_code = title_message_code
        self._link = link or LinkTarget()
        self.visible = visible
        self.enabled = enabled
        self.defined_by = defined_by

    @property
    def link(self) -> LinkTarget:
        return self._link

    def is_visible(self, context: Any = None) -> bool:
        return _evaluate_flag(self.visible, context)

    def is_enabled(self, context: Any = None) -> bool:
        return _evaluate_flag(self.enabled, context)


def _evaluate_flag(flag: Flag, context: Any) -> bool:
    if flag is None:
        return True
    if callable(flag):
        return bool(flag(context))
    return bool(flag)
