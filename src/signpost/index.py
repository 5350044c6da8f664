"""Flat lookup indices over a navigation forest.

``build_index()`` walks every scope depth-first and produces two O(1)
tables:

- ``by_id``: every scope and item, keyed by id.
- ``by_controller_action``: every item whose link names a controller,
  keyed ``"controller:action"``. When two items link the same pair, the
  later one in walk order wins.

Ids are already unique within one forest (``StagingForest.add_item``
guarantees it), so building an index never has to resolve collisions.

``NavigationSnapshot`` bundles a forest with its index. The registry
publishes snapshots whole, so a reader always sees a matching pair.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from signpost.nodes import NavigationItem, NavigationNode, NavigationScope

_EMPTY: Mapping = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class NavigationIndex:
    """Read-only lookup tables for one forest."""

    by_id: Mapping[str, NavigationNode] = _EMPTY
    by_controller_action: Mapping[str, NavigationItem] = _EMPTY
    controllers: frozenset[str] = frozenset()

    def node_for_id(self, node_id: str | None) -> NavigationNode | None:
        if not node_id:
            return None
        return self.by_id.get(node_id)

    def node_for_controller_action(
        self, controller: str, action: str | None
    ) -> NavigationItem | None:
        return self.by_controller_action.get(f"{controller}:{action}")

    def has_controller(self, controller: str) -> bool:
        """True if any indexed item links to ``controller``, whatever the action."""
        return controller in self.controllers


def build_index(scopes: Iterable[NavigationScope]) -> NavigationIndex:
    """Walk ``scopes`` depth-first and index every node."""
    by_id: dict[str, NavigationNode] = {}
    by_controller_action: dict[str, NavigationItem] = {}
    controllers: set[str] = set()

    for scope in scopes:
        by_id[scope.id] = scope
        for item in scope.walk():
            by_id[item.id] = item
            key = item.link.key
            if key is not None:
                by_controller_action[key] = item
                controllers.add(item.link.controller)

    return NavigationIndex(
        by_id=MappingProxyType(by_id),
        by_controller_action=MappingProxyType(by_controller_action),
        controllers=frozenset(controllers),
    )


@dataclass(frozen=True, slots=True)
class NavigationSnapshot:
    """A published forest plus its index. Never mutated after creation."""

    scopes: Mapping[str, NavigationScope] = _EMPTY
    index: NavigationIndex = field(default_factory=NavigationIndex)

    @classmethod
    def from_scopes(cls, scopes: Mapping[str, NavigationScope]) -> "NavigationSnapshot":
        return cls(
            scopes=MappingProxyType(dict(scopes)),
            index=build_index(scopes.values()),
        )
