"""Request-scoped navigation state via ContextVar.

The registry stores the active path for a request in a mutable mapping
owned by that request. Callers either pass the mapping explicitly (an
ASGI ``scope["state"]`` dict, a framework's ``g``-style dict, ...) or
bind one for the duration of the request with ``request_scope()``::

    with request_scope():
        registry.set_active_path_from_request(None, "orders", "show")
        ...
        node = registry.active_node(None)

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local for
    threads, so concurrent requests never see each other's state.
"""

from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

type RequestState = MutableMapping[str, Any]

request_state_var: ContextVar[RequestState] = ContextVar("signpost_request_state")
"""The current request's state. Set by ``request_scope()``."""


def get_request_state() -> RequestState:
    """Return the state bound to the current request.

    Raises ``LookupError`` if called outside ``request_scope()``.
    """
    return request_state_var.get()


@contextmanager
def request_scope(state: RequestState | None = None) -> Iterator[RequestState]:
    """Bind ``state`` (or a fresh dict) as the current request's state."""
    token = request_state_var.set(state if state is not None else {})
    try:
        yield request_state_var.get()
    finally:
        request_state_var.reset(token)


def resolve_state(request: RequestState | None) -> RequestState:
    """Use the explicit mapping when given, else the bound one."""
    if request is not None:
        return request
    return get_request_state()
