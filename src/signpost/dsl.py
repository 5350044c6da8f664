"""Declaration evaluator — records a nested navigation script as commands.

A declaration is a plain callable that receives a ``NavigationDSL``
recorder. Attribute access names a node; ``with`` opens a block; keyword
calls declare nodes with arguments::

    def navigation(nav):
        with nav.main:
            nav.home(controller="home", action="index")
            with nav.orders(controller="orders", action="index"):
                nav.list(action="list")
                nav.archive(action="archive", titleText="Old orders")

    commands = evaluate(navigation)

The recorder never validates anything. Forms the builder rejects
(assignments, positional calls) are recorded faithfully so the builder
can report them by name.
"""

from collections.abc import Callable
from typing import Any

from signpost.commands import (
    BlockCommand,
    Command,
    NamedArgsBlockCommand,
    NamedArgsCallCommand,
    PlainCallCommand,
    SetValueCommand,
)


class NavigationDSL:
    """Recorder handed to navigation declarations.

    Any attribute not starting with ``_`` is a node name. Use
    ``nav["name"]`` for names that are Python keywords.
    """

    __slots__ = ("_stack",)

    def __init__(self) -> None:
        object.__setattr__(self, "_stack", [[]])

    def __getattr__(self, name: str) -> "_Declaration":
        if name.startswith("_"):
            raise AttributeError(name)
        return _Declaration(self, name)

    def __getitem__(self, name: str) -> "_Declaration":
        return _Declaration(self, name)

    def __setattr__(self, name: str, value: Any) -> None:
        self._emit(SetValueCommand(name=name, value=value))

    def __repr__(self) -> str:
        return f"<NavigationDSL depth={len(self._stack) - 1}>"

    # -- Recording --

    def _emit(self, command: Command) -> int:
        current = self._stack[-1]
        current.append(command)
        return len(current) - 1

    def _replace(self, index: int, command: Command) -> None:
        self._stack[-1][index] = command

    def _push(self) -> None:
        self._stack.append([])

    def _pop(self) -> list[Command]:
        return self._stack.pop()

    def _discard(self, index: int) -> None:
        del self._stack[-1][index]

    def _finish(self) -> list[Command]:
        if len(self._stack) != 1:
            msg = "Navigation declaration finished with unclosed blocks"
            raise RuntimeError(msg)
        return list(self._stack[0])


class _Declaration:
    """A named reference: becomes a block via ``with``, a node via a call."""

    __slots__ = ("_dsl", "_index", "_name")

    def __init__(self, dsl: NavigationDSL, name: str) -> None:
        self._dsl = dsl
        self._name = name
        self._index = -1

    def __call__(self, *args: Any, **kwargs: Any) -> "_Call":
        command: Command
        if args or not kwargs:
            arguments = (*args, kwargs) if kwargs else args
            command = PlainCallCommand(name=self._name, arguments=tuple(arguments))
        else:
            command = NamedArgsCallCommand(name=self._name, arguments=dict(kwargs))
        return _Call(self._dsl, command, self._dsl._emit(command))

    def __enter__(self) -> NavigationDSL:
        self._index = self._dsl._emit(BlockCommand(name=self._name))
        self._dsl._push()
        return self._dsl

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        children = self._dsl._pop()
        if exc_type is not None:
            self._dsl._discard(self._index)
            return
        self._dsl._replace(
            self._index, BlockCommand(name=self._name, children=tuple(children))
        )


class _Call:
    """A recorded call. Entering it turns a keyword call into a block."""

    __slots__ = ("_command", "_dsl", "_index")

    def __init__(self, dsl: NavigationDSL, command: Command, index: int) -> None:
        self._dsl = dsl
        self._command = command
        self._index = index

    def __enter__(self) -> NavigationDSL:
        self._dsl._push()
        return self._dsl

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        children = self._dsl._pop()
        if exc_type is not None:
            self._dsl._discard(self._index)
            return
        # Positional calls stay rejected; their bodies are dropped
        if isinstance(self._command, NamedArgsCallCommand):
            self._dsl._replace(
                self._index,
                NamedArgsBlockCommand(
                    name=self._command.name,
                    arguments=self._command.arguments,
                    children=tuple(children),
                ),
            )


def evaluate(declare: Callable[[NavigationDSL], object]) -> list[Command]:
    """Run a navigation declaration and return its top-level commands."""
    nav = NavigationDSL()
    declare(nav)
    return nav._finish()
