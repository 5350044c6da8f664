"""Command model — one frozen dataclass per declaration statement form.

The Declaration Evaluator (``signpost.dsl``) records a navigation script
as a list of these values; the Graph Builder (``signpost.builder``)
interprets them. ``Command`` is the closed union of every form, so the
builder dispatches with a single ``match``.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class BlockCommand:
    """An argument-less named container: ``with nav.main:``."""

    name: str
    children: tuple["Command", ...] = ()


@dataclass(frozen=True, slots=True)
class NamedArgsBlockCommand:
    """A keyword-argument branch: ``with nav.orders(controller="orders"):``."""

    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    children: tuple["Command", ...] = ()


@dataclass(frozen=True, slots=True)
class NamedArgsCallCommand:
    """A keyword-argument leaf: ``nav.list(action="list")``."""

    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SetValueCommand:
    """A property assignment: ``nav.title = "x"``. Never supported."""

    name: str
    value: Any = None


@dataclass(frozen=True, slots=True)
class PlainCallCommand:
    """A call with positional (or no) arguments. Never supported."""

    name: str
    arguments: tuple[Any, ...] = ()


type Command = (
    BlockCommand
    | NamedArgsBlockCommand
    | NamedArgsCallCommand
    | SetValueCommand
    | PlainCallCommand
)
