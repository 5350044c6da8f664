"""Declaration sources — where navigation scripts come from.

A source pairs a declaration callable with the plugin that owns it.
Sources can be registered directly or discovered from a directory of
``*navigation.py`` modules::

    shop/
        navigation.py          # def navigation(nav): ...
        admin_navigation.py    # plugin = "admin"; def navigation(nav): ...
        _drafts/               # skipped

Each module must define ``navigation(nav)``. An optional module-level
``plugin`` string names the owning plugin; otherwise the plugin passed
to ``discover_sources()`` is used.
"""

import importlib.util
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from signpost.dsl import NavigationDSL

logger = logging.getLogger("signpost.sources")

_SUFFIX = "navigation.py"


@dataclass(frozen=True, slots=True)
class DeclarationSource:
    """A navigation declaration and its owner.

    Attributes:
        name: Label used in logs and error messages.
        declare: Callable receiving the ``NavigationDSL`` recorder.
        plugin: Owning plugin, or ``None`` for the application.
    """

    name: str
    declare: Callable[[NavigationDSL], Any]
    plugin: str | None = None


def discover_sources(
    directory: str | Path, *, plugin: str | None = None
) -> list[DeclarationSource]:
    """Walk ``directory`` and load every ``*navigation.py`` module.

    Files and subdirectories are visited in sorted order; names starting
    with ``_`` or ``.`` are skipped.
    """
    root = Path(directory).resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Navigation directory not found: {root}")

    sources: list[DeclarationSource] = []
    _walk_directory(root, root, plugin=plugin, sources=sources)
    return sources


def _walk_directory(
    directory: Path,
    root: Path,
    *,
    plugin: str | None,
    sources: list[DeclarationSource],
) -> None:
    for item in sorted(directory.iterdir()):
        if item.name.startswith(("_", ".")):
            continue
        if item.is_file() and item.name.endswith(_SUFFIX):
            source = _load_source(item, root, plugin)
            if source is not None:
                sources.append(source)

    for item in sorted(directory.iterdir()):
        if item.is_dir() and not item.name.startswith(("_", ".")):
            _walk_directory(item, root, plugin=plugin, sources=sources)


def _load_source(file: Path, root: Path, plugin: str | None) -> DeclarationSource | None:
    """Load one module. Returns ``None`` if it defines no ``navigation``."""
    relative = file.relative_to(root).with_suffix("")
    module_name = "_signpost_nav_" + "_".join(relative.parts)
    spec = importlib.util.spec_from_file_location(module_name, file)
    if spec is None or spec.loader is None:
        return None

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    declare = getattr(module, "navigation", None)
    if declare is None or not callable(declare):
        logger.warning(
            "Tried to load navigation from [%s] but no 'navigation' callable was found",
            file,
        )
        return None

    logger.debug("Loaded navigation source [%s]", file)
    return DeclarationSource(
        name=relative.as_posix(),
        declare=declare,
        plugin=getattr(module, "plugin", plugin),
    )
