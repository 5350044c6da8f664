"""Signpost exception hierarchy.

Shared across the builder, discovery, and registry so every module
raises and catches the same types.
"""


class SignpostError(Exception):
    """Base for all signpost-specific errors."""


class ConfigurationError(SignpostError):
    """Raised when configuration or handler registration is invalid."""


class DeclarationError(SignpostError):
    """A navigation declaration uses a form the builder does not accept.

    Raised while interpreting commands during a reload. Aborts the reload;
    the previously published navigation stays active.
    """

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"{self.message} (in navigation source {self.source!r})"
        return self.message


class DuplicateIdError(SignpostError):
    """Two navigation nodes resolve to the same id.

    Raised by ``StagingForest.add_item()``, the only place node ids are
    checked for uniqueness.
    """

    def __init__(self, id: str) -> None:
        super().__init__(
            f"Cannot add navigation node with id [{id}] because "
            "an item with the same id already exists"
        )
        self.id = id
