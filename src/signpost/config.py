"""Navigation configuration.

NavigationConfig is a frozen dataclass — immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class NavigationConfig:
    """Navigation configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = NavigationConfig(default_action="list", app_scope="main")
    """

    # Action assumed for handlers that do not declare ``default_action``
    default_action: str = "index"

    # Auto-discovery scopes
    app_scope: str = "app"  # Handlers with no owning plugin
    internal_scope: str = "dev"  # Handlers owned by internal_plugin
    internal_plugin: str = "signpost"

    # Turn off to build navigation from declarations only
    auto_discover: bool = True

    # Request state keys are "<prefix>activePath", "<prefix>activeNode", ...
    request_key_prefix: str = "signpost.navigation."
