"""Custom error types for shadowdispatch."""


class ShadowDispatchError(Exception):
    """Base class for all shadowdispatch errors."""


class ConfigurationError(ShadowDispatchError):
    """Raised when the shadow setup itself is broken.

    Missing ``@implements`` declarations, shadow classes that cannot be loaded
    and malformed static initializers all end up here. These are never
    retried or downgraded to a no-op.
    """


class ShadowCreationError(ConfigurationError):
    """Raised when a shadow instance cannot be instantiated."""

    shadow_class_name: str
    real_class_name: str

    def __init__(self, shadow_class_name: str, real_class_name: str) -> None:
        """Initialize a shadow creation failure.

        :param shadow_class_name: Name of the shadow class being instantiated.
        :param real_class_name: Name of the real instance's class.
        """
        self.shadow_class_name = shadow_class_name
        self.real_class_name = real_class_name
        super().__init__(f"Could not create {shadow_class_name} as shadow for {real_class_name}")


class DispatchError(ShadowDispatchError):
    """Raised when a resolved plan cannot be applied to the call site."""
