"""Registry mapping real type names to their shadow configuration."""

import threading

from shadowdispatch.declarations import ShadowDescriptor
from shadowdispatch.declarations import descriptor_of
from shadowdispatch.errors import ConfigurationError
from shadowdispatch.loader import enclosing_type_names
from shadowdispatch.loader import type_name


class ShadowConfig:
    """Shadow class name and call-through policy for one real type."""

    __slots__ = ("shadow_class_name", "call_through_by_default")

    shadow_class_name: str
    call_through_by_default: bool

    def __init__(self, shadow_class_name: str, call_through_by_default: bool = False) -> None:
        """Initialize a config entry.

        :param shadow_class_name: Fully-qualified shadow class name.
        :param call_through_by_default: Run real code for methods the shadow lacks.
        """
        object.__setattr__(self, "shadow_class_name", shadow_class_name)
        object.__setattr__(self, "call_through_by_default", call_through_by_default)

    def __setattr__(self, attr_name: str, value: object) -> None:
        raise AttributeError("ShadowConfig is immutable")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ShadowConfig) is False:
            return NotImplemented
        assert isinstance(other, ShadowConfig)
        return (
            self.shadow_class_name == other.shadow_class_name
            and self.call_through_by_default == other.call_through_by_default
        )

    def __hash__(self) -> int:
        return hash((self.shadow_class_name, self.call_through_by_default))

    def __repr__(self) -> str:
        return (
            f"ShadowConfig(shadow_class_name={self.shadow_class_name!r}, "
            + f"call_through_by_default={self.call_through_by_default!r})"
        )


class ShadowMap:
    """In-memory shadow configuration registry.

    Populate it during test setup; once the engine starts resolving, it is only
    read, and reads take no lock.
    """

    _configs: dict[str, ShadowConfig]
    _write_lock: threading.Lock

    def __init__(self, configs: dict[str, ShadowConfig] | None = None) -> None:
        """Initialize the registry.

        :param configs: Optional initial entries keyed by real type name.
        """
        self._configs = dict(configs) if configs is not None else {}
        self._write_lock = threading.Lock()

    def register(self, class_name: str, shadow_class_name: str, call_through_by_default: bool = False) -> None:
        """Register one shadow.

        :param class_name: Real type name.
        :param shadow_class_name: Shadow type name.
        :param call_through_by_default: Call-through policy for the real type.
        :raises ValueError: If a different config is already registered.
        """
        config: ShadowConfig = ShadowConfig(shadow_class_name, call_through_by_default)
        with self._write_lock:
            existing: ShadowConfig | None = self._configs.get(class_name)
            if existing is not None and existing != config:
                raise ValueError(f"{class_name} is already shadowed by {existing.shadow_class_name}")
            self._configs[class_name] = config

    def add_shadow_class(self, shadow_class: type, call_through_by_default: bool = False) -> None:
        """Register a shadow class under the target its ``@implements`` names.

        :param shadow_class: Shadow class carrying ``@implements``.
        :param call_through_by_default: Call-through policy for the real type.
        :raises ConfigurationError: If the class has no ``@implements``.
        """
        descriptor: ShadowDescriptor | None = descriptor_of(shadow_class)
        if descriptor is None:
            raise ConfigurationError(f"{shadow_class!r} has no @implements declaration")
        self.register(descriptor.target_name, type_name(shadow_class), call_through_by_default)

    def get(self, class_name: str) -> ShadowConfig | None:
        """Return the config for a real type name.

        :param class_name: Real type name.
        :returns: Config or ``None``.
        """
        return self._configs.get(class_name)

    def get_shadow_class_name(self, class_name: str) -> str | None:
        """Return the shadow class name for a real type name.

        :param class_name: Real type name.
        :returns: Shadow class name or ``None``.
        """
        config: ShadowConfig | None = self._configs.get(class_name)
        if config is None:
            return None
        return config.shadow_class_name

    def enclosing_class_names(self, class_name: str) -> list[str]:
        """Return the enclosing types of a nested type, innermost first.

        :param class_name: Real type name.
        :returns: Enclosing type names.
        """
        return enclosing_type_names(class_name)

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, class_name: object) -> bool:
        return class_name in self._configs
