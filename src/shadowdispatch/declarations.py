"""Declarative tags carried by shadow classes."""

from collections.abc import Callable

from shadowdispatch.errors import ConfigurationError
from shadowdispatch.loader import type_name

DESCRIPTOR_ATTRIBUTE: str = "__shadow_descriptor__"


class ShadowDescriptor:
    """What one shadow class claims to substitute.

    ``class_name`` wins over ``value`` when it is non-empty, which lets a
    shadow target a class that cannot be imported where the shadow is defined.
    """

    value: type | None
    class_name: str

    def __init__(self, value: type | None = None, class_name: str = "") -> None:
        """Initialize a descriptor.

        :param value: Target type.
        :param class_name: Target type name overriding ``value`` when non-empty.
        :raises ConfigurationError: If neither target form is given.
        """
        if value is None and len(class_name) == 0:
            raise ConfigurationError("@implements needs a target type or a class_name")
        self.value = value
        self.class_name = class_name

    @property
    def target_name(self) -> str:
        """Return the fully-qualified name of the shadowed type."""
        if len(self.class_name) > 0:
            return self.class_name
        assert self.value is not None
        return type_name(self.value)

    def __repr__(self) -> str:
        return f"ShadowDescriptor(target={self.target_name!r})"


def implements(value: type | None = None, class_name: str = "") -> Callable[[type], type]:
    """Declare the real type a shadow class substitutes.

    :param value: Target type. ``object`` marks a shadow whose methods apply to
        any type and always fall through.
    :param class_name: Target type name in ``module.path:Qual.Name`` format.
    :returns: Class decorator.
    """
    descriptor: ShadowDescriptor = ShadowDescriptor(value, class_name)

    def decorate(shadow_class: type) -> type:
        setattr(shadow_class, DESCRIPTOR_ATTRIBUTE, descriptor)
        return shadow_class

    return decorate


def descriptor_of(shadow_class: type) -> ShadowDescriptor | None:
    """Return the descriptor declared directly on ``shadow_class``.

    Descriptors are not inherited: a subclass of a shadow must carry its own
    ``@implements``.

    :param shadow_class: Shadow class to inspect.
    :returns: Declared descriptor or ``None``.
    """
    descriptor: object = shadow_class.__dict__.get(DESCRIPTOR_ATTRIBUTE)
    if isinstance(descriptor, ShadowDescriptor) is False:
        return None
    return descriptor


class RealObject:
    """Marks a shadow attribute that receives the real instance.

    Declare it as a class attribute::

        @implements(CameraSize)
        class ShadowCameraSize:
            real_size = RealObject()
    """

    name: str
    owner: type | None

    def __init__(self) -> None:
        self.name = ""
        self.owner = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.owner = owner
        self.name = name

    def __repr__(self) -> str:
        return f"RealObject(name={self.name!r})"
