"""Creation of shadow instances for real instances."""

import inspect
import logging
import types
import typing
from collections.abc import Iterator

from shadowdispatch.errors import ShadowCreationError
from shadowdispatch.loader import TypeLoader
from shadowdispatch.loader import annotation_name
from shadowdispatch.loader import signature_of
from shadowdispatch.loader import type_name
from shadowdispatch.meta_shadow import MetaShadowCache
from shadowdispatch.shadow_map import ShadowMap

logger = logging.getLogger(__name__)

_POSITIONAL_KINDS: tuple[inspect._ParameterKind, ...] = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)
_VARIADIC_KINDS: tuple[inspect._ParameterKind, ...] = (
    inspect.Parameter.VAR_POSITIONAL,
    inspect.Parameter.VAR_KEYWORD,
)


def iter_ancestors(real_class: type) -> Iterator[type]:
    """Yield ``real_class`` and its ancestors, most derived first.

    :param real_class: Class of the real instance.
    :yields: Each class in method resolution order.
    """
    yield from real_class.__mro__


def _constructor_parameter_names(shadow_class: type) -> frozenset[str]:
    """Return the type names the shadow constructor accepts the real instance as.

    A shadow constructor qualifies when it has exactly one required positional
    parameter after ``self`` and that parameter is annotated. A union annotation
    accepts each of its members.

    :param shadow_class: Shadow class.
    :returns: Accepted type names, empty when only the no-argument form exists.
    """
    init: object = None
    for candidate in shadow_class.__mro__:
        if "__init__" in candidate.__dict__:
            init = candidate.__dict__["__init__"]
            break
    if init is None or init is object.__dict__["__init__"]:
        return frozenset()
    try:
        signature: inspect.Signature = signature_of(init)
    except (TypeError, ValueError):
        return frozenset()

    parameters: list[inspect.Parameter] = list(signature.parameters.values())[1:]
    required: list[inspect.Parameter] = [
        p for p in parameters if p.default is inspect.Parameter.empty and p.kind not in _VARIADIC_KINDS
    ]
    if len(required) != 1 or required[0].kind not in _POSITIONAL_KINDS:
        return frozenset()
    annotation: object = required[0].annotation
    if annotation is inspect.Parameter.empty:
        return frozenset()
    if isinstance(annotation, types.UnionType) is True or typing.get_origin(annotation) is typing.Union:
        return frozenset(annotation_name(member) for member in typing.get_args(annotation))
    return frozenset({annotation_name(annotation)})


def find_constructor_type(real_class: type, shadow_class: type) -> type | None:
    """Find the ancestor of ``real_class`` that the shadow constructor accepts.

    :param real_class: Class of the real instance.
    :param shadow_class: Shadow class.
    :returns: First matching ancestor, or ``None`` to use the no-argument constructor.
    """
    accepted_names: frozenset[str] = _constructor_parameter_names(shadow_class)
    if len(accepted_names) == 0:
        return None
    for ancestor in iter_ancestors(real_class):
        if type_name(ancestor) in accepted_names:
            return ancestor
    return None


class ShadowFactory:
    """Build the shadow attached to each real instance."""

    _shadow_map: ShadowMap
    _loader: TypeLoader
    _meta_shadows: MetaShadowCache
    debug: bool

    def __init__(
        self,
        shadow_map: ShadowMap,
        loader: TypeLoader,
        meta_shadows: MetaShadowCache,
        debug: bool = False,
    ) -> None:
        """Initialize a factory.

        :param shadow_map: Shadow configuration registry.
        :param loader: Loader for shadow classes.
        :param meta_shadows: Back-reference field cache.
        :param debug: Log each creation when ``True``.
        """
        self._shadow_map = shadow_map
        self._loader = loader
        self._meta_shadows = meta_shadows
        self.debug = debug

    def create_shadow_for(self, instance: object) -> object:
        """Create and wire the shadow for ``instance``.

        Instances of unshadowed classes get a bare ``object()`` placeholder.

        :param instance: Real instance under construction.
        :returns: Shadow instance.
        :raises ConfigurationError: If the shadow class cannot be loaded.
        :raises ShadowCreationError: If the shadow class cannot be instantiated.
        """
        real_class: type = type(instance)
        real_class_name: str = type_name(real_class)
        shadow_class_name: str | None = self._shadow_map.get_shadow_class_name(real_class_name)
        if shadow_class_name is None:
            return object()

        if self.debug is True:
            logger.debug("creating new %s as shadow for %s", shadow_class_name, real_class_name)

        shadow_class: type = self._loader.load(shadow_class_name)
        constructor_type: type | None = find_constructor_type(real_class, shadow_class)
        try:
            if constructor_type is not None:
                shadow: object = shadow_class(instance)
            else:
                shadow = shadow_class()
        except Exception as exc:
            raise ShadowCreationError(shadow_class_name, real_class_name) from exc

        self.inject_real_object(shadow, instance)
        return shadow

    def inject_real_object(self, shadow: object, instance: object) -> None:
        """Write ``instance`` into every ``RealObject`` field of ``shadow``.

        :param shadow: Shadow instance.
        :param instance: Real instance.
        :raises ShadowCreationError: If a field cannot be written.
        """
        for location in self._meta_shadows.fields_for(type(shadow)):
            try:
                location.write(shadow, instance)
            except AttributeError as exc:
                raise ShadowCreationError(type_name(type(shadow)), type_name(type(instance))) from exc
