"""Conventions shared with the code that routes calls into the engine.

The instrumentation layer moves each original method body to a routed name
built by :func:`direct_method_name`, stores the shadow returned by
``ShadowWrangler.initializing`` under :data:`SHADOW_ATTRIBUTE`, and moves a
class's static initialization to the routed ``__static_init__`` name.
"""

import re

from shadowdispatch.loader import type_name

ROUTING_PREFIX: str = "__robo_prefix__"
STATIC_INITIALIZER_METHOD_NAME: str = "__static_init__"
CONSTRUCTOR_METHOD_NAME: str = "__constructor__"
REAL_CONSTRUCTOR_METHOD_NAME: str = "__init__"
SHADOW_ATTRIBUTE: str = "__shadow_data__"
_NON_IDENTIFIER_PATTERN: re.Pattern[str] = re.compile(r"[^0-9A-Za-z_]")


def direct_method_name(class_name: str, method_name: str, prefix: str = ROUTING_PREFIX) -> str:
    """Build the routed name holding a method's original body.

    :param class_name: Fully-qualified type name of the method's class.
    :param method_name: Original method name. Pass ``""`` to get the prefix alone.
    :param prefix: Routing prefix.
    :returns: Routed method name.
    """
    mangled_class_name: str = _NON_IDENTIFIER_PATTERN.sub("_", class_name)
    return f"{prefix}{mangled_class_name}_{method_name}"


def shadow_member_name(method_name: str) -> str:
    """Return the shadow member name that answers a routed call to ``method_name``.

    Real constructors are answered by ``__constructor__``; a shadow's own
    ``__init__`` only ever runs when the engine creates the shadow.

    :param method_name: Routed method name.
    :returns: Member name to look up on the shadow class.
    """
    if method_name == REAL_CONSTRUCTOR_METHOD_NAME:
        return CONSTRUCTOR_METHOD_NAME
    return method_name


def attach_shadow(instance: object, shadow: object) -> None:
    """Store ``shadow`` on ``instance`` under the hidden attribute.

    :param instance: Real instance.
    :param shadow: Shadow returned by the engine.
    """
    object.__setattr__(instance, SHADOW_ATTRIBUTE, shadow)


def shadow_of(instance: object) -> object:
    """Return the shadow attached to ``instance``.

    :param instance: Real instance.
    :returns: Attached shadow.
    :raises TypeError: If ``instance`` is ``None``.
    :raises AttributeError: If no shadow was attached.
    """
    if instance is None:
        raise TypeError("can't get a shadow for None")
    try:
        return object.__getattribute__(instance, SHADOW_ATTRIBUTE)
    except AttributeError:
        raise AttributeError(f"{type(instance).__qualname__} instance has no attached shadow") from None


def perform_static_initialization(cls: type) -> None:
    """Run the real static initializer the instrumentation moved aside.

    Classes without one have nothing to run.

    :param cls: Real class.
    """
    routed_name: str = direct_method_name(type_name(cls), STATIC_INITIALIZER_METHOD_NAME)
    initializer: object = cls.__dict__.get(routed_name)
    if initializer is None:
        return
    if isinstance(initializer, (staticmethod, classmethod)) is True:
        initializer = initializer.__get__(None, cls)
    if callable(initializer) is False:
        return
    initializer()
