"""Hard-coded replacements for a few builtin container internals."""

from collections.abc import Callable
from collections.abc import Mapping

from shadowdispatch.profile import InvocationProfile

InterceptionHandler = Callable[[object], object]


def _do_nothing(value: object) -> object:
    _ = value
    return None


DO_NOTHING_HANDLER: InterceptionHandler = _do_nothing


def _eldest_entry(value: object) -> object:
    """Return the oldest ``(key, value)`` pair of an insertion-ordered mapping.

    :param value: Mapping receiving the call.
    :returns: Oldest entry, or ``None`` for an empty mapping.
    :raises TypeError: If ``value`` is not a mapping.
    """
    if isinstance(value, Mapping) is False:
        raise TypeError(f"eldest() needs a mapping, got {type(value).__qualname__}")
    assert isinstance(value, Mapping)
    return next(iter(value.items()), None)


_HANDLERS: dict[tuple[str, str], InterceptionHandler] = {
    ("collections:OrderedDict", "eldest"): _eldest_entry,
    ("dict", "eldest"): _eldest_entry,
}


def handler_for(profile: InvocationProfile) -> InterceptionHandler:
    """Return the replacement behavior for an intercepted call.

    :param profile: Parsed call-site signature.
    :returns: Matching handler, or :data:`DO_NOTHING_HANDLER`.
    """
    return _HANDLERS.get((profile.class_name, profile.method_name), DO_NOTHING_HANDLER)
