"""Name-based type loading."""

import builtins
import importlib
import inspect
import threading

from shadowdispatch.errors import ConfigurationError

BUILTINS_MODULE: str = "builtins"


def type_name(type_object: type) -> str:
    """Return the fully-qualified name used to key shadow configuration.

    Builtins are named by their bare qualname, everything else uses the
    ``module.path:Qual.Name`` format.

    :param type_object: Type to name.
    :returns: Fully-qualified type name.
    """
    module_name: str = type_object.__module__
    if module_name == BUILTINS_MODULE:
        return type_object.__qualname__
    return f"{module_name}:{type_object.__qualname__}"


def annotation_name(annotation: object) -> str:
    """Normalize a parameter annotation into a comparable type name.

    :param annotation: Annotation object or string.
    :returns: Type name in the same format as :func:`type_name`.
    """
    if isinstance(annotation, str) is True:
        return annotation.strip()
    if isinstance(annotation, type) is True:
        return type_name(annotation)
    return repr(annotation)


def signature_of(function: object) -> inspect.Signature:
    """Return a signature with string annotations evaluated where possible.

    :param function: Callable to inspect.
    :returns: Signature of ``function``.
    :raises TypeError: If ``function`` is not callable.
    :raises ValueError: If no signature can be provided.
    """
    try:
        return inspect.signature(function, eval_str=True)  # type: ignore[arg-type]
    except (NameError, AttributeError, SyntaxError):
        return inspect.signature(function)  # type: ignore[arg-type]


def split_type_name(name: str) -> tuple[str, str]:
    """Split a type name into ``(module_name, qualname)``.

    :param name: Fully-qualified type name.
    :returns: Module and qualname parts.
    :raises ValueError: If the name is malformed.
    """
    parts: list[str] = name.split(":")
    if len(parts) == 1:
        return BUILTINS_MODULE, parts[0].strip()
    if len(parts) != 2:
        raise ValueError(f"Type name must use module.path:Qual.Name format, got {name!r}")
    module_name: str = parts[0].strip()
    qualname: str = parts[1].strip()
    if len(module_name) == 0:
        raise ValueError(f"Module path in type name cannot be empty: {name!r}")
    if len(qualname) == 0:
        raise ValueError(f"Qualified name in type name cannot be empty: {name!r}")
    return module_name, qualname


def enclosing_type_names(name: str) -> list[str]:
    """List the enclosing types of a nested type, innermost first.

    :param name: Fully-qualified type name.
    :returns: Names of the enclosing types, or an empty list for top-level types.
    """
    module_name, qualname = split_type_name(name)
    segments: list[str] = qualname.split(".")
    enclosing: list[str] = []
    for end in range(len(segments) - 1, 0, -1):
        outer_qualname: str = ".".join(segments[:end])
        if module_name == BUILTINS_MODULE:
            enclosing.append(outer_qualname)
        else:
            enclosing.append(f"{module_name}:{outer_qualname}")
    return enclosing


class TypeLoader:
    """Load types by fully-qualified name and remember the results."""

    _lock: threading.Lock
    _loaded: dict[str, type]

    def __init__(self) -> None:
        """Initialize an empty loader."""
        self._lock = threading.Lock()
        self._loaded = {}

    def load(self, name: str) -> type:
        """Load one type.

        :param name: Fully-qualified type name.
        :returns: The loaded type.
        :raises ConfigurationError: If the name is malformed, its module cannot be
            imported, or it does not resolve to a type.
        """
        with self._lock:
            cached: type | None = self._loaded.get(name)
        if cached is not None:
            return cached

        try:
            module_name, qualname = split_type_name(name)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        if module_name == BUILTINS_MODULE:
            resolved: object = getattr(builtins, qualname, None)
        else:
            try:
                resolved = importlib.import_module(module_name)
            except ImportError as exc:
                raise ConfigurationError(f"Could not import module {module_name!r} for {name!r}") from exc
            for segment in qualname.split("."):
                try:
                    resolved = getattr(resolved, segment)
                except AttributeError as exc:
                    raise ConfigurationError(f"Could not find {qualname!r} in module {module_name!r}") from exc

        if isinstance(resolved, type) is False:
            raise ConfigurationError(f"{name!r} does not name a class")

        with self._lock:
            self._loaded[name] = resolved
        return resolved
