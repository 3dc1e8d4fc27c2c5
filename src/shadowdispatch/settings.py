"""Runtime configuration for the shadow dispatch engine."""

import os
from collections.abc import Mapping

DEBUG_ENV_VAR: str = "SHADOWDISPATCH_DEBUG"
STRICT_ENV_VAR: str = "SHADOWDISPATCH_STRICT"
PLAN_CACHE_SIZE_ENV_VAR: str = "SHADOWDISPATCH_PLAN_CACHE_SIZE"
STRIP_STACK_TRACES_ENV_VAR: str = "SHADOWDISPATCH_STRIP_STACK_TRACES"
DEFAULT_PLAN_CACHE_SIZE: int = 500

_TRUE_VALUES: frozenset[str] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: frozenset[str] = frozenset({"0", "false", "no", "off", ""})


def _parse_flag(name: str, raw_value: str | None, default: bool) -> bool:
    """Parse one boolean environment flag.

    :param name: Environment variable name, used in error messages.
    :param raw_value: Raw variable value or ``None`` when unset.
    :param default: Value used when the variable is unset.
    :returns: Parsed flag.
    :raises ValueError: If the value is not a recognized boolean spelling.
    """
    if raw_value is None:
        return default
    normalized: str = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw_value!r}")


def _parse_cache_size(raw_value: str | None) -> int:
    """Parse the plan cache capacity.

    :param raw_value: Raw variable value or ``None`` when unset.
    :returns: Positive cache capacity.
    :raises ValueError: If the value is not a positive integer.
    """
    if raw_value is None:
        return DEFAULT_PLAN_CACHE_SIZE
    try:
        size: int = int(raw_value.strip())
    except ValueError:
        raise ValueError(f"{PLAN_CACHE_SIZE_ENV_VAR} must be an integer, got {raw_value!r}") from None
    if size < 1:
        raise ValueError(f"{PLAN_CACHE_SIZE_ENV_VAR} must be positive, got {size}")
    return size


class WranglerSettings:
    """Flags controlling resolution policy and diagnostics."""

    debug: bool
    strict: bool
    plan_cache_size: int
    strip_shadow_stack_traces: bool

    def __init__(
        self,
        debug: bool = False,
        strict: bool = True,
        plan_cache_size: int = DEFAULT_PLAN_CACHE_SIZE,
        strip_shadow_stack_traces: bool = True,
    ) -> None:
        """Initialize settings.

        :param debug: Log every resolution decision when ``True``.
        :param strict: Unconfigured or mismatched calls become no-ops when ``True``
            and fall through to real code when ``False``.
        :param plan_cache_size: Maximum number of cached plans.
        :param strip_shadow_stack_traces: Sanitize stack traces when ``True``.
        :raises ValueError: If ``plan_cache_size`` is not positive.
        """
        if plan_cache_size < 1:
            raise ValueError("plan_cache_size must be positive")
        self.debug = debug
        self.strict = strict
        self.plan_cache_size = plan_cache_size
        self.strip_shadow_stack_traces = strip_shadow_stack_traces

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "WranglerSettings":
        """Build settings from environment variables.

        :param environ: Mapping to read from. Defaults to ``os.environ``.
        :returns: Parsed settings.
        :raises ValueError: If any variable holds an invalid value.
        """
        source: Mapping[str, str] = os.environ if environ is None else environ
        return cls(
            debug=_parse_flag(DEBUG_ENV_VAR, source.get(DEBUG_ENV_VAR), False),
            strict=_parse_flag(STRICT_ENV_VAR, source.get(STRICT_ENV_VAR), True),
            plan_cache_size=_parse_cache_size(source.get(PLAN_CACHE_SIZE_ENV_VAR)),
            strip_shadow_stack_traces=_parse_flag(
                STRIP_STACK_TRACES_ENV_VAR,
                source.get(STRIP_STACK_TRACES_ENV_VAR),
                True,
            ),
        )

    def __repr__(self) -> str:
        return (
            f"WranglerSettings(debug={self.debug!r}, strict={self.strict!r}, "
            + f"plan_cache_size={self.plan_cache_size!r}, "
            + f"strip_shadow_stack_traces={self.strip_shadow_stack_traces!r})"
        )
