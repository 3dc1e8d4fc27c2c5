"""The shadow dispatch engine."""

import logging
from collections.abc import Sequence
from typing import TypeVar

from shadowdispatch import instrumentation
from shadowdispatch.errors import ConfigurationError
from shadowdispatch.factory import ShadowFactory
from shadowdispatch.instrumentation import STATIC_INITIALIZER_METHOD_NAME
from shadowdispatch.interception import InterceptionHandler
from shadowdispatch.interception import handler_for
from shadowdispatch.loader import TypeLoader
from shadowdispatch.loader import type_name
from shadowdispatch.meta_shadow import MetaShadowCache
from shadowdispatch.plan_cache import PlanCache
from shadowdispatch.plans import Plan
from shadowdispatch.profile import InvocationProfile
from shadowdispatch.resolver import PlanResolver
from shadowdispatch.sanitizer import StackTraceSanitizer
from shadowdispatch.settings import WranglerSettings
from shadowdispatch.shadow_map import ShadowConfig
from shadowdispatch.shadow_map import ShadowMap

logger = logging.getLogger(__name__)

ErrorT = TypeVar("ErrorT", bound=BaseException)


class ShadowWrangler:
    """Answer the routed call sites of instrumented classes.

    One wrangler owns its plan cache and back-reference field cache for its
    whole life. Every method is safe to call from many threads.
    """

    settings: WranglerSettings
    shadow_map: ShadowMap
    loader: TypeLoader
    resolver: PlanResolver
    plan_cache: PlanCache
    meta_shadows: MetaShadowCache
    factory: ShadowFactory
    sanitizer: StackTraceSanitizer

    def __init__(
        self,
        shadow_map: ShadowMap,
        settings: WranglerSettings | None = None,
        loader: TypeLoader | None = None,
        debug: bool | None = None,
        strict: bool | None = None,
    ) -> None:
        """Initialize an engine.

        :param shadow_map: Shadow configuration registry.
        :param settings: Engine settings. Defaults to :meth:`WranglerSettings.from_environ`.
        :param loader: Type loader. A fresh one is created when omitted.
        :param debug: Overrides ``settings.debug``.
        :param strict: Overrides ``settings.strict``.
        """
        base_settings: WranglerSettings = settings if settings is not None else WranglerSettings.from_environ()
        resolved_settings: WranglerSettings = WranglerSettings(
            debug=base_settings.debug if debug is None else debug,
            strict=base_settings.strict if strict is None else strict,
            plan_cache_size=base_settings.plan_cache_size,
            strip_shadow_stack_traces=base_settings.strip_shadow_stack_traces,
        )
        self.settings = resolved_settings
        self.shadow_map = shadow_map
        self.loader = loader if loader is not None else TypeLoader()
        self.resolver = PlanResolver(
            shadow_map,
            self.loader,
            debug=resolved_settings.debug,
            strict=resolved_settings.strict,
        )
        self.plan_cache = PlanCache(self.resolver.resolve, capacity=resolved_settings.plan_cache_size)
        self.meta_shadows = MetaShadowCache()
        self.factory = ShadowFactory(shadow_map, self.loader, self.meta_shadows, debug=resolved_settings.debug)
        self.sanitizer = StackTraceSanitizer(enabled=resolved_settings.strip_shadow_stack_traces)

    @property
    def debug(self) -> bool:
        """Return whether resolution decisions are logged."""
        return self.settings.debug

    @property
    def strict(self) -> bool:
        """Return whether unconfigured calls default to no-ops."""
        return self.settings.strict

    def class_initializing(self, cls: type) -> None:
        """Run static initialization for ``cls``.

        A directly configured shadow class defining ``__static_init__`` runs
        instead of the real static initializer.

        :param cls: Real class being initialized.
        :raises ConfigurationError: If the shadow's ``__static_init__`` is not a
            static method, or the shadow class cannot be loaded.
        """
        shadow_class: type | None = self._find_direct_shadow_class(cls)
        if shadow_class is None:
            instrumentation.perform_static_initialization(cls)
            return

        member: object = None
        for candidate in shadow_class.__mro__:
            if STATIC_INITIALIZER_METHOD_NAME in candidate.__dict__:
                member = candidate.__dict__[STATIC_INITIALIZER_METHOD_NAME]
                break
        if member is None:
            instrumentation.perform_static_initialization(cls)
            return
        if isinstance(member, staticmethod) is False:
            raise ConfigurationError(f"{type_name(shadow_class)}.{STATIC_INITIALIZER_METHOD_NAME} is not static")
        member.__get__(None, shadow_class)()  # type: ignore[attr-defined]

    def initializing(self, instance: object) -> object:
        """Create the shadow for a real instance under construction.

        :param instance: Real instance.
        :returns: Shadow to attach to ``instance``.
        """
        return self.factory.create_shadow_for(instance)

    def method_invoked(self, signature: str, is_static: bool, cls: type | None = None) -> Plan | None:
        """Return the cached plan for a call site.

        :param signature: Call-site signature.
        :param is_static: Whether the call has no receiver.
        :param cls: Class owning the call site.
        :returns: Plan, or ``None`` to run the real code.
        """
        return self.plan_cache.get_or_resolve(signature, is_static, cls)

    def intercept(self, signature: str, instance: object, params: Sequence[object], cls: type | None = None) -> object:
        """Fully replace a call with its builtin handler.

        :param signature: Call-site signature.
        :param instance: Receiver, or ``None`` for static calls.
        :param params: Call arguments.
        :param cls: Class owning the call site.
        :returns: Handler result.
        """
        _ = cls
        profile: InvocationProfile = InvocationProfile(signature, instance is None)
        if self.settings.debug is True:
            logger.debug("intercepted call to %s with %d arguments", profile.describe(), len(params))
        handler: InterceptionHandler = self.get_interception_handler(profile)
        return handler(instance)

    def get_interception_handler(self, profile: InvocationProfile) -> InterceptionHandler:
        """Return the builtin handler for ``profile``.

        :param profile: Parsed call-site signature.
        :returns: Replacement behavior.
        """
        return handler_for(profile)

    def strip_stack_trace(self, error: ErrorT) -> ErrorT:
        """Remove dispatch machinery from the stack trace of ``error``.

        :param error: Error to clean up.
        :returns: The same error object.
        """
        return self.sanitizer.sanitize(error)

    def shadow_of(self, instance: object) -> object:
        """Return the shadow attached to ``instance``.

        :param instance: Real instance.
        :returns: Attached shadow.
        :raises TypeError: If ``instance`` is ``None``.
        """
        return instrumentation.shadow_of(instance)

    def _find_direct_shadow_class(self, cls: type) -> type | None:
        """Load the shadow class configured directly for ``cls``.

        :param cls: Real class.
        :returns: Shadow class or ``None``.
        """
        shadow_config: ShadowConfig | None = self.shadow_map.get(type_name(cls))
        if shadow_config is None:
            return None
        return self.loader.load(shadow_config.shadow_class_name)
