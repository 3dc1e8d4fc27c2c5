"""Plan resolution for intercepted call sites."""

import inspect
import logging

from shadowdispatch.declarations import ShadowDescriptor
from shadowdispatch.declarations import descriptor_of
from shadowdispatch.errors import ConfigurationError
from shadowdispatch.instrumentation import CONSTRUCTOR_METHOD_NAME
from shadowdispatch.instrumentation import shadow_member_name
from shadowdispatch.loader import TypeLoader
from shadowdispatch.loader import annotation_name
from shadowdispatch.loader import signature_of
from shadowdispatch.loader import type_name
from shadowdispatch.plans import DO_NOTHING_PLAN
from shadowdispatch.plans import Plan
from shadowdispatch.plans import ShadowMethodPlan
from shadowdispatch.profile import InvocationProfile
from shadowdispatch.shadow_map import ShadowConfig
from shadowdispatch.shadow_map import ShadowMap

logger = logging.getLogger(__name__)

OBJECT_TYPE_NAME: str = type_name(object)
_POSITIONAL_KINDS: tuple[inspect._ParameterKind, ...] = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def _find_owner(shadow_class: type, method_name: str) -> type | None:
    """Find the class in ``shadow_class``'s MRO that declares ``method_name``.

    :param shadow_class: Shadow class to search.
    :param method_name: Member name.
    :returns: Declaring class or ``None``.
    """
    for candidate in shadow_class.__mro__:
        if method_name in candidate.__dict__:
            return candidate
    return None


def _accepts_params(member: object, param_types: tuple[str, ...]) -> bool:
    """Check whether a class member can serve a call with ``param_types``.

    :param member: Raw member from the owner's ``__dict__``.
    :param param_types: Parameter type names from the call site.
    :returns: ``True`` when arity and annotated types line up.
    """
    skip: int = 1
    function: object = member
    if isinstance(member, staticmethod) is True:
        function = member.__func__  # type: ignore[union-attr]
        skip = 0
    elif isinstance(member, classmethod) is True:
        function = member.__func__  # type: ignore[union-attr]
    if callable(function) is False:
        return False

    try:
        signature: inspect.Signature = signature_of(function)
    except (TypeError, ValueError):
        # Some builtin members carry no introspectable signature.
        return True

    parameters: list[inspect.Parameter] = list(signature.parameters.values())[skip:]
    positional: list[inspect.Parameter] = [p for p in parameters if p.kind in _POSITIONAL_KINDS]
    has_var_positional: bool = any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in parameters)
    required_count: int = len([p for p in positional if p.default is inspect.Parameter.empty])

    if len(param_types) < required_count:
        return False
    if has_var_positional is False and len(param_types) > len(positional):
        return False

    for parameter, expected_name in zip(positional, param_types):
        if parameter.annotation is inspect.Parameter.empty:
            continue
        if annotation_name(parameter.annotation) != expected_name:
            return False
    return True


class PlanResolver:
    """Turn call-site signatures into plans using the shadow map."""

    _shadow_map: ShadowMap
    _loader: TypeLoader
    debug: bool
    strict: bool

    def __init__(self, shadow_map: ShadowMap, loader: TypeLoader, debug: bool = False, strict: bool = True) -> None:
        """Initialize a resolver.

        :param shadow_map: Shadow configuration registry.
        :param loader: Loader used for shadow classes and declared targets.
        :param debug: Log every decision when ``True``.
        :param strict: Unconfigured or mismatched calls become no-ops when ``True``.
        """
        self._shadow_map = shadow_map
        self._loader = loader
        self.debug = debug
        self.strict = strict

    def resolve(self, signature: str, is_static: bool, declaring_type: type | None = None) -> Plan | None:
        """Compute the plan for one signature.

        :param signature: Call-site signature.
        :param is_static: Whether the call has no receiver.
        :param declaring_type: Class owning the call site, used for diagnostics only.
        :returns: A plan, or ``None`` to run the real code.
        :raises ConfigurationError: If a configured shadow class or its declared
            target cannot be loaded, or a shadow class lacks ``@implements``.
        """
        _ = declaring_type
        profile: InvocationProfile = InvocationProfile(signature, is_static)
        shadow_config: ShadowConfig | None = self._find_config(profile.class_name)

        if shadow_config is None:
            self._note("no shadow found for %s; %s", signature, self._describe_fallback())
            return self._fallback()

        shadow_class: type = self._loader.load(shadow_config.shadow_class_name)
        member_name: str = shadow_member_name(profile.method_name)
        owner: type | None = _find_owner(shadow_class, member_name)
        if owner is None or _accepts_params(owner.__dict__[member_name], profile.param_types) is False:
            self._note(
                "no shadow for %s found on %s; %s",
                signature,
                shadow_config.shadow_class_name,
                "will call real code" if shadow_config.call_through_by_default is True else self._describe_fallback(),
            )
            if shadow_config.call_through_by_default is True:
                return None
            return self._fallback()

        shadowed_name: str = self._shadowed_class_name(owner)
        if shadowed_name == OBJECT_TYPE_NAME:
            # e.g. __eq__, __hash__, __repr__
            return None

        if shadowed_name != profile.class_name:
            if member_name != CONSTRUCTOR_METHOD_NAME:
                self._note(
                    "method %s.%s is meant to shadow %s, not %s; %s",
                    type_name(owner),
                    member_name,
                    shadowed_name,
                    profile.class_name,
                    self._describe_fallback(),
                )
            return self._fallback()

        plan: ShadowMethodPlan = ShadowMethodPlan(owner, member_name)
        self._note("found shadow for %s; will call %r", signature, plan)
        return plan

    def _find_config(self, class_name: str) -> ShadowConfig | None:
        """Find the config for a type, cascading call-through from enclosing types.

        :param class_name: Real type name.
        :returns: Direct config, synthetic call-through config, or ``None``.
        """
        shadow_config: ShadowConfig | None = self._shadow_map.get(class_name)
        if shadow_config is not None:
            return shadow_config
        for outer_name in self._shadow_map.enclosing_class_names(class_name):
            outer_config: ShadowConfig | None = self._shadow_map.get(outer_name)
            if outer_config is not None and outer_config.call_through_by_default is True:
                return ShadowConfig(OBJECT_TYPE_NAME, True)
        return None

    def _shadowed_class_name(self, owner: type) -> str:
        """Return the name of the real type ``owner`` declares it shadows.

        :param owner: Class declaring the resolved member.
        :returns: Fully-qualified target name.
        :raises ConfigurationError: If ``owner`` has no ``@implements`` or its
            declared class name cannot be loaded.
        """
        if owner is object:
            return OBJECT_TYPE_NAME
        descriptor: ShadowDescriptor | None = descriptor_of(owner)
        if descriptor is None:
            raise ConfigurationError(f"{type_name(owner)} has no @implements declaration")
        if len(descriptor.class_name) == 0:
            return descriptor.target_name
        return type_name(self._loader.load(descriptor.class_name))

    def _fallback(self) -> Plan | None:
        if self.strict is True:
            return DO_NOTHING_PLAN
        return None

    def _describe_fallback(self) -> str:
        if self.strict is True:
            return "will do no-op"
        return "will call real code"

    def _note(self, message: str, *args: object) -> None:
        if self.debug is True:
            logger.debug(message, *args)
