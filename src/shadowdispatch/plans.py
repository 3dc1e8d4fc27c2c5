"""Resolved dispatch decisions."""

import inspect
from collections.abc import Sequence

from shadowdispatch.errors import DispatchError
from shadowdispatch.instrumentation import shadow_of


class Plan:
    """What to run for one call-site signature.

    Plans are immutable and shared by every thread hitting the same signature.
    A missing plan (``None``) means the real code runs unchanged.
    """

    __slots__ = ()

    def run(self, instance: object, params: Sequence[object]) -> object:
        """Execute the plan.

        :param instance: Real receiver, or ``None`` for static calls.
        :param params: Call arguments.
        :returns: Value to hand back to the call site.
        """
        raise NotImplementedError


class NoOpPlan(Plan):
    """Plan that does nothing and returns ``None``."""

    __slots__ = ()

    def run(self, instance: object, params: Sequence[object]) -> object:
        _ = instance
        _ = params
        return None

    def __repr__(self) -> str:
        return "DO_NOTHING_PLAN"


DO_NOTHING_PLAN: Plan = NoOpPlan()


def _call_signature_of(member: object) -> inspect.Signature | None:
    """Return the signature a call site binds against, without the bound first parameter.

    :param member: Raw member from the owner's ``__dict__``.
    :returns: Call signature, or ``None`` when the member has none to inspect.
    """
    function: object = member
    skip: int = 1
    if isinstance(member, staticmethod) is True:
        function = member.__func__  # type: ignore[union-attr]
        skip = 0
    elif isinstance(member, classmethod) is True:
        function = member.__func__  # type: ignore[union-attr]
    try:
        signature: inspect.Signature = inspect.signature(function)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    parameters: list[inspect.Parameter] = list(signature.parameters.values())
    return signature.replace(parameters=parameters[skip:])


class ShadowMethodPlan(Plan):
    """Plan that invokes a member of a shadow class.

    The member and its call signature are captured once, when the plan is
    resolved; attributes cannot be reassigned afterwards.
    """

    __slots__ = ("owner", "method_name", "_member", "_call_signature")

    owner: type
    method_name: str
    _member: object
    _call_signature: inspect.Signature | None

    def __init__(self, owner: type, method_name: str) -> None:
        """Bind the plan to the member ``owner`` declares as ``method_name``.

        :param owner: Shadow class whose own ``__dict__`` holds the member.
        :param method_name: Member name.
        """
        member: object = owner.__dict__[method_name]
        object.__setattr__(self, "owner", owner)
        object.__setattr__(self, "method_name", method_name)
        object.__setattr__(self, "_member", member)
        object.__setattr__(self, "_call_signature", _call_signature_of(member))

    def __setattr__(self, attr_name: str, value: object) -> None:
        raise AttributeError("ShadowMethodPlan is immutable")

    def __delattr__(self, attr_name: str) -> None:
        raise AttributeError("ShadowMethodPlan is immutable")

    @property
    def is_static(self) -> bool:
        """Report whether the member can run without a shadow instance."""
        return isinstance(self._member, (staticmethod, classmethod))

    def run(self, instance: object, params: Sequence[object]) -> object:
        """Invoke the shadow member.

        Exceptions raised by the shadow member propagate unchanged.

        :param instance: Real receiver, or ``None`` for static calls.
        :param params: Call arguments.
        :returns: The shadow member's return value.
        :raises DispatchError: If the member cannot be applied to this call.
        """
        if instance is None:
            if self.is_static is False:
                raise DispatchError(f"attempted to invoke {self!r} without an instance, but it is not static")
            target: object = self._member.__get__(None, self.owner)  # type: ignore[attr-defined]
        else:
            shadow: object = shadow_of(instance)
            if isinstance(shadow, self.owner) is False:
                shadow_type_name: str = type(shadow).__qualname__
                raise DispatchError(
                    f"attempted to invoke {self!r} on instance of {shadow_type_name}, "
                    + f"but {shadow_type_name} doesn't extend {self.owner.__qualname__}"
                )
            target = self._member.__get__(shadow, type(shadow))  # type: ignore[attr-defined]

        if self._call_signature is not None:
            try:
                self._call_signature.bind(*params)
            except TypeError as exc:
                raise DispatchError(f"attempted to invoke {self!r} with {len(params)} arguments: {exc}") from exc
        return target(*params)  # type: ignore[operator]

    def __repr__(self) -> str:
        return f"ShadowMethodPlan({self.owner.__module__}:{self.owner.__qualname__}.{self.method_name})"
