"""End-to-end tests for the shadow dispatch engine."""

import logging
import threading
from collections import OrderedDict
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor

import pytest

from shadowdispatch import DO_NOTHING_PLAN
from shadowdispatch import ConfigurationError
from shadowdispatch import DispatchError
from shadowdispatch import Plan
from shadowdispatch import ShadowWrangler
from shadowdispatch import WranglerSettings
from shadowdispatch import attach_shadow
from shadowdispatch.loader import type_name
from shadowdispatch.sanitizer import get_stack_trace
from tests.fixtures.framework import STATIC_INIT_LOG
from tests.fixtures.framework import BadStatic
from tests.fixtures.framework import Camera
from tests.fixtures.framework import Counter
from tests.fixtures.framework import EditText
from tests.fixtures.framework import Settings
from tests.fixtures.framework import TextView
from tests.fixtures.framework import Unshadowed
from tests.fixtures.framework import View
from tests.fixtures.shadows import ShadowRaisedError
from tests.fixtures.shadows import ShadowView
from tests.fixtures.shadows import build_shadow_map


@pytest.fixture(autouse=True)
def _reset_static_init_log() -> Iterator[None]:
    """Keep static initializer records isolated per test.

    :yields: Control to the active test.
    """
    STATIC_INIT_LOG.clear()
    yield
    STATIC_INIT_LOG.clear()


def _wrangler(**overrides: bool) -> ShadowWrangler:
    """Build an engine over the fixture shadow map with default settings.

    :param overrides: ``debug``/``strict`` overrides.
    :returns: Engine.
    """
    return ShadowWrangler(build_shadow_map(), settings=WranglerSettings(), **overrides)


def _construct(wrangler: ShadowWrangler, instance: object) -> object:
    """Do what an instrumented constructor does: create and attach the shadow.

    :param wrangler: Engine.
    :param instance: Real instance.
    :returns: Same instance.
    """
    attach_shadow(instance, wrangler.initializing(instance))
    return instance


def _signature(cls: type, method: str, *params: str) -> str:
    return f"{type_name(cls)}.{method}({', '.join(params)})"


def test_shadowed_call_runs_against_attached_shadow() -> None:
    wrangler: ShadowWrangler = _wrangler()
    view = _construct(wrangler, View("main"))

    plan: Plan | None = wrangler.method_invoked(_signature(View, "get_name"), False, View)

    assert plan is not None
    assert plan.run(view, []) == "shadow:main"
    assert isinstance(wrangler.shadow_of(view), ShadowView)


def test_static_plan_runs_without_instance() -> None:
    wrangler: ShadowWrangler = _wrangler()

    plan: Plan | None = wrangler.method_invoked(_signature(View, "inflate", "str"), True, View)

    assert plan is not None
    assert plan.run(None, ["layout"]) == "shadow:layout"


def test_nested_type_shadow_writes_through_back_reference() -> None:
    wrangler: ShadowWrangler = _wrangler()
    size = _construct(wrangler, Camera.Size())

    plan: Plan | None = wrangler.method_invoked(_signature(Camera.Size, "set_size", "int", "int"), False, Camera.Size)

    assert plan is not None
    plan.run(size, [640, 480])
    assert (size.width, size.height) == (640, 480)


def test_shadow_exception_propagates_unwrapped() -> None:
    wrangler: ShadowWrangler = _wrangler()
    view = _construct(wrangler, View())
    plan: Plan | None = wrangler.method_invoked(_signature(View, "invalidate"), False, View)
    assert plan is not None

    with pytest.raises(ShadowRaisedError, match="shadow invalidate") as exc_info:
        plan.run(view, [])

    cleaned = wrangler.strip_stack_trace(exc_info.value)
    class_names: list[str] = [frame.class_name for frame in get_stack_trace(cleaned)]
    assert "shadowdispatch.plans.ShadowMethodPlan" not in class_names
    assert "tests.fixtures.shadows.ShadowView" in class_names


def test_plan_on_foreign_shadow_is_a_dispatch_error() -> None:
    wrangler: ShadowWrangler = _wrangler()
    unshadowed = _construct(wrangler, Unshadowed())
    plan: Plan | None = wrangler.method_invoked(_signature(View, "get_name"), False, View)
    assert plan is not None

    with pytest.raises(DispatchError, match="doesn't extend ShadowView"):
        plan.run(unshadowed, [])


def test_instance_plan_without_instance_is_a_dispatch_error() -> None:
    plan: Plan | None = _wrangler().method_invoked(_signature(View, "get_name"), True, View)
    assert plan is not None

    with pytest.raises(DispatchError, match="not static"):
        plan.run(None, [])


def test_wrong_argument_count_is_a_dispatch_error() -> None:
    wrangler: ShadowWrangler = _wrangler()
    view = _construct(wrangler, View())
    plan: Plan | None = wrangler.method_invoked(_signature(View, "get_name"), False, View)
    assert plan is not None

    with pytest.raises(DispatchError, match="1 arguments"):
        plan.run(view, ["extra"])


def test_no_op_plan_returns_none() -> None:
    wrangler: ShadowWrangler = _wrangler()

    plan: Plan | None = wrangler.method_invoked(_signature(Unshadowed, "work"), False, Unshadowed)

    assert plan is DO_NOTHING_PLAN
    assert plan.run(Unshadowed(), []) is None


def test_strict_override_changes_fallback() -> None:
    plan: Plan | None = _wrangler(strict=False).method_invoked(_signature(TextView, "get_name"), False, TextView)

    assert plan is None


def test_concurrent_method_invoked_shares_one_plan() -> None:
    wrangler: ShadowWrangler = _wrangler()
    barrier: threading.Barrier = threading.Barrier(8)
    signature: str = _signature(View, "get_name")

    def request() -> Plan | None:
        barrier.wait()
        return wrangler.method_invoked(signature, False, View)

    with ThreadPoolExecutor(max_workers=8) as executor:
        plans = [future.result() for future in [executor.submit(request) for _ in range(8)]]

    assert wrangler.plan_cache.resolutions == 1
    assert all(plan is plans[0] for plan in plans)


def test_class_initializing_runs_shadow_static_initializer() -> None:
    _wrangler().class_initializing(Settings)

    assert STATIC_INIT_LOG == ["shadow Settings"]


def test_class_initializing_without_shadow_initializer_runs_real_one() -> None:
    _wrangler().class_initializing(Counter)

    assert STATIC_INIT_LOG == ["real Counter"]


def test_class_initializing_unshadowed_class_is_a_pass_through() -> None:
    _wrangler().class_initializing(Unshadowed)

    assert STATIC_INIT_LOG == []


def test_non_static_shadow_initializer_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="is not static"):
        _wrangler().class_initializing(BadStatic)


def test_intercept_uses_builtin_handler(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="shadowdispatch.engine")
    mapping: OrderedDict[str, int] = OrderedDict(a=1, b=2)

    result: object = _wrangler(debug=True).intercept("collections:OrderedDict.eldest()", mapping, [], OrderedDict)

    assert result == ("a", 1)
    assert "intercepted call to collections:OrderedDict.eldest()" in caplog.text


def test_intercept_unknown_call_does_nothing() -> None:
    assert _wrangler().intercept(_signature(View, "get_name"), View(), [], View) is None


def test_debug_logs_shadow_creation(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="shadowdispatch.factory")

    _wrangler(debug=True).initializing(View())

    assert "creating new tests.fixtures.shadows:ShadowView as shadow for tests.fixtures.framework:View" in caplog.text


def test_shadow_of_none_is_rejected() -> None:
    with pytest.raises(TypeError, match="None"):
        _wrangler().shadow_of(None)


def test_settings_overrides_do_not_mutate_caller_settings() -> None:
    settings: WranglerSettings = WranglerSettings(debug=False, strict=True)

    wrangler: ShadowWrangler = ShadowWrangler(build_shadow_map(), settings=settings, debug=True, strict=False)

    assert wrangler.debug is True
    assert wrangler.strict is False
    assert settings.debug is False
    assert settings.strict is True


def test_routed_constructor_does_not_rebuild_attached_shadow() -> None:
    wrangler: ShadowWrangler = _wrangler()
    edit_text = _construct(wrangler, EditText("edit"))
    shadow = wrangler.shadow_of(edit_text)
    shadow.texts.append("typed")

    plan: Plan | None = wrangler.method_invoked(
        _signature(EditText, "__init__", "tests.fixtures.framework:View"),
        False,
        EditText,
    )
    assert plan is not None
    plan.run(edit_text, [View("other")])

    assert wrangler.shadow_of(edit_text) is shadow
    assert shadow.constructed_with is edit_text
    assert shadow.texts == ["typed"]
