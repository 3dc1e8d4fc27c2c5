"""Show how routed call sites consult the shadow dispatch engine."""

import argparse
import logging

from shadowdispatch import RealObject
from shadowdispatch import ShadowMap
from shadowdispatch import ShadowWrangler
from shadowdispatch import WranglerSettings
from shadowdispatch import attach_shadow
from shadowdispatch import implements
from shadowdispatch.loader import type_name


class Clock:
    """Framework class that would need a device to run."""

    def now_millis(self) -> int:
        raise RuntimeError("no hardware clock outside a device")

    def time_zone(self) -> str:
        raise RuntimeError("no time zone database outside a device")


@implements(Clock)
class ShadowClock:
    """Fake clock advancing by a fixed step."""

    real_clock = RealObject()
    ticks: int

    def __init__(self) -> None:
        self.ticks = 0

    def now_millis(self) -> int:
        self.ticks += 1
        return self.ticks * 1000


def _call(wrangler: ShadowWrangler, instance: object, method_name: str) -> str:
    """Play the part of an instrumented method body.

    :param wrangler: Engine answering the call site.
    :param instance: Real receiver.
    :param method_name: Method being called.
    :returns: Printable outcome.
    """
    cls: type = type(instance)
    signature: str = f"{type_name(cls)}.{method_name}()"
    plan = wrangler.method_invoked(signature, False, cls)
    if plan is None:
        try:
            return f"real -> {getattr(instance, method_name)()!r}"
        except RuntimeError as exc:
            return f"real raised -> {exc}"
    return f"plan {plan!r} -> {plan.run(instance, [])!r}"


def _parse_args() -> argparse.Namespace:
    """Parse command line flags.

    :returns: Parsed arguments.
    """
    parser = argparse.ArgumentParser(description="Route calls on a fake framework class through shadows.")
    parser.add_argument("--lenient", action="store_true", help="fall through to real code for unshadowed calls")
    parser.add_argument("--debug", action="store_true", help="log every resolution decision")
    return parser.parse_args()


def main() -> int:
    """Run the demo.

    :returns: Process exit code.
    """
    args: argparse.Namespace = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.debug is True else logging.WARNING)

    shadow_map: ShadowMap = ShadowMap()
    shadow_map.add_shadow_class(ShadowClock)
    settings: WranglerSettings = WranglerSettings(debug=args.debug, strict=args.lenient is False)
    wrangler: ShadowWrangler = ShadowWrangler(shadow_map, settings=settings)

    clock: Clock = Clock()
    attach_shadow(clock, wrangler.initializing(clock))

    print("Shadow Dispatch Demo")
    print(f"strict={settings.strict} debug={settings.debug}")
    print(f"  now_millis: {_call(wrangler, clock, 'now_millis')}")
    print(f"  now_millis: {_call(wrangler, clock, 'now_millis')}")
    print(f"  time_zone:  {_call(wrangler, clock, 'time_zone')}")
    print(f"  __repr__:   {_call(wrangler, clock, '__repr__')}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
