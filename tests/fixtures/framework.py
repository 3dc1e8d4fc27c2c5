"""Framework classes used as real types in shadow dispatch tests."""

from shadowdispatch.instrumentation import STATIC_INITIALIZER_METHOD_NAME
from shadowdispatch.instrumentation import direct_method_name
from shadowdispatch.loader import type_name

STATIC_INIT_LOG: list[str] = []


class View:
    """Root of a small view hierarchy."""

    name: str

    def __init__(self, name: str = "view") -> None:
        """Initialize the view.

        :param name: View name.
        """
        self.name = name

    def get_name(self) -> str:
        return self.name

    def invalidate(self) -> None:
        raise AssertionError("real invalidate should never run under a shadow")

    @staticmethod
    def inflate(layout: str) -> str:
        return f"real:{layout}"


class TextView(View):
    """View showing text."""

    def set_text(self, text: str) -> None:
        self.name = text


class EditText(TextView):
    """Editable text view; ``View`` is its grandparent."""


class Label(TextView):
    """Text view whose shadow inherits its constructor."""


class Camera:
    """Outer class with a nested value type."""

    class Size:
        """Nested value type shadowed by class name."""

        width: int
        height: int

        def __init__(self, width: int = 0, height: int = 0) -> None:
            self.width = width
            self.height = height


class Window:
    """Outer class configured to call through by default."""

    class LayoutParams:
        """Nested class without its own configuration."""

        def flags(self) -> int:
            return 0

        class Gravity:
            """Doubly nested class."""

            def value(self) -> int:
                return 0


class Widget:
    """Class whose shadow inherits members declared for ``object``."""

    def describe(self) -> str:
        return "real widget"


class Gadget:
    """Class whose shadow inherits from an undeclared helper class."""

    def helper(self) -> str:
        return "real helper"


class Unshadowed:
    """Class with no shadow configuration at all."""

    def work(self) -> int:
        return 1


class Fragile:
    """Class whose shadow constructor raises."""


class Broken:
    """Class configured with a shadow that cannot be loaded."""


class Counter:
    """Class with a routed real static initializer."""


class Settings:
    """Class whose shadow replaces its static initializer."""


class BadStatic:
    """Class whose shadow declares a non-static static initializer."""


def _counter_static_init() -> None:
    STATIC_INIT_LOG.append("real Counter")


def _settings_static_init() -> None:
    STATIC_INIT_LOG.append("real Settings")


setattr(
    Counter,
    direct_method_name(type_name(Counter), STATIC_INITIALIZER_METHOD_NAME),
    staticmethod(_counter_static_init),
)
setattr(
    Settings,
    direct_method_name(type_name(Settings), STATIC_INITIALIZER_METHOD_NAME),
    staticmethod(_settings_static_init),
)
