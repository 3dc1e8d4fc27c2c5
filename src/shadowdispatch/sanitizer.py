"""Removal of dispatch machinery from error stack traces."""

import types
from collections.abc import Sequence
from typing import TypeVar

from shadowdispatch.instrumentation import ROUTING_PREFIX
from shadowdispatch.instrumentation import direct_method_name

STACK_FRAMES_ATTRIBUTE: str = "__stack_frames__"
MACHINERY_CLASS_NAMES: frozenset[str] = frozenset({"shadowdispatch.plans.ShadowMethodPlan"})
REFLECTIVE_MODULES: tuple[str, ...] = ("functools", "inspect", "importlib._bootstrap", "importlib._bootstrap_external")

ErrorT = TypeVar("ErrorT", bound=BaseException)


class StackFrame:
    """One entry of an error's stack trace."""

    __slots__ = ("class_name", "method_name", "file_name", "line_number")

    class_name: str
    method_name: str
    file_name: str | None
    line_number: int

    def __init__(self, class_name: str, method_name: str, file_name: str | None, line_number: int) -> None:
        """Initialize a frame record.

        :param class_name: Dotted module path plus enclosing class, if any.
        :param method_name: Function or method name.
        :param file_name: Source file, when known.
        :param line_number: Line number; negative when unknown.
        """
        self.class_name = class_name
        self.method_name = method_name
        self.file_name = file_name
        self.line_number = line_number

    @classmethod
    def from_frame(cls, frame: types.FrameType, line_number: int | None) -> "StackFrame":
        """Describe a live interpreter frame.

        :param frame: Frame object.
        :param line_number: Line being executed, when known.
        :returns: Frame record.
        """
        code: types.CodeType = frame.f_code
        module_name: str = str(frame.f_globals.get("__name__", "<unknown>"))
        qualname: str = code.co_qualname
        owner_qualname, separator, _ = qualname.rpartition(".")
        class_name: str = module_name
        if len(separator) > 0:
            class_name = f"{module_name}.{owner_qualname}"
        return cls(class_name, code.co_name, code.co_filename, line_number if line_number is not None else -1)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StackFrame) is False:
            return NotImplemented
        assert isinstance(other, StackFrame)
        return (
            self.class_name == other.class_name
            and self.method_name == other.method_name
            and self.file_name == other.file_name
            and self.line_number == other.line_number
        )

    def __hash__(self) -> int:
        return hash((self.class_name, self.method_name, self.file_name, self.line_number))

    def __repr__(self) -> str:
        return f"StackFrame({self.class_name}.{self.method_name} at {self.file_name}:{self.line_number})"


def get_stack_trace(error: BaseException) -> list[StackFrame]:
    """Return the stack trace recorded for ``error``.

    A trace stored by :func:`set_stack_trace` wins; otherwise it is read from
    ``error.__traceback__``, outermost frame first.

    :param error: Error to inspect.
    :returns: Frame records.
    """
    stored: object = getattr(error, STACK_FRAMES_ATTRIBUTE, None)
    if stored is not None:
        return list(stored)  # type: ignore[call-overload]
    frames: list[StackFrame] = []
    traceback_entry: types.TracebackType | None = error.__traceback__
    while traceback_entry is not None:
        frames.append(StackFrame.from_frame(traceback_entry.tb_frame, traceback_entry.tb_lineno))
        traceback_entry = traceback_entry.tb_next
    return frames


def set_stack_trace(error: BaseException, frames: Sequence[StackFrame]) -> None:
    """Record ``frames`` as the stack trace of ``error``.

    :param error: Error to update.
    :param frames: Frame records.
    """
    setattr(error, STACK_FRAMES_ATTRIBUTE, tuple(frames))


def _is_machinery(class_name: str) -> bool:
    return class_name in MACHINERY_CLASS_NAMES


def _is_reflective(class_name: str) -> bool:
    for module_name in REFLECTIVE_MODULES:
        if class_name == module_name or class_name.startswith(f"{module_name}.") is True:
            return True
    return False


class StackTraceSanitizer:
    """Make dispatch machinery invisible in error stack traces."""

    enabled: bool
    routing_prefix: str

    def __init__(self, enabled: bool = True, routing_prefix: str = ROUTING_PREFIX) -> None:
        """Initialize a sanitizer.

        :param enabled: Leave errors untouched when ``False``.
        :param routing_prefix: Prefix marking routed method names.
        """
        self.enabled = enabled
        self.routing_prefix = routing_prefix

    def sanitize(self, error: ErrorT) -> ErrorT:
        """Filter the stack trace of ``error`` in place.

        :param error: Error to clean up.
        :returns: The same error object.
        """
        if self.enabled is False:
            return error
        set_stack_trace(error, self.filter_frames(get_stack_trace(error)))
        self._prune_traceback(error)
        return error

    def filter_frames(self, frames: Sequence[StackFrame]) -> list[StackFrame]:
        """Drop machinery frames and restore routed method names.

        :param frames: Frame records, outermost first.
        :returns: Filtered frame records.
        """
        kept: list[StackFrame] = []
        previous: StackFrame | None = None
        for frame in frames:
            if (
                previous is not None
                and frame.method_name == previous.method_name
                and frame.class_name == previous.class_name
                and frame.file_name is not None
                and frame.file_name == previous.file_name
                and frame.line_number < 0
            ):
                continue
            if _is_machinery(frame.class_name) is True:
                continue
            if frame.method_name.startswith(self.routing_prefix) is True:
                frame = StackFrame(
                    frame.class_name,
                    self.original_method_name(frame.class_name, frame.method_name),
                    frame.file_name,
                    frame.line_number,
                )
            if _is_reflective(frame.class_name) is True:
                continue
            kept.append(frame)
            previous = frame
        return kept

    def original_method_name(self, class_name: str, method_name: str) -> str:
        """Strip the routing prefix from ``method_name``.

        The per-class prefix built by the instrumentation is tried first, then
        the bare routing prefix.

        :param class_name: Class the frame belongs to.
        :param method_name: Routed method name.
        :returns: Original method name.
        """
        full_prefix: str = direct_method_name(class_name, "", self.routing_prefix)
        if method_name.startswith(full_prefix) is True:
            return method_name[len(full_prefix) :]
        if method_name.startswith(self.routing_prefix) is True:
            return method_name[len(self.routing_prefix) :]
        return method_name

    def _prune_traceback(self, error: BaseException) -> None:
        """Rebuild ``error.__traceback__`` without machinery or reflective frames.

        :param error: Error to update.
        """
        entries: list[types.TracebackType] = []
        dropped: int = 0
        traceback_entry: types.TracebackType | None = error.__traceback__
        while traceback_entry is not None:
            frame: StackFrame = StackFrame.from_frame(traceback_entry.tb_frame, traceback_entry.tb_lineno)
            if _is_machinery(frame.class_name) is False and _is_reflective(frame.class_name) is False:
                entries.append(traceback_entry)
            else:
                dropped += 1
            traceback_entry = traceback_entry.tb_next
        if dropped == 0:
            return

        rebuilt: types.TracebackType | None = None
        for entry in reversed(entries):
            rebuilt = types.TracebackType(rebuilt, entry.tb_frame, entry.tb_lasti, entry.tb_lineno)
        error.__traceback__ = rebuilt
