"""Call-site signature parsing."""

from shadowdispatch.loader import split_type_name


def _split_params(raw_params: str) -> tuple[str, ...]:
    """Split a comma-separated parameter list, respecting brackets.

    :param raw_params: Text between the signature's parentheses.
    :returns: Stripped parameter type names.
    """
    params: list[str] = []
    depth: int = 0
    current: list[str] = []
    for char in raw_params:
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        if char == "," and depth == 0:
            params.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail: str = "".join(current).strip()
    if len(tail) > 0 or len(params) > 0:
        params.append(tail)
    for param in params:
        if len(param) == 0:
            raise ValueError(f"Empty parameter type in {raw_params!r}")
    return tuple(params)


class InvocationProfile:
    """Parsed form of one call-site signature.

    Signatures look like ``package.module:Outer.Inner.method(int, package.other:Thing)``.
    """

    __slots__ = ("signature", "class_name", "method_name", "param_types", "is_static")

    signature: str
    class_name: str
    method_name: str
    param_types: tuple[str, ...]
    is_static: bool

    def __init__(self, signature: str, is_static: bool) -> None:
        """Parse a signature.

        :param signature: Raw call-site signature.
        :param is_static: Whether the call has no receiver.
        :raises ValueError: If the signature is malformed.
        """
        stripped: str = signature.strip()
        open_index: int = stripped.find("(")
        if open_index < 0 or stripped.endswith(")") is False:
            raise ValueError(f"Signature must end with a parameter list: {signature!r}")
        head: str = stripped[:open_index]
        class_name, separator, method_name = head.rpartition(".")
        if len(separator) == 0 or method_name.isidentifier() is False:
            raise ValueError(f"Signature must name Class.method: {signature!r}")
        split_type_name(class_name)

        self.signature = signature
        self.class_name = class_name
        self.method_name = method_name
        self.param_types = _split_params(stripped[open_index + 1 : -1])
        self.is_static = is_static

    def describe(self) -> str:
        """Return a readable ``Class.method(params)`` rendering."""
        return f"{self.class_name}.{self.method_name}({', '.join(self.param_types)})"

    def __repr__(self) -> str:
        return f"InvocationProfile({self.describe()!r}, is_static={self.is_static!r})"
