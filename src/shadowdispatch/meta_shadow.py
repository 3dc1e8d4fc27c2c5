"""Per-shadow-class cache of back-reference fields."""

import threading

from shadowdispatch.declarations import RealObject


class FieldLocation:
    """One attribute of a shadow class that receives the real instance."""

    __slots__ = ("owner", "name")

    owner: type
    name: str

    def __init__(self, owner: type, name: str) -> None:
        self.owner = owner
        self.name = name

    def write(self, shadow: object, real_instance: object) -> None:
        """Store ``real_instance`` on ``shadow`` at this location.

        :param shadow: Shadow instance.
        :param real_instance: Real instance being shadowed.
        """
        setattr(shadow, self.name, real_instance)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldLocation) is False:
            return NotImplemented
        assert isinstance(other, FieldLocation)
        return self.owner is other.owner and self.name == other.name

    def __hash__(self) -> int:
        return hash((id(self.owner), self.name))

    def __repr__(self) -> str:
        return f"FieldLocation({self.owner.__qualname__}.{self.name})"


class MetaShadow:
    """Back-reference fields of one shadow class, most derived first."""

    shadow_class: type
    real_object_fields: tuple[FieldLocation, ...]

    def __init__(self, shadow_class: type) -> None:
        """Collect ``RealObject`` fields across ``shadow_class``'s MRO.

        :param shadow_class: Shadow class to inspect.
        """
        fields: list[FieldLocation] = []
        for candidate in shadow_class.__mro__:
            for attr_name, value in candidate.__dict__.items():
                if isinstance(value, RealObject) is True:
                    location: FieldLocation = FieldLocation(candidate, attr_name)
                    if location not in fields:
                        fields.append(location)
        self.shadow_class = shadow_class
        self.real_object_fields = tuple(fields)


class MetaShadowCache:
    """Process-lifetime cache of :class:`MetaShadow` records keyed by class.

    Entries are never invalidated. The lock is separate from the plan cache's.
    """

    _lock: threading.Lock
    _by_class: dict[type, MetaShadow]

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_class = {}

    def get(self, shadow_class: type) -> MetaShadow:
        """Return the record for ``shadow_class``, computing it once.

        :param shadow_class: Shadow class.
        :returns: Cached record.
        """
        with self._lock:
            meta_shadow: MetaShadow | None = self._by_class.get(shadow_class)
            if meta_shadow is None:
                meta_shadow = MetaShadow(shadow_class)
                self._by_class[shadow_class] = meta_shadow
            return meta_shadow

    def fields_for(self, shadow_class: type) -> tuple[FieldLocation, ...]:
        """Return the back-reference fields of ``shadow_class``.

        :param shadow_class: Shadow class.
        :returns: Field locations, most derived class first.
        """
        return self.get(shadow_class).real_object_fields

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_class)
