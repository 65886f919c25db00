"""
Tagged "value or nothing" holder used by the generator engine.

An Alternative is either empty or holds exactly one value. It never
allocates anything beyond the value itself and never hands out the
value while empty: dereferencing an empty holder raises
EmptyAccessError instead.
"""

from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class EmptyAccessError(ValueError):
    """Raised when the value of an empty Alternative is accessed."""
    pass


class _Empty:
    """Marker stored while an Alternative holds nothing."""

    def __repr__(self):
        return "<empty>"


_EMPTY = _Empty()


class Alternative(Generic[T]):
    """
    Holds either a value of type T or nothing.

    Alternative() is empty, Alternative(value) holds value. None is a
    valid value, so use has_value (or truthiness) to tell the two
    states apart rather than comparing get() with None.
    """

    def __init__(self, *value):
        if len(value) > 1:
            raise TypeError(f"Alternative takes at most one value ({len(value)} given)")
        self._value = value[0] if value else _EMPTY

    # --------- construction helpers ----------
    @classmethod
    def empty(cls) -> "Alternative[T]":
        return cls()

    @classmethod
    def of(cls, factory: Callable[..., T], *args, **kwargs) -> "Alternative[T]":
        """Build the held value in place from factory(*args, **kwargs)."""
        alt = cls()
        alt.emplace(factory, *args, **kwargs)
        return alt

    # --------- state ----------
    @property
    def has_value(self) -> bool:
        return self._value is not _EMPTY

    def __bool__(self):
        return self.has_value

    # --------- access ----------
    def get(self) -> Optional[T]:
        """Return the value, or None when empty. Never raises."""
        return None if self._value is _EMPTY else self._value

    def value(self) -> T:
        """Return the value; raises EmptyAccessError when empty."""
        if self._value is _EMPTY:
            raise EmptyAccessError("Dereferencing an empty alternative")
        return self._value

    def value_or(self, default: Any) -> Any:
        return default if self._value is _EMPTY else self._value

    # --------- mutation ----------
    def set(self, value: T) -> None:
        self.reset()
        self._value = value

    def emplace(self, factory: Callable[..., T], *args, **kwargs) -> None:
        # Old content goes first even if the factory then fails.
        self.reset()
        self._value = factory(*args, **kwargs)

    def reset(self) -> None:
        self._value = _EMPTY

    def assign(self, other: "Alternative[T]") -> "Alternative[T]":
        """Copy other's tag and value into this holder."""
        if other is self:
            return self
        if other.has_value:
            self.set(other._value)
        else:
            self.reset()
        return self

    def take(self) -> "Alternative[T]":
        """Move the content out into a new holder, leaving this one empty."""
        moved = Alternative()
        moved._value, self._value = self._value, _EMPTY
        return moved

    def copy(self) -> "Alternative[T]":
        return Alternative(self._value) if self.has_value else Alternative()

    __copy__ = copy

    # --------- comparison / display ----------
    def __eq__(self, other):
        if not isinstance(other, Alternative):
            return NotImplemented
        if not self.has_value or not other.has_value:
            return self.has_value == other.has_value
        return self._value == other._value

    def __repr__(self):
        return f"Alternative({self._value!r})" if self.has_value else "Alternative()"
