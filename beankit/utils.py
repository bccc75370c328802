from __future__ import annotations

import threading
from typing import Any, Dict, Generic, Iterator, Optional, TypeVar

from .errors import BeanValidationError, PropertyTypeError

T = TypeVar("T")


def _parse_bool(text: str) -> bool:
    lowered = text.lower()
    if lowered not in ("true", "false"):
        raise ValueError(text)
    return lowered == "true"


STRING_CONVERTERS = {bool: _parse_bool, int: int, float: float, complex: complex}

# ---------------- meta-bean registry ----------------

_META_BEANS: Dict[str, Any] = {}
_REGISTRY_LOCK = threading.RLock()


def qualified_name(tp: type) -> str:
    return f"{tp.__module__}.{tp.__qualname__}"


class BeanUtils:
    """Static helpers used by generated code and the runtime."""

    @staticmethod
    def registry_lock() -> threading.RLock:
        return _REGISTRY_LOCK

    @staticmethod
    def register_meta_bean(meta_bean: Any) -> None:
        with _REGISTRY_LOCK:
            name = meta_bean.bean_name()
            existing = _META_BEANS.get(name)
            if existing is not None and existing is not meta_bean and existing.bean_type() is meta_bean.bean_type():
                raise RuntimeError(f"Meta-bean already registered: {name}")
            _META_BEANS[name] = meta_bean

    @staticmethod
    def meta_bean(bean_type: type) -> Any:
        """Finds the meta-bean of a bean class, initializing it on first use."""
        found = _META_BEANS.get(qualified_name(bean_type))
        if found is not None and found.bean_type() is bean_type:
            return found
        meta = getattr(bean_type, "meta", None)
        if meta is None:
            raise LookupError(f"No meta-bean registered for {qualified_name(bean_type)}")
        return meta()

    # ---------------- value helpers ----------------

    @staticmethod
    def dispatch_key(name: str) -> int:
        """Java-compatible 32-bit string hash, used as the property dispatch key."""
        h = 0
        for ch in name:
            h = (31 * h + ord(ch)) & 0xFFFFFFFF
        return h - 0x100000000 if h & 0x80000000 else h

    @staticmethod
    def equal(a: Any, b: Any) -> bool:
        if a is b:
            return True
        if a is None or b is None:
            return False
        return bool(a == b)

    @staticmethod
    def hash_code(value: Any) -> int:
        if value is None:
            return 0
        if isinstance(value, (list, tuple)):
            h = 1
            for item in value:
                h = 31 * h + BeanUtils.hash_code(item)
            return h
        if isinstance(value, (set, frozenset)):
            return sum(BeanUtils.hash_code(item) for item in value)
        if isinstance(value, dict):
            return sum(BeanUtils.hash_code(k) ^ BeanUtils.hash_code(v) for k, v in value.items())
        return hash(value)

    @staticmethod
    def not_null(value: T, name: str) -> T:
        if value is None:
            raise BeanValidationError(name)
        return value

    @staticmethod
    def is_assignable(value: Any, property_type: Any) -> bool:
        if value is None or property_type is object or not isinstance(property_type, type):
            return True
        if property_type is float and isinstance(value, int) and not isinstance(value, bool):
            return True
        if property_type is complex and isinstance(value, (int, float)) and not isinstance(value, bool):
            return True
        return isinstance(value, property_type)

    @staticmethod
    def from_string(text: Optional[str], property_type: Any, name: str) -> Any:
        """Converts text to a value of ``property_type`` (bool, int, float, complex or str)."""
        if text is None or property_type is str or property_type is object:
            return text
        convert = STRING_CONVERTERS.get(property_type)
        if convert is None:
            raise PropertyTypeError(name, property_type, text)
        try:
            return convert(text.strip())
        except ValueError:
            raise PropertyTypeError(name, property_type, text) from None


class Maybe(Generic[T]):
    """A possibly-absent value, returned by optional-style getters."""

    __slots__ = ("_value",)

    def __init__(self, value: Optional[T] = None) -> None:
        self._value = value

    @classmethod
    def of(cls, value: T) -> "Maybe[T]":
        return cls(BeanUtils.not_null(value, "value"))

    @classmethod
    def of_nullable(cls, value: Optional[T]) -> "Maybe[T]":
        return cls(value)

    @classmethod
    def empty(cls) -> "Maybe[T]":
        return cls(None)

    def is_present(self) -> bool:
        return self._value is not None

    def get(self) -> T:
        if self._value is None:
            raise ValueError("No value present")
        return self._value

    def or_else(self, other: Optional[T]) -> Optional[T]:
        return self._value if self._value is not None else other

    def __bool__(self) -> bool:
        return self._value is not None

    def __iter__(self) -> Iterator[T]:
        if self._value is not None:
            yield self._value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Maybe) and BeanUtils.equal(self._value, other._value)

    def __hash__(self) -> int:
        return BeanUtils.hash_code(self._value)

    def __repr__(self) -> str:
        return f"Maybe({self._value!r})" if self._value is not None else "Maybe.empty"
