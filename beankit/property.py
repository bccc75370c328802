from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, MutableMapping

from .errors import UnsupportedPropertyError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .bean import Bean
    from .meta import MetaBean, MetaProperty


class BasicProperty:
    """A property bound to one bean instance."""

    __slots__ = ("_bean", "_meta_property")

    def __init__(self, bean: "Bean", meta_property: "MetaProperty") -> None:
        if bean is None:
            raise ValueError("Bean must not be None")
        self._bean = bean
        self._meta_property = meta_property

    @property
    def bean(self) -> "Bean":
        return self._bean

    @property
    def meta_property(self) -> "MetaProperty":
        return self._meta_property

    @property
    def name(self) -> str:
        return self._meta_property.name

    def get(self) -> Any:
        return self._meta_property.get(self._bean)

    def set(self, value: Any) -> None:
        self._meta_property.set(self._bean, value)

    def put(self, value: Any) -> Any:
        """Sets the value, returning the previous one."""
        return self._meta_property.put(self._bean, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BasicProperty):
            return False
        return self._meta_property == other._meta_property and self._bean is other._bean

    def __hash__(self) -> int:
        return hash(self._meta_property) ^ id(self._bean)

    def __repr__(self) -> str:
        return f"{self._meta_property.name}={self.get()!r}"


class BasicPropertyMap(MutableMapping[str, Any]):
    """Name-indexed view of one bean's properties."""

    def __init__(self, meta_bean: "MetaBean", bean: "Bean") -> None:
        self._meta_bean = meta_bean
        self._bean = bean

    @property
    def bean(self) -> "Bean":
        return self._bean

    def __getitem__(self, name: str) -> Any:
        return self._meta_bean.meta_property(name).get(self._bean)

    def __setitem__(self, name: str, value: Any) -> None:
        self._meta_bean.meta_property(name).set(self._bean, value)

    def __delitem__(self, name: str) -> None:
        raise UnsupportedPropertyError(name, "Properties cannot be removed")

    def __iter__(self) -> Iterator[str]:
        return iter(self._meta_bean.meta_property_map())

    def __len__(self) -> int:
        return self._meta_bean.meta_property_count()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._meta_bean.meta_property_exists(name)
