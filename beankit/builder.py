from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Generic, Mapping, Optional, TypeVar

from .errors import PropertyTypeError, UnsupportedPropertyError
from .utils import BeanUtils

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .meta import ImmutableMetaBean, MetaBean

B = TypeVar("B")


class BeanBuilder(ABC, Generic[B]):
    """Accumulates property values by name, then builds the bean."""

    @abstractmethod
    def set(self, name: str, value: Any) -> "BeanBuilder[B]": ...

    @abstractmethod
    def get(self, name: str) -> Any: ...

    @abstractmethod
    def build(self) -> B: ...

    @abstractmethod
    def meta_bean(self) -> "MetaBean": ...

    def set_string(self, name: str, text: Optional[str]) -> "BeanBuilder[B]":
        """Sets a property from text, converted to the property's type."""
        mp = self.meta_bean().meta_property(name)
        return self.set(name, BeanUtils.from_string(text, mp.property_type, name))

    def set_all(self, values: Mapping[str, Any]) -> "BeanBuilder[B]":
        for name, value in values.items():
            self.set(name, value)
        return self


class BasicBeanBuilder(BeanBuilder[B]):
    """Builder wrapping an already allocated mutable bean.

    Every ``set`` is applied to the bean at once; ``build`` only validates
    and hands the same bean back.
    """

    def __init__(self, bean: B) -> None:
        if bean is None:
            raise ValueError("Bean must not be None")
        self._bean = bean

    def set(self, name: str, value: Any) -> "BasicBeanBuilder[B]":
        self._bean.property(name).set(value)
        return self

    def get(self, name: str) -> Any:
        return self._bean.property(name).get()

    def meta_bean(self) -> "MetaBean":
        return self._bean.meta_bean()

    def build(self) -> B:
        self._bean.meta_bean().validate(self._bean)
        return self._bean

    def __repr__(self) -> str:
        return "BeanBuilder for " + self._bean.meta_bean().bean_name()


class BufferingBeanBuilder(BeanBuilder[B]):
    """Builder collecting values in a scratch map until ``build``.

    ``build`` allocates a fresh bean, writes the pending values in
    declaration order and validates; on failure no bean escapes.
    """

    def __init__(self, meta_bean: "ImmutableMetaBean") -> None:
        self._meta_bean = meta_bean
        self._values: Dict[str, Any] = {}

    def set(self, name: str, value: Any) -> "BufferingBeanBuilder[B]":
        mp = self._meta_bean.meta_property(name)
        if not mp.style.is_buildable():
            raise UnsupportedPropertyError(name, "Property cannot be built")
        if not BeanUtils.is_assignable(value, mp.property_type):
            raise PropertyTypeError(name, mp.property_type, value)
        self._values[name] = value
        return self

    def get(self, name: str) -> Any:
        self._meta_bean.meta_property(name)
        return self._values.get(name)

    def meta_bean(self) -> "MetaBean":
        return self._meta_bean

    def build(self) -> B:
        bean = self._meta_bean.allocate()
        for name, mp in self._meta_bean.meta_property_map().items():
            if name in self._values:
                mp.write(bean, self._values[name])
        self._meta_bean.validate(bean)
        return bean

    def __repr__(self) -> str:
        return "BeanBuilder for " + self._meta_bean.bean_name()
