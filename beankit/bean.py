from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, KeysView

from .errors import UnsupportedPropertyError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .builder import BeanBuilder
    from .meta import DirectMetaBean
    from .property import BasicProperty, BasicPropertyMap


class Bean(ABC):
    """A class whose properties can be reached by name through its meta-bean."""

    def __init__(self) -> None:
        self.meta_bean().init_defaults(self)

    @abstractmethod
    def meta_bean(self) -> "DirectMetaBean": ...

    def property_names(self) -> KeysView[str]:
        return self.meta_bean().meta_property_map().keys()

    def property_map(self) -> "BasicPropertyMap":
        return self.meta_bean().create_property_map(self)

    def property(self, name: str) -> "BasicProperty":
        return self.meta_bean().meta_property(name).create_property(self)


class DirectBean(Bean):
    """Base class of generated mutable beans."""


class ImmutableBean(Bean):
    """Base class of generated immutable beans; built only through a builder."""

    def __init__(self) -> None:
        raise TypeError(f"{type(self).__name__} is immutable, create it with meta().builder()")

    def __setattr__(self, name: str, value: Any) -> None:
        raise UnsupportedPropertyError(name, "Immutable bean cannot be modified")

    def __delattr__(self, name: str) -> None:
        raise UnsupportedPropertyError(name, "Immutable bean cannot be modified")

    def to_builder(self) -> "BeanBuilder":
        """A builder seeded with this bean's stored values."""
        meta = self.meta_bean()
        builder = meta.builder()
        for name, mp in meta.meta_property_map().items():
            if mp.style.is_buildable():
                builder.set(name, mp.get(self))
        return builder
