from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import (
    TYPE_CHECKING, Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple,
)

from .builder import BasicBeanBuilder, BeanBuilder, BufferingBeanBuilder
from .errors import (
    BeanValidationError, PropertyNotFoundError, PropertyTypeError, UnsupportedPropertyError,
)
from .property import BasicProperty, BasicPropertyMap
from .utils import BeanUtils, qualified_name

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .bean import Bean

Getter = Callable[[Any], Any]
Setter = Callable[[Any, Any], None]
KeyFn = Callable[[str], int]

CONTAINER_TYPES = (list, set, dict)


class PropertyStyle(Enum):
    READ_WRITE = "read_write"
    DERIVED = "derived"
    IMMUTABLE = "immutable"

    def is_buildable(self) -> bool:
        return self is not PropertyStyle.DERIVED


# ---------------- meta-properties ----------------

class MetaProperty(ABC):
    """Descriptor of one property, shared by every instance of the bean."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def meta_bean(self) -> "MetaBean": ...

    @property
    @abstractmethod
    def property_type(self) -> Any: ...

    @property
    @abstractmethod
    def style(self) -> PropertyStyle: ...

    @property
    @abstractmethod
    def dispatch_key(self) -> int: ...

    @property
    def declaring_type(self) -> type:
        return self.meta_bean.bean_type()

    @abstractmethod
    def get(self, bean: "Bean") -> Any: ...

    @abstractmethod
    def set(self, bean: "Bean", value: Any) -> None: ...

    def put(self, bean: "Bean", value: Any) -> Any:
        old = self.get(bean)
        self.set(bean, value)
        return old

    def validate(self, bean: "Bean") -> None:
        pass

    def create_property(self, bean: "Bean") -> BasicProperty:
        return BasicProperty(bean, self)

    def __repr__(self) -> str:
        return f"MetaProperty:{self.name}"


class DirectMetaProperty(MetaProperty):
    """Meta-property reading and writing through closures emitted by the generator."""

    def __init__(
        self,
        meta_bean: "MetaBean",
        name: str,
        property_type: Any,
        getter: Getter,
        setter: Optional[Setter] = None,
        *,
        style: PropertyStyle = PropertyStyle.READ_WRITE,
        field: Optional[str] = None,
        required: bool = False,
        default: Optional[Callable[[], Any]] = None,
        generic_type: Optional[str] = None,
    ) -> None:
        if not name:
            raise ValueError("Property name must not be empty")
        self._meta_bean = meta_bean
        self._name = name
        self._property_type = property_type
        self._getter = getter
        self._setter = setter
        self._style = style
        self._field = field
        self._required = required
        self._default = default
        self._generic_type = generic_type
        self._dispatch_key = BeanUtils.dispatch_key(name)

    # factories, one per generated shape

    @classmethod
    def of_read_write(cls, meta_bean: "MetaBean", name: str, property_type: Any, *,
                      getter: Getter, setter: Setter, field: Optional[str] = None,
                      required: bool = False, default: Optional[Callable[[], Any]] = None,
                      generic_type: Optional[str] = None) -> "DirectMetaProperty":
        return cls(meta_bean, name, property_type, getter, setter, style=PropertyStyle.READ_WRITE,
                   field=field, required=required, default=default, generic_type=generic_type)

    @classmethod
    def of_derived(cls, meta_bean: "MetaBean", name: str, property_type: Any, *,
                   getter: Getter, generic_type: Optional[str] = None) -> "DerivedMetaProperty":
        return DerivedMetaProperty(meta_bean, name, property_type, getter, None,
                                   style=PropertyStyle.DERIVED, generic_type=generic_type)

    @classmethod
    def of_immutable(cls, meta_bean: "MetaBean", name: str, property_type: Any, *,
                     getter: Getter, field: str, required: bool = False,
                     default: Optional[Callable[[], Any]] = None,
                     generic_type: Optional[str] = None) -> "ImmutableMetaProperty":
        return ImmutableMetaProperty(meta_bean, name, property_type, getter, None,
                                     style=PropertyStyle.IMMUTABLE, field=field, required=required,
                                     default=default, generic_type=generic_type)

    @property
    def name(self) -> str:
        return self._name

    @property
    def meta_bean(self) -> "MetaBean":
        return self._meta_bean

    @property
    def property_type(self) -> Any:
        return self._property_type

    @property
    def generic_type(self) -> Optional[str]:
        return self._generic_type

    @property
    def style(self) -> PropertyStyle:
        return self._style

    @property
    def dispatch_key(self) -> int:
        return self._dispatch_key

    @property
    def field(self) -> Optional[str]:
        return self._field

    @property
    def required(self) -> bool:
        return self._required

    def _check_bean(self, bean: "Bean") -> None:
        bean_type = self._meta_bean.bean_type()
        if not isinstance(bean, bean_type):
            raise PropertyTypeError(self._name, bean_type, bean)

    def check_value(self, value: Any) -> None:
        if not BeanUtils.is_assignable(value, self._property_type):
            raise PropertyTypeError(self._name, self._property_type, value)

    def get(self, bean: "Bean") -> Any:
        self._check_bean(bean)
        return self._getter(bean)

    def set(self, bean: "Bean", value: Any) -> None:
        self._check_bean(bean)
        if self._setter is None:
            raise UnsupportedPropertyError(self._name, "Property cannot be written")
        self.check_value(value)
        if self._required and value is None:
            raise BeanValidationError(self._name)
        self._setter(bean, value)

    def write(self, bean: "Bean", value: Any) -> None:
        """Stores a value while a builder assembles the bean."""
        self.set(bean, value)

    def validate(self, bean: "Bean") -> None:
        if self._required and self._getter(bean) is None:
            raise BeanValidationError(self._name)

    def init_default(self, bean: "Bean") -> None:
        if self._field is None:
            return
        if self._default is not None:
            object.__setattr__(bean, self._field, self._default())
        elif not hasattr(type(bean), self._field):
            # declared without an initializer
            object.__setattr__(bean, self._field, None)


class DerivedMetaProperty(DirectMetaProperty):
    """Read-only property computed by a user-written getter."""

    def set(self, bean: "Bean", value: Any) -> None:
        raise UnsupportedPropertyError(self._name, "Derived property cannot be written")

    def validate(self, bean: "Bean") -> None:
        pass


class ImmutableMetaProperty(DirectMetaProperty):
    """Property of an immutable bean, only writable by its builder.

    Containers are copied on the way in and on the way out, so neither the
    caller of the builder nor a reader can change a built bean.
    """

    def _copy(self, value: Any) -> Any:
        if value is not None and self._property_type in CONTAINER_TYPES:
            return self._property_type(value)
        return value

    def get(self, bean: "Bean") -> Any:
        return self._copy(super().get(bean))

    def set(self, bean: "Bean", value: Any) -> None:
        raise UnsupportedPropertyError(self._name, "Immutable property cannot be written")

    def write(self, bean: "Bean", value: Any) -> None:
        self._check_bean(bean)
        self.check_value(value)
        object.__setattr__(bean, self._field, self._copy(value))


# ---------------- name-dispatch table ----------------

class DirectMetaPropertyMap(Mapping[str, MetaProperty]):
    """Ordered, unmodifiable name -> meta-property table.

    Lookups go through a bucket keyed by the dispatch key of the name and are
    confirmed by string equality, so names sharing a key never alias.
    """

    def __init__(
        self,
        meta_bean: "MetaBean",
        meta_properties: Iterable[MetaProperty],
        key_fn: KeyFn = BeanUtils.dispatch_key,
    ) -> None:
        self._meta_bean = meta_bean
        self._key_fn = key_fn
        self._ordered: Dict[str, MetaProperty] = {}
        self._buckets: Dict[int, Tuple[MetaProperty, ...]] = {}
        for mp in meta_properties:
            if mp.name in self._ordered:
                raise ValueError(f"Duplicate property name: {mp.name}")
            self._ordered[mp.name] = mp
            key = key_fn(mp.name)
            self._buckets[key] = self._buckets.get(key, ()) + (mp,)

    def find(self, name: object) -> Optional[MetaProperty]:
        if not isinstance(name, str):
            return None
        for mp in self._buckets.get(self._key_fn(name), ()):
            if mp.name == name:
                return mp
        return None

    def collisions(self) -> List[Tuple[str, ...]]:
        """Groups of property names sharing a dispatch key."""
        return [tuple(mp.name for mp in bucket) for bucket in self._buckets.values() if len(bucket) > 1]

    def __getitem__(self, name: str) -> MetaProperty:
        mp = self.find(name)
        if mp is None:
            raise PropertyNotFoundError(name, self._meta_bean.bean_name())
        return mp

    def __contains__(self, name: object) -> bool:
        return self.find(name) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __repr__(self) -> str:
        return "{" + ", ".join(self._ordered) + "}"


# ---------------- meta-beans ----------------

class MetaBean(ABC):
    """Per-class registry of meta-properties."""

    @abstractmethod
    def bean_type(self) -> type: ...

    @abstractmethod
    def meta_property_map(self) -> Mapping[str, MetaProperty]: ...

    @abstractmethod
    def builder(self) -> BeanBuilder: ...

    def bean_name(self) -> str:
        return qualified_name(self.bean_type())

    def meta_property_exists(self, name: Optional[str]) -> bool:
        if not isinstance(name, str):
            return False
        return name in self.meta_property_map()

    def meta_property(self, name: str) -> MetaProperty:
        return self.meta_property_map()[name]

    def meta_property_count(self) -> int:
        return len(self.meta_property_map())

    def create_bean(self) -> Any:
        return self.bean_type()()

    def create_property_map(self, bean: "Bean") -> BasicPropertyMap:
        return BasicPropertyMap(self, bean)

    def validate(self, bean: "Bean") -> None:
        for mp in self.meta_property_map().values():
            mp.validate(bean)

    def __repr__(self) -> str:
        return f"MetaBean:{self.bean_name()}"


class DirectMetaBean(MetaBean):
    """Base of generated meta-beans for mutable beans.

    Subclasses are singletons: use ``instance()``, which creates and
    registers the meta-bean exactly once.
    """

    _instance: Optional["DirectMetaBean"] = None

    @classmethod
    def instance(cls) -> Any:
        inst = cls.__dict__.get("_instance")
        if inst is None:
            with BeanUtils.registry_lock():
                inst = cls.__dict__.get("_instance")
                if inst is None:
                    inst = cls()
                    BeanUtils.register_meta_bean(inst)
                    cls._instance = inst
        return inst

    def __init__(self, bean_type: type) -> None:
        self._bean_type = bean_type
        self._meta_property_map = DirectMetaPropertyMap(self, ())

    def _init_meta_properties(self, *meta_properties: MetaProperty) -> None:
        self._meta_property_map = DirectMetaPropertyMap(self, meta_properties)

    def bean_type(self) -> type:
        return self._bean_type

    def meta_property_map(self) -> DirectMetaPropertyMap:
        return self._meta_property_map

    def builder(self) -> BeanBuilder:
        return BasicBeanBuilder(self.create_bean())

    def init_defaults(self, bean: "Bean") -> None:
        for mp in self._meta_property_map.values():
            if isinstance(mp, DirectMetaProperty):
                mp.init_default(bean)


class ImmutableMetaBean(DirectMetaBean):
    """Base of generated meta-beans for immutable beans."""

    def create_bean(self) -> Any:
        return self.builder()

    def builder(self) -> BeanBuilder:
        return BufferingBeanBuilder(self)

    def allocate(self) -> Any:
        """A blank instance for the builder to fill, bypassing ``__init__``."""
        bean_type = self._bean_type
        bean = bean_type.__new__(bean_type)
        self.init_defaults(bean)
        return bean
