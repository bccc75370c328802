"""Property-introspecting beans and their source generator."""

from .bean import Bean, DirectBean, ImmutableBean
from .builder import BasicBeanBuilder, BeanBuilder, BufferingBeanBuilder
from .errors import (
    BeanError,
    BeanValidationError,
    PropertyNotFoundError,
    PropertyTypeError,
    StructuralError,
    UnsupportedPropertyError,
)
from .meta import (
    DerivedMetaProperty,
    DirectMetaBean,
    DirectMetaProperty,
    DirectMetaPropertyMap,
    ImmutableMetaBean,
    ImmutableMetaProperty,
    MetaBean,
    MetaProperty,
    PropertyStyle,
)
from .property import BasicProperty, BasicPropertyMap
from .utils import BeanUtils, Maybe

__version__ = "0.3.0"

__all__ = [
    "BasicBeanBuilder",
    "BasicProperty",
    "BasicPropertyMap",
    "Bean",
    "BeanBuilder",
    "BeanError",
    "BeanUtils",
    "BeanValidationError",
    "BufferingBeanBuilder",
    "DerivedMetaProperty",
    "DirectBean",
    "DirectMetaBean",
    "DirectMetaProperty",
    "DirectMetaPropertyMap",
    "ImmutableBean",
    "ImmutableMetaBean",
    "ImmutableMetaProperty",
    "Maybe",
    "MetaBean",
    "MetaProperty",
    "PropertyNotFoundError",
    "PropertyStyle",
    "PropertyTypeError",
    "StructuralError",
    "UnsupportedPropertyError",
]
