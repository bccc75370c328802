"""Shared bean sources and a loader that generates and imports them."""

import itertools
import sys
import textwrap
import types

import pytest

from beankit.gen import generate

_counter = itertools.count()


ADDRESS_SOURCE = '''\
from typing import List, Optional

from beankit import BeanUtils, DirectBean, DirectMetaBean, DirectMetaProperty, Maybe


class Address(DirectBean):
    """A postal address."""

    # @PropertyDefinition
    _number: int = 0
    # @PropertyDefinition(validate="notNull")
    _street: str = None
    # @PropertyDefinition(validate="notNull")
    _city: str = None
    # @PropertyDefinition
    _tags: List[str] = []
    # @PropertyDefinition(get="optional")
    _nickname: Optional[str] = None
    # @PropertyDefinition(get="field")
    _secret: str = ""
    # @PropertyDefinition
    _active: bool = False

    # @DerivedProperty
    def get_address(self) -> str:
        return f"{self._number} {self._street} {self._city}"


def describe(address: Address) -> str:
    return address.get_address()
'''

PERSON_SOURCE = '''\
from typing import Dict

from beankit import BeanUtils, DirectMetaProperty, ImmutableBean, ImmutableMetaBean


class Person(ImmutableBean):

    # @PropertyDefinition(validate="notNull")
    _name: str = None
    # @PropertyDefinition
    _age: int = 0
    # @PropertyDefinition
    _scores: Dict[str, int] = {}

    # @DerivedProperty
    def is_adult(self) -> bool:
        return self._age >= 18
'''

LOCATION_SOURCE = '''\
from beankit import BeanUtils, DirectMetaProperty, ImmutableBean, ImmutableMetaBean


class Location(ImmutableBean):
    # @PropertyDefinition
    _number: int = 0
    # @PropertyDefinition(validate="notNull")
    _street: str = None
    # @PropertyDefinition(validate="notNull")
    _city: str = None
'''

PAIR_SOURCE = '''\
from typing import Generic, List, TypeVar

from beankit import BeanUtils, DirectBean, DirectMetaBean, DirectMetaProperty

K = TypeVar("K")
V = TypeVar("V")


class Pair(DirectBean, Generic[K, V]):

    # @PropertyDefinition
    _first: K = None
    # @PropertyDefinition
    _second: V = None
    # @PropertyDefinition
    _history: List[V] = []
'''

CLASH_SOURCE = '''\
from beankit import BeanUtils, DirectBean, DirectMetaBean, DirectMetaProperty


class Clash(DirectBean):
    # @PropertyDefinition
    _Aa: str = None
    # @PropertyDefinition
    _BB: str = None
'''

# fields declared without initializers start out as None
BARE_SOURCE = '''\
from typing import List

from beankit import BeanUtils, DirectBean, DirectMetaBean, DirectMetaProperty


class Bare(DirectBean):
    # @PropertyDefinition
    _number: int
    # @PropertyDefinition(validate="notNull")
    _street: str
    # @PropertyDefinition
    _tags: List[str]
'''

BARE_LOCATION_SOURCE = '''\
from beankit import BeanUtils, DirectMetaProperty, ImmutableBean, ImmutableMetaBean


class BareLocation(ImmutableBean):
    # @PropertyDefinition
    _number: int
    # @PropertyDefinition(validate="notNull")
    _street: str
    # @PropertyDefinition(validate="notNull")
    _city: str
'''


def load_bean_module(source, **options):
    """Generates ``source`` and imports the result as a fresh module."""
    result = generate(textwrap.dedent(source).splitlines(), **options)
    assert result is not None, "source holds no bean"
    name = f"beankit_test_beans_{next(_counter)}"
    module = types.ModuleType(name)
    sys.modules[name] = module
    code = compile("\n".join(result.lines) + "\n", f"<{name}>", "exec")
    exec(code, module.__dict__)
    return module


@pytest.fixture
def address_cls():
    return load_bean_module(ADDRESS_SOURCE).Address


@pytest.fixture
def person_cls():
    return load_bean_module(PERSON_SOURCE).Person


@pytest.fixture
def location_cls():
    return load_bean_module(LOCATION_SOURCE).Location


@pytest.fixture
def pair_cls():
    return load_bean_module(PAIR_SOURCE).Pair


@pytest.fixture
def clash_cls():
    return load_bean_module(CLASH_SOURCE).Clash


@pytest.fixture
def bare_cls():
    return load_bean_module(BARE_SOURCE).Bare


@pytest.fixture
def bare_location_cls():
    return load_bean_module(BARE_LOCATION_SOURCE).BareLocation
