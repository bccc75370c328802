import pytest

from beankit import (
    BasicBeanBuilder, BeanValidationError, BufferingBeanBuilder, PropertyNotFoundError, PropertyTypeError,
    UnsupportedPropertyError,
)


# ---------------- mutable beans ----------------

def test_address_scenario(address_cls):
    builder = address_cls.builder().set("number", 12).set("street", "Park Lane")
    assert isinstance(builder, BasicBeanBuilder)
    with pytest.raises(BeanValidationError) as exc:
        builder.build()
    assert exc.value.property_name == "city"

    bean = builder.set("city", "Smallville").build()
    assert bean.property("street").get() == "Park Lane"
    assert bean.get_number() == 12


def test_set_all_and_get(address_cls):
    builder = address_cls.builder().set_all({"number": 1, "street": "High St", "city": "Leeds"})
    assert builder.get("street") == "High St"
    assert builder.build().get_city() == "Leeds"
    assert repr(builder).startswith("BeanBuilder for ")


def test_mutable_builder_rejects_unknown_and_derived(address_cls):
    builder = address_cls.builder()
    with pytest.raises(PropertyNotFoundError):
        builder.set("zip", "X1")
    with pytest.raises(UnsupportedPropertyError):
        builder.set("address", "x")


# ---------------- immutable beans ----------------

def test_location_scenario(location_cls):
    builder = location_cls.builder().set("number", 12).set("street", "Park Lane")
    assert isinstance(builder, BufferingBeanBuilder)
    with pytest.raises(BeanValidationError):
        builder.build()

    location = builder.set("city", "Smallville").build()
    assert location.property("street").get() == "Park Lane"
    assert location.get_city() == "Smallville"


def test_failed_build_leaves_builder_usable(location_cls):
    builder = location_cls.builder().set("street", "Park Lane").set("city", None)
    with pytest.raises(BeanValidationError):
        builder.build()
    assert builder.set("city", "Smallville").build().get_city() == "Smallville"


def test_null_rejection(person_cls):
    with pytest.raises(BeanValidationError):
        person_cls.builder().set("age", 3).build()
    with pytest.raises(BeanValidationError):
        person_cls.builder().set("name", None).build()


def test_immutable_bean_cannot_change(person_cls):
    person = person_cls.builder().set("name", "Ann").set("age", 3).build()
    assert person.get_name() == "Ann"
    assert person.property("adult").get() is False
    with pytest.raises(UnsupportedPropertyError):
        person._name = "Bob"
    with pytest.raises(UnsupportedPropertyError):
        person.property("name").set("Bob")
    with pytest.raises(UnsupportedPropertyError):
        del person._age
    with pytest.raises(TypeError):
        person_cls()
    assert person.get_name() == "Ann"


def test_immutable_builder_checks_names_and_types(person_cls):
    builder = person_cls.builder()
    with pytest.raises(PropertyNotFoundError):
        builder.set("nickname", "A")
    with pytest.raises(UnsupportedPropertyError):
        builder.set("adult", True)
    with pytest.raises(PropertyTypeError):
        builder.set("age", "three")
    assert builder.get("age") is None


def test_to_builder_copies_then_builds_new_instance(person_cls):
    person = person_cls.builder().set("name", "Ann").set("age", 3).build()
    older = person.to_builder().set("age", 30).build()
    assert older is not person
    assert older.get_age() == 30 and older.property("adult").get()
    assert person.get_age() == 3
    assert older != person
    assert older.to_builder().set("age", 3).build() == person


def test_immutable_collection_defaults(person_cls):
    a = person_cls.builder().set("name", "A").build()
    b = person_cls.builder().set("name", "B").build()
    assert a.get_scores() == {} and b.get_scores() == {}
    assert a._scores is not b._scores
    c = person_cls.builder().set("name", "C").set("scores", {"x": 1}).build()
    assert c.get_scores() == {"x": 1}


def test_immutable_create_bean_is_a_builder(person_cls):
    builder = person_cls.meta().create_bean()
    assert isinstance(builder, BufferingBeanBuilder)
    assert builder.set("name", "Z").build().get_name() == "Z"


def test_immutable_collections_are_copied_in_and_out(person_cls):
    scores = {"a": 1}
    person = person_cls.builder().set("name", "Ann").set("scores", scores).build()
    before = hash(person)

    scores["b"] = 2
    person.get_scores()["c"] = 3
    person.property("scores").get()["d"] = 4

    assert person.get_scores() == {"a": 1}
    assert hash(person) == before
    assert person.to_builder().build() == person


# ---------------- text conversion ----------------

def test_set_string_converts_to_property_type(address_cls, person_cls):
    bean = (address_cls.builder()
            .set_string("number", "12")
            .set_string("street", "Park Lane")
            .set_string("city", "Smallville")
            .set_string("active", "true")
            .build())
    assert bean.get_number() == 12
    assert bean.is_active() is True

    person = person_cls.builder().set_string("name", "Ann").set_string("age", " 30 ").build()
    assert person.get_age() == 30
    assert person_cls.builder().set_string("age", None).get("age") is None


@pytest.mark.parametrize("name, text", [
    ("number", "twelve"),
    ("active", "yes"),
    ("tags", "a,b"),
])
def test_set_string_rejects_unconvertible_text(address_cls, name, text):
    with pytest.raises(PropertyTypeError):
        address_cls.builder().set_string(name, text)


def test_set_string_unknown_and_derived(address_cls):
    with pytest.raises(PropertyNotFoundError):
        address_cls.builder().set_string("zip", "X1")
    with pytest.raises(UnsupportedPropertyError):
        address_cls.builder().set_string("address", "elsewhere")
