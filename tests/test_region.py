import pytest

from beankit.errors import StructuralError
from beankit.gen.region import (
    AUTOGENERATED_END, AUTOGENERATED_START, find_markers, locate_region, resolve_indent, rewrite,
)

CLASS_LINES = [
    "class Thing(DirectBean):",
    "    # @PropertyDefinition",
    "    _a: int = 0",
    "",
    "",
    "def after():",
    "    pass",
]


def test_rewrite_is_pure_concatenation():
    prefix = ["a", "b"]
    suffix = ["z"]
    out = rewrite(prefix, suffix, ["    x"], "    ")
    assert out == ["a", "b", "    " + AUTOGENERATED_START, "    x", "    " + AUTOGENERATED_END, "z"]
    assert prefix == ["a", "b"] and suffix == ["z"]


def test_missing_region_is_created_after_last_body_line():
    split = locate_region(CLASS_LINES, 0, 5)
    assert split.created
    assert split.prefix == tuple(CLASS_LINES[:3])
    assert split.region == ()
    assert split.suffix == tuple(CLASS_LINES[3:])


def test_existing_region_is_split_out():
    lines = CLASS_LINES[:3] + ["  " + AUTOGENERATED_START, "    old", AUTOGENERATED_END] + CLASS_LINES[3:]
    start, end = find_markers(lines, 1, 8)
    assert (start, end) == (3, 5)
    split = locate_region(lines, 0, 8, start, end)
    assert not split.created
    assert split.region == ("    old",)
    assert split.prefix == tuple(CLASS_LINES[:3])
    assert split.suffix == tuple(CLASS_LINES[3:])


def test_start_marker_alone_gets_end_marker_after_it():
    lines = CLASS_LINES[:3] + ["    " + AUTOGENERATED_START, "    tail"]
    split = locate_region(lines, 0, 5, 3, -1)
    assert split.created
    assert split.region == ()
    assert split.suffix == ("    tail",)


def test_find_markers_rejects_duplicates():
    lines = ["    " + AUTOGENERATED_START, "    " + AUTOGENERATED_END, "    " + AUTOGENERATED_END]
    with pytest.raises(StructuralError) as exc:
        find_markers(lines, 0, 3)
    assert exc.value.line == 3


def test_find_markers_ignores_code_mentioning_the_token():
    lines = ['    text = "# AUTOGENERATED START here"']
    assert find_markers(lines, 0, 1) == (-1, -1)


def test_resolve_indent():
    region = ["\tdef f(self):", "\t\treturn 1", "", "\t\t\t\tand x"]
    assert resolve_indent(region, "  ", "    ") == ["    def f(self):", "      return 1", "", "          and x"]
    assert resolve_indent(region, "\t", "\t") == ["\tdef f(self):", "\t\treturn 1", "", "\t\t\t\tand x"]
