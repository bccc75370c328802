"""Line-oriented scanner that finds the bean class and its property markers.

This is not a Python parser. It tracks just enough lexical state (strings,
comments, bracket depth, indentation) to read class headers, field
declarations and getter signatures that follow a marker comment.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import StructuralError
from .model import Construction, GeneratedClassModel, GenStyle, PropertyDeclaration
from .region import find_markers
from .typetext import (
    bracket_balance, collection_kind, find_matching, short_name, split_top_level, split_type,
    strip_comment, type_param_names, unquote,
)

BEAN_BASES = {"DirectBean": Construction.MUTABLE, "ImmutableBean": Construction.IMMUTABLE}

INDICATOR_RE = re.compile(r"\b(DirectBean|ImmutableBean)\b")
CLASS_RE = re.compile(r"^(\s*)class\s+([A-Za-z_]\w*)")
DEF_RE = re.compile(r"^\s*(?:async\s+)?def\s")
IMPORT_RE = re.compile(r"^\s*(?:import|from)\s")
MARKER_RE = re.compile(r"^#\s*@(PropertyDefinition|DerivedProperty)\b(.*)$")
FIELD_RE = re.compile(r"^([A-Za-z_]\w*)\s*:(?!=)\s*(.*)$")
METHOD_RE = re.compile(r"^def\s+([A-Za-z_]\w*)\s*\(\s*self\s*\)\s*(?:->\s*(.+?))?\s*:(.*)$")

OPTION_VALUES: Dict[str, Tuple[str, ...]] = {
    "validate": ("", "notNull"),
    "get": ("", "field", "optional"),
    "style": ("", "derived"),
}
FREE_OPTIONS = ("accessor",)

# members of the generated class and its Meta that a property name may not shadow
RESERVED_NAMES = frozenset({
    "self", "cls", "meta", "meta_bean", "builder", "to_builder", "property", "property_names",
    "property_map", "instance", "bean_type", "bean_name", "meta_property", "meta_property_map",
    "meta_property_exists", "meta_property_count", "create_bean", "create_property_map",
    "validate", "allocate", "init_defaults", "_instance", "_bean_type", "_meta_property_map",
})


# ---------------- lexical helpers ----------------

def mask_lines(lines: Sequence[str]) -> Tuple[List[str], List[bool]]:
    """Code text of each line with string contents and comments removed.

    The second list flags lines that start inside a triple-quoted string.
    """
    code: List[str] = []
    in_string: List[bool] = []
    triple: Optional[str] = None
    for line in lines:
        in_string.append(triple is not None)
        out: List[str] = []
        quote: Optional[str] = None
        i = 0
        n = len(line)
        while i < n:
            if triple:
                if line[i] == "\\":
                    i += 2
                    continue
                if line.startswith(triple, i):
                    out.append(triple)
                    triple = None
                    i += 3
                    continue
                i += 1
                continue
            ch = line[i]
            if quote:
                if ch == "\\":
                    i += 2
                    continue
                if ch == quote:
                    out.append(ch)
                    quote = None
                i += 1
                continue
            if ch == "#":
                break
            if line.startswith('"""', i) or line.startswith("'''", i):
                triple = line[i:i + 3]
                out.append(triple)
                i += 3
                continue
            if ch in "\"'":
                quote = ch
            out.append(ch)
            i += 1
        code.append("".join(out).rstrip())
    return code, in_string


def leading_ws(line: str) -> str:
    return line[:len(line) - len(line.lstrip())]


def parse_options(text: str) -> Dict[str, str]:
    """``(validate="notNull", get="field")`` -> {"validate": "notNull", "get": "field"}."""
    text = text.strip()
    if not text:
        return {}
    if not (text.startswith("(") and find_matching(text, 0) == len(text) - 1):
        raise ValueError(f"Malformed marker options: {text}")
    options: Dict[str, str] = {}
    for part in split_top_level(text[1:-1], ","):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            raise ValueError(f"Marker option must be key=\"value\": {part}")
        key, value = (x.strip() for x in part.split("=", 1))
        value = unquote(value)
        if key in options:
            raise ValueError(f"Duplicate marker option: {key}")
        if key in OPTION_VALUES:
            if value not in OPTION_VALUES[key]:
                allowed = ", ".join(repr(v) for v in OPTION_VALUES[key] if v)
                raise ValueError(f"Invalid value for '{key}': {value!r} (expected {allowed})")
        elif key in FREE_OPTIONS:
            if value and not value.isidentifier():
                raise ValueError(f"Invalid value for '{key}': {value!r}")
        else:
            raise ValueError(f"Unknown marker option: {key}")
        options[key] = value
    return options


def classify(options: Dict[str, str], derived: bool, type_text: str, type_params: Sequence[str]) -> GenStyle:
    if derived:
        return GenStyle.DERIVED
    get = options.get("get", "")
    if get == "field":
        return GenStyle.FIELD_ONLY_GET
    if get == "optional":
        return GenStyle.OPTIONAL_WRAPPED
    if collection_kind(type_text, type_params):
        return GenStyle.COLLECTION
    if options.get("validate") == "notNull":
        return GenStyle.READ_WRITE_VALIDATED
    return GenStyle.READ_WRITE


# ---------------- parser ----------------

class BeanParser:
    """Builds a :class:`GeneratedClassModel` from the lines of one module."""

    def __init__(self, lines: Sequence[str], *, indent: Optional[str] = None, prefix: str = "_",
                 source: Optional[str] = None) -> None:
        self.lines = list(lines)
        self.indent = indent
        self.prefix = prefix
        self.source = source
        self.code, self.in_string = mask_lines(self.lines)

    def error(self, message: str, index: int) -> StructuralError:
        return StructuralError(message, line=index + 1, source=self.source)

    def parse(self) -> Optional[GeneratedClassModel]:
        indicator = self.find_indicator()
        if indicator < 0:
            return None
        class_idx = self.find_class_header(indicator)
        header_end = self.find_header_end(class_idx)
        if indicator > header_end:
            raise self.error("Bean base class referenced outside a class header", indicator)

        header = " ".join(strip_comment(line).strip() for line in self.lines[class_idx:header_end + 1])
        name, generics, construction = self.parse_header(header, class_idx)
        header_indent = leading_ws(self.lines[class_idx])
        body_end = self.find_body_end(header_end, len(header_indent))
        body_ws = self.body_whitespace(header_end, body_end)
        if body_ws is None:
            raise self.error(f"Class {name} has no body", class_idx)
        indent = self.indent or body_ws[len(header_indent):] or "    "

        try:
            region_start, region_end = find_markers(self.lines, header_end + 1, body_end)
        except StructuralError as e:
            raise e.with_source(self.source) if self.source else e

        model = GeneratedClassModel(
            class_name=name,
            generics=generics,
            construction=construction,
            class_index=class_idx,
            header_end=header_end,
            body_end=body_end,
            header_indent=header_indent,
            region_start=region_start,
            region_end=region_end,
            indent=indent,
            prefix=self.prefix,
            qualname=self.qualname(class_idx, name),
            body_indent=body_ws,
        )
        model.properties = self.parse_properties(model, body_ws)
        return model

    # ---------------- class header ----------------

    def find_indicator(self) -> int:
        in_import = False
        for i, text in enumerate(self.code):
            if in_import:
                in_import = ")" not in text
                continue
            if IMPORT_RE.match(text):
                in_import = "(" in text and ")" not in text
                continue
            if INDICATOR_RE.search(text):
                return i
        return -1

    def find_class_header(self, indicator: int) -> int:
        for j in range(indicator, -1, -1):
            if not self.in_string[j] and CLASS_RE.match(self.code[j]):
                return j
        raise self.error("Bean base class referenced but no class header found", indicator)

    def find_header_end(self, class_idx: int) -> int:
        depth = 0
        for k in range(class_idx, len(self.code)):
            depth += bracket_balance(self.code[k])
            if depth <= 0:
                text = self.code[k].rstrip()
                if not text.endswith(":"):
                    raise self.error("Bean class body must start on its own line", k)
                return k
        raise self.error("Unterminated class header", class_idx)

    def parse_header(self, header: str, class_idx: int) -> Tuple[str, str, Construction]:
        m = re.match(r"class\s+([A-Za-z_]\w*)\s*", header)
        if not m:
            raise self.error("Malformed class header", class_idx)
        name = m.group(1)
        pos = m.end()
        generics = ""
        if header.startswith("[", pos):
            close = find_matching(header, pos)
            if close < 0:
                raise self.error(f"Unterminated type parameters on class {name}", class_idx)
            generics = header[pos + 1:close].strip()
            pos = close + 1
        rest = header[pos:].lstrip()
        bases = ""
        if rest.startswith("("):
            close = find_matching(rest, 0)
            bases = rest[1:close]

        construction: Optional[Construction] = None
        for base in split_top_level(bases, ","):
            base = base.strip()
            if not base or "=" in base:
                continue
            base_name, args = split_type(base)
            simple = base_name.rsplit(".", 1)[-1]
            if simple in BEAN_BASES:
                if construction is not None:
                    raise self.error(f"Class {name} extends both DirectBean and ImmutableBean", class_idx)
                construction = BEAN_BASES[simple]
            elif short_name(base_name) == "Generic" and not generics:
                generics = ", ".join(args)
        if construction is None:
            raise self.error(f"Class {name} must extend DirectBean or ImmutableBean directly", class_idx)
        return name, generics, construction

    def find_body_end(self, header_end: int, header_width: int) -> int:
        for k in range(header_end + 1, len(self.lines)):
            raw = self.lines[k]
            if self.in_string[k] or not raw.strip():
                continue
            if len(leading_ws(raw)) <= header_width:
                return k
        return len(self.lines)

    def body_whitespace(self, header_end: int, body_end: int) -> Optional[str]:
        for k in range(header_end + 1, body_end):
            if not self.in_string[k] and self.lines[k].strip():
                return leading_ws(self.lines[k])
        return None

    def qualname(self, class_idx: int, name: str) -> str:
        parts = [name]
        width = len(leading_ws(self.lines[class_idx]))
        for j in range(class_idx - 1, -1, -1):
            if width == 0:
                break
            if self.in_string[j] or not self.code[j].strip():
                continue
            w = len(leading_ws(self.lines[j]))
            if w >= width:
                continue
            m = CLASS_RE.match(self.code[j])
            if m:
                parts.insert(0, m.group(2))
            elif DEF_RE.match(self.code[j]):
                raise self.error(f"Bean class {name} must not be declared inside a function", class_idx)
            width = w
        return ".".join(parts)

    # ---------------- properties ----------------

    def in_region(self, model: GeneratedClassModel, k: int) -> bool:
        if model.region_start < 0:
            return False
        end = model.region_end if model.region_end >= 0 else model.region_start
        return model.region_start <= k <= end

    def parse_properties(self, model: GeneratedClassModel, body_ws: str) -> List[PropertyDeclaration]:
        props: List[PropertyDeclaration] = []
        seen: Dict[str, int] = {}
        k = model.header_end + 1
        while k < model.body_end:
            if self.in_string[k] or self.in_region(model, k):
                k += 1
                continue
            m = MARKER_RE.match(self.lines[k].strip())
            if not m:
                k += 1
                continue
            decl, k = self.parse_property(model, m.group(1), m.group(2), k, body_ws)
            if decl.name in RESERVED_NAMES:
                raise self.error(f"Property name '{decl.name}' clashes with a generated member", decl.line)
            if decl.name in seen:
                raise self.error(
                    f"Duplicate property '{decl.name}' (first declared on line {seen[decl.name] + 1})", decl.line)
            seen[decl.name] = decl.line
            props.append(decl)
        return props

    def next_declaration(self, model: GeneratedClassModel, marker_idx: int, derived: bool) -> int:
        for j in range(marker_idx + 1, model.body_end):
            if self.in_region(model, j):
                break
            stripped = self.lines[j].strip()
            if self.in_string[j]:
                break
            if not stripped:
                continue
            if stripped.startswith("#"):
                if MARKER_RE.match(stripped):
                    break
                continue
            if derived and stripped.startswith("@"):
                continue
            return j
        raise self.error("Property marker is not followed by a declaration", marker_idx)

    def parse_property(self, model: GeneratedClassModel, kind: str, option_text: str, idx: int,
                       body_ws: str) -> Tuple[PropertyDeclaration, int]:
        try:
            options = parse_options(option_text)
        except ValueError as e:
            raise self.error(str(e), idx) from None
        if kind == "DerivedProperty" and options:
            raise self.error("@DerivedProperty takes no options", idx)
        derived = kind == "DerivedProperty" or options.get("style") == "derived"

        j = self.next_declaration(model, idx, derived)
        if leading_ws(self.lines[j]) != body_ws:
            raise self.error("Property declaration must be at class body level", j)
        if derived:
            return self.parse_derived(j), j + 1

        text = strip_comment(self.lines[j]).strip()
        end = j
        while bracket_balance(text) > 0 and end + 1 < model.body_end:
            end += 1
            text += " " + strip_comment(self.lines[end]).strip()
        m = FIELD_RE.match(text)
        if not m:
            raise self.error("Property marker must precede a field declaration 'name: Type [= value]'", j)
        field_name, rest = m.group(1), m.group(2)
        type_text = split_top_level(rest, "=")[0].strip()
        if not type_text:
            raise self.error(f"Field '{field_name}' has no type annotation", j)
        initializer = rest[len(split_top_level(rest, "=")[0]) + 1:].strip() or None
        if short_name(split_type(type_text)[0]) == "ClassVar":
            raise self.error(f"Field '{field_name}' is a ClassVar and cannot be a property", j)

        name = field_name
        if self.prefix and field_name.startswith(self.prefix) and len(field_name) > len(self.prefix):
            name = field_name[len(self.prefix):]
        if not name.isidentifier():
            raise self.error(f"Invalid property name '{name}'", j)

        decl = PropertyDeclaration(
            name=name,
            field_name=field_name,
            type_text=type_text,
            style=classify(options, False, type_text, type_param_names(model.generics)),
            validation=options.get("validate") or None,
            accessor=options.get("accessor") or None,
            initializer=initializer,
            line=j,
        )
        return decl, end + 1

    def parse_derived(self, j: int) -> PropertyDeclaration:
        text = strip_comment(self.lines[j]).strip()
        m = METHOD_RE.match(text)
        if not m:
            raise self.error("Derived property marker must precede a 'def get_xxx(self) -> Type:' method", j)
        method, returns = m.group(1), m.group(2)
        if not returns:
            raise self.error(f"Derived property method '{method}' needs a return annotation", j)
        for pre in ("get_", "is_"):
            if method.startswith(pre) and len(method) > len(pre):
                name = method[len(pre):]
                break
        else:
            raise self.error(f"Derived property method '{method}' must be named get_xxx or is_xxx", j)
        return PropertyDeclaration(
            name=name,
            field_name="",
            type_text=returns.strip(),
            style=GenStyle.DERIVED,
            accessor=method,
            line=j,
        )


def parse_bean(lines: Sequence[str], *, indent: Optional[str] = None, prefix: str = "_",
               source: Optional[str] = None) -> Optional[GeneratedClassModel]:
    """Model of the bean class in ``lines``, or None when the module has none."""
    return BeanParser(lines, indent=indent, prefix=prefix, source=source).parse()
