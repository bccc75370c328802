"""Bracket-aware helpers for declared type text such as ``Dict[str, List[str]]``."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

OPENERS = {"[": "]", "(": ")", "{": "}"}
CLOSERS = {v: k for k, v in OPENERS.items()}

RUNTIME_TYPES = {
    "int": "int", "float": "float", "str": "str", "bytes": "bytes", "bool": "bool",
    "complex": "complex", "bytearray": "bytearray", "object": "object", "type": "type",
    "Any": "object", "Text": "str", "None": "object",
    "List": "list", "list": "list", "MutableSequence": "list",
    "Set": "set", "set": "set", "MutableSet": "set",
    "Dict": "dict", "dict": "dict", "MutableMapping": "dict",
    "Tuple": "tuple", "tuple": "tuple",
    "FrozenSet": "frozenset", "frozenset": "frozenset",
    "Type": "type",
}
# abstract or non-isinstance-able typing constructs
OPAQUE_TYPES = {
    "Sequence", "Mapping", "Iterable", "Iterator", "Collection", "Callable",
    "Literal", "AbstractSet", "Hashable", "Sized", "Container", "ClassVar", "Final",
}
COLLECTION_KINDS = {"list": "list", "set": "set", "dict": "dict"}
TYPING_PREFIXES = ("typing.", "t.", "collections.abc.", "typing_extensions.")


def find_matching(text: str, open_index: int) -> int:
    """Index of the bracket closing the one at ``open_index``, or -1."""
    depth = 0
    quote = None
    for i in range(open_index, len(text)):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_top_level(text: str, sep: str) -> List[str]:
    """Splits on ``sep`` where it is outside brackets and quotes."""
    parts: List[str] = []
    depth = 0
    quote = None
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth -= 1
        elif depth == 0 and text.startswith(sep, i):
            parts.append(text[start:i])
            i += len(sep)
            start = i
            continue
        i += 1
    parts.append(text[start:])
    return parts


def strip_comment(text: str) -> str:
    """Drops a trailing ``# comment`` that is not inside a string."""
    quote = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "#":
            return text[:i].rstrip()
        i += 1
    return text.rstrip()


def bracket_balance(text: str) -> int:
    depth = 0
    quote = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch == "#":
            break
        elif ch in "\"'":
            quote = ch
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth -= 1
        i += 1
    return depth


def unquote(type_text: str) -> str:
    t = type_text.strip()
    if len(t) >= 2 and t[0] == t[-1] and t[0] in "\"'":
        return t[1:-1].strip()
    return t


def split_type(type_text: str) -> Tuple[str, List[str]]:
    """``Dict[str, List[str]]`` -> (``Dict``, [``str``, ``List[str]``])."""
    t = unquote(type_text)
    pos = t.find("[")
    if pos < 0:
        return t, []
    end = find_matching(t, pos)
    if end < 0:
        return t[:pos].strip(), []
    inner = t[pos + 1:end]
    return t[:pos].strip(), [a.strip() for a in split_top_level(inner, ",") if a.strip()]


def short_name(base: str) -> str:
    for prefix in TYPING_PREFIXES:
        if base.startswith(prefix):
            return base[len(prefix):]
    return base


def unwrap_optional(type_text: str) -> str:
    """``Optional[X]`` or ``X | None`` -> ``X``; other text is returned as is."""
    t = unquote(type_text)
    members = [m.strip() for m in split_top_level(t, "|")]
    if len(members) > 1:
        rest = [m for m in members if m != "None"]
        return rest[0] if len(rest) == 1 else t
    base, args = split_type(t)
    name = short_name(base)
    if name == "Optional" and len(args) == 1:
        return args[0]
    if name == "Union":
        rest = [a for a in args if a != "None"]
        if len(rest) == 1:
            return rest[0]
    return t


def runtime_type(type_text: str, type_params: Sequence[str] = ()) -> str:
    """Expression naming the class a value of ``type_text`` must be an instance of."""
    t = unwrap_optional(type_text)
    if len(split_top_level(t, "|")) > 1:
        return "object"
    base, args = split_type(t)
    name = short_name(base)
    if name in ("Optional", "Union"):
        return "object"
    if name == "Annotated" and args:
        return runtime_type(args[0], type_params)
    if not name or name in type_params or name in OPAQUE_TYPES:
        return "object"
    return RUNTIME_TYPES.get(name, base)


def collection_kind(type_text: str, type_params: Sequence[str] = ()) -> Optional[str]:
    """``list``, ``set`` or ``dict`` for mutable container types, else None."""
    t = unquote(type_text)
    if t != unwrap_optional(t):
        return None
    return COLLECTION_KINDS.get(runtime_type(t, type_params))


def is_parameterized(type_text: str) -> bool:
    return bool(split_type(type_text)[1])


def type_param_names(generics: str) -> List[str]:
    """``K, V: Hashable`` or ``K, V`` -> [``K``, ``V``]; ``*Ts`` -> [``Ts``]."""
    names: List[str] = []
    for part in split_top_level(generics, ","):
        part = part.strip().lstrip("*")
        if not part:
            continue
        for stop in (":", "="):
            if stop in part:
                part = part.split(stop, 1)[0]
        names.append(part.strip())
    return names
