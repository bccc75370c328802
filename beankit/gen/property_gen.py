from __future__ import annotations

from typing import List, Optional, Set

from .model import GeneratedClassModel, GenStyle, PropertyDeclaration
from .region import SEPARATOR
from .typetext import runtime_type, unquote

# setter parameter names that would hide something the setter body uses
SHADOWED_PARAMS = {"list", "set", "dict", "BeanUtils", "Maybe"}
EMPTY_INITIALIZERS = {None, "None", "[]", "{}", "list()", "set()", "dict()"}
CONTAINER_ADD = {"list": "extend", "set": "update", "dict": "update"}


def py_str(text: str) -> str:
    """Python string literal for ``text``, double-quoted where possible."""
    if '"' not in text and "\\" not in text:
        return f'"{text}"'
    return repr(text)


class PropertyGen:
    """Emits the members of one property.

    Lines use ``\\t`` as indent token, one token per nesting level below
    the class body.
    """

    def __init__(self, model: GeneratedClassModel, decl: PropertyDeclaration) -> None:
        self.model = model
        self.decl = decl
        self.kind: Optional[str] = model.collection_kind(decl) if decl.style is GenStyle.COLLECTION else None
        self.type_expr = runtime_type(decl.value_type_text, model.type_params)
        self.uses: Set[str] = {"DirectMetaProperty"}

    @property
    def field(self) -> str:
        return "self." + self.decl.field_name

    @property
    def param(self) -> str:
        return "value" if self.decl.name in SHADOWED_PARAMS else self.decl.name

    @property
    def generic_type(self) -> Optional[str]:
        declared = unquote(self.decl.value_type_text)
        return declared if declared != self.type_expr else None

    # ---------------- bean members ----------------

    def generate_members(self) -> List[str]:
        lines = [f"\t{SEPARATOR}"]
        for block in (self.getter(), self.setter(), self.handle()):
            if block:
                lines.extend(block)
                lines.append("")
        return lines

    def getter(self) -> List[str]:
        d = self.decl
        if d.style in (GenStyle.DERIVED, GenStyle.FIELD_ONLY_GET):
            return []
        if d.style is GenStyle.OPTIONAL_WRAPPED:
            self.uses.add("Maybe")
            return [
                f'\tdef {d.getter_name}(self) -> "Maybe[{unquote(d.value_type_text)}]":',
                f'\t\t"""Gets the {d.label}, if present."""',
                f"\t\treturn Maybe.of_nullable({self.field})",
            ]
        value = self.field
        if self.kind and self.model.is_immutable:
            value = f"{self.kind}({value})"
        return [
            f"\tdef {d.getter_name}(self) -> {d.type_text}:",
            f'\t\t"""Gets the {d.label}."""',
            f"\t\treturn {value}",
        ]

    def setter(self) -> List[str]:
        d = self.decl
        if self.model.is_immutable or d.style is GenStyle.DERIVED:
            return []
        param = self.param
        lines = [
            f"\tdef {d.setter_name}(self, {param}: {d.type_text}) -> None:",
            f'\t\t"""Sets the {d.label}."""',
        ]
        if self.kind:
            self.uses.add("BeanUtils")
            lines += [
                f"\t\tBeanUtils.not_null({param}, {py_str(d.name)})",
                f"\t\t{param} = {self.kind}({param})",
                f"\t\t{self.field}.clear()",
                f"\t\t{self.field}.{CONTAINER_ADD[self.kind]}({param})",
            ]
            return lines
        if d.required:
            self.uses.add("BeanUtils")
            lines.append(f"\t\tBeanUtils.not_null({param}, {py_str(d.name)})")
        lines.append(f"\t\t{self.field} = {param}")
        return lines

    def handle(self) -> List[str]:
        name = self.decl.name
        return [
            f'\tdef {self.decl.handle_name}(self) -> "BasicProperty":',
            f'\t\t"""Gets the ``{name}`` property bound to this bean."""',
            f"\t\treturn self.meta_bean().{name}.create_property(self)",
        ]

    # ---------------- meta-property ----------------

    def getter_expr(self) -> str:
        d = self.decl
        if d.is_derived:
            return f"lambda bean: bean.{d.getter_name}()"
        if self.model.is_immutable or d.style in (GenStyle.FIELD_ONLY_GET, GenStyle.OPTIONAL_WRAPPED):
            return f"lambda bean: bean.{d.field_name}"
        return f"lambda bean: bean.{d.getter_name}()"

    def default_expr(self) -> Optional[str]:
        if not self.kind:
            return None
        init = self.decl.initializer
        if init in EMPTY_INITIALIZERS:
            return self.kind
        return f"lambda: {init}"

    def generate_meta_property(self) -> List[str]:
        d = self.decl
        kwargs: List[str] = [f"getter={self.getter_expr()}"]
        if d.is_derived:
            factory = "of_derived"
        elif self.model.is_immutable:
            factory = "of_immutable"
            kwargs.append(f"field={py_str(d.field_name)}")
        else:
            factory = "of_read_write"
            kwargs.append(f"setter=lambda bean, value: bean.{d.setter_name}(value)")
            kwargs.append(f"field={py_str(d.field_name)}")
        if not d.is_derived:
            if d.required:
                kwargs.append("required=True")
            default = self.default_expr()
            if default:
                kwargs.append(f"default={default}")
        if self.generic_type:
            kwargs.append(f"generic_type={py_str(self.generic_type)}")

        lines = [
            f"\t\t\tself.{d.name} = DirectMetaProperty.{factory}(",
            f"\t\t\t\tself, {py_str(d.name)}, {self.type_expr},",
        ]
        for i, kw in enumerate(kwargs):
            lines.append(f"\t\t\t\t{kw}" + (")" if i == len(kwargs) - 1 else ","))
        return lines
