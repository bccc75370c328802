from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .typetext import collection_kind, type_param_names, unwrap_optional


class GenStyle(Enum):
    READ_WRITE = "read_write"
    READ_WRITE_VALIDATED = "read_write_validated"
    FIELD_ONLY_GET = "field_only_get"
    OPTIONAL_WRAPPED = "optional_wrapped"
    DERIVED = "derived"
    COLLECTION = "collection"


class Construction(Enum):
    MUTABLE = "mutable"
    IMMUTABLE = "immutable"


@dataclass(frozen=True)
class PropertyDeclaration:
    name: str
    field_name: str
    type_text: str
    style: GenStyle
    validation: Optional[str] = None
    accessor: Optional[str] = None
    initializer: Optional[str] = None
    line: int = 0

    @property
    def required(self) -> bool:
        return self.validation == "notNull" or self.style is GenStyle.COLLECTION

    @property
    def is_derived(self) -> bool:
        return self.style is GenStyle.DERIVED

    @property
    def value_type_text(self) -> str:
        return unwrap_optional(self.type_text)

    @property
    def getter_name(self) -> str:
        if self.accessor:
            return self.accessor
        if self.value_type_text in ("bool", "builtins.bool"):
            return "is_" + self.name
        return "get_" + self.name

    @property
    def setter_name(self) -> str:
        return "set_" + self.name

    @property
    def handle_name(self) -> str:
        return self.name + "_property"

    @property
    def label(self) -> str:
        return self.name.strip("_").replace("_", " ")


@dataclass
class GeneratedClassModel:
    class_name: str
    generics: str
    construction: Construction
    class_index: int
    header_end: int
    body_end: int
    header_indent: str
    properties: List[PropertyDeclaration] = field(default_factory=list)
    region_start: int = -1
    region_end: int = -1
    indent: str = "    "
    prefix: str = "_"
    qualname: str = ""
    body_indent: str = ""

    @property
    def is_immutable(self) -> bool:
        return self.construction is Construction.IMMUTABLE

    @property
    def type_params(self) -> List[str]:
        return type_param_names(self.generics)

    @property
    def bean_type(self) -> str:
        params = self.type_params
        return f"{self.class_name}[{', '.join(params)}]" if params else self.class_name

    @property
    def bean_ref(self) -> str:
        """Expression naming the bean class from module scope."""
        return self.qualname or self.class_name

    @property
    def stored_properties(self) -> List[PropertyDeclaration]:
        return [d for d in self.properties if not d.is_derived]

    def collection_kind(self, decl: PropertyDeclaration) -> Optional[str]:
        return collection_kind(decl.type_text, self.type_params)
