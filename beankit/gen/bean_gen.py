from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from .model import GeneratedClassModel
from .parser import parse_bean
from .property_gen import PropertyGen, py_str
from .region import SEPARATOR, locate_region, resolve_indent, rewrite


@dataclass
class GenerationResult:
    lines: List[str]
    model: GeneratedClassModel
    runtime_names: Set[str] = field(default_factory=set)
    original: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.lines != self.original


class BeanGen:
    """Synthesizes the generated region of one bean class."""

    def __init__(self, model: GeneratedClassModel) -> None:
        self.model = model
        self.props = [PropertyGen(model, decl) for decl in model.properties]
        self.uses: Set[str] = set()

    def runtime_names(self) -> Set[str]:
        """Runtime names the generated region needs in module scope."""
        names = set(self.uses)
        for prop in self.props:
            names |= prop.uses
        return names

    def generate(self) -> List[str]:
        lines: List[str] = []
        lines += self.meta_members()
        for prop in self.props:
            lines += prop.generate_members()
        lines += self.object_members()
        lines += self.meta_class()
        return lines

    # ---------------- class-wide members ----------------

    def meta_members(self) -> List[str]:
        m = self.model
        return [
            "\t@classmethod",
            f'\tdef meta(cls) -> "{m.class_name}.Meta":',
            f'\t\t"""The meta-bean for ``{m.class_name}``."""',
            "\t\treturn cls.Meta.instance()",
            "",
            f'\tdef meta_bean(self) -> "{m.class_name}.Meta":',
            "\t\treturn self.Meta.instance()",
            "",
            "\t@classmethod",
            f'\tdef builder(cls) -> "BeanBuilder[{m.bean_type}]":',
            "\t\treturn cls.Meta.instance().builder()",
            "",
        ]

    def object_members(self) -> List[str]:
        stored = [d.field_name for d in self.model.stored_properties]
        if stored:
            self.uses.add("BeanUtils")
        lines = [f"\t{SEPARATOR}"]

        lines += [
            "\tdef __eq__(self, obj: object) -> bool:",
            "\t\tif obj is self:",
            "\t\t\treturn True",
            "\t\tif obj is not None and type(obj) is type(self):",
        ]
        checks = [f"BeanUtils.equal(self.{f}, obj.{f})" for f in stored]
        if not checks:
            lines.append("\t\t\treturn True")
        elif len(checks) == 1:
            lines.append(f"\t\t\treturn {checks[0]}")
        else:
            lines.append(f"\t\t\treturn ({checks[0]}")
            lines += [f"\t\t\t\t\tand {c}" for c in checks[1:-1]]
            lines.append(f"\t\t\t\t\tand {checks[-1]})")
        lines += ["\t\treturn False", ""]

        lines += ["\tdef __hash__(self) -> int:", "\t\thash_ = 7"]
        lines += [f"\t\thash_ = hash_ * 31 + BeanUtils.hash_code(self.{f})" for f in stored]
        lines += ["\t\treturn hash_", ""]

        name = self.model.class_name
        lines.append("\tdef __repr__(self) -> str:")
        if not stored:
            lines.append(f"\t\treturn {py_str(name + '{}')}")
        else:
            parts = self.model.stored_properties
            lines.append(f"\t\treturn ({py_str(name + '{')}")
            for i, d in enumerate(parts):
                sep = ", " if i < len(parts) - 1 else ""
                lines.append(f'\t\t\t\tf"{d.name}={{self.{d.field_name}!r}}{sep}"')
            lines.append('\t\t\t\t"}")')
        lines.append("")
        return lines

    def meta_class(self) -> List[str]:
        m = self.model
        base = "ImmutableMetaBean" if m.is_immutable else "DirectMetaBean"
        self.uses.add(base)
        lines = [
            f"\t{SEPARATOR}",
            f"\tclass Meta({base}):",
            f'\t\t"""The meta-bean for ``{m.class_name}``."""',
            "",
            "\t\tdef __init__(self) -> None:",
            f"\t\t\tsuper().__init__({m.bean_ref})",
        ]
        for prop in self.props:
            lines += prop.generate_meta_property()
        if not self.props:
            lines.append("\t\t\tself._init_meta_properties()")
        else:
            lines.append("\t\t\tself._init_meta_properties(")
            lines += [f"\t\t\t\tself.{prop.decl.name}," for prop in self.props]
            lines.append("\t\t\t)")
        lines.append("")
        return lines


def generate(lines: Sequence[str], *, indent: Optional[str] = None, prefix: str = "_",
             source: Optional[str] = None) -> Optional[GenerationResult]:
    """Regenerates the bean region of a module, or None when it holds no bean.

    Raises :class:`StructuralError` when the module is malformed.
    """
    model = parse_bean(lines, indent=indent, prefix=prefix, source=source)
    if model is None:
        return None
    gen = BeanGen(model)
    region = resolve_indent(gen.generate(), model.indent, model.body_indent)
    split = locate_region(lines, model.header_end, model.body_end, model.region_start, model.region_end)
    out = rewrite(split.prefix, split.suffix, region, model.body_indent)
    return GenerationResult(out, model, gen.runtime_names(), original=list(lines))
