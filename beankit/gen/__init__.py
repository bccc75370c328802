"""Source generator: marker parser, region rewriter and code synthesizer."""

from .bean_gen import BeanGen, GenerationResult, generate
from .model import Construction, GeneratedClassModel, GenStyle, PropertyDeclaration
from .parser import parse_bean
from .region import AUTOGENERATED_END, AUTOGENERATED_START, RegionSplit, locate_region, rewrite

__all__ = [
    "AUTOGENERATED_END",
    "AUTOGENERATED_START",
    "BeanGen",
    "Construction",
    "GenStyle",
    "GeneratedClassModel",
    "GenerationResult",
    "PropertyDeclaration",
    "RegionSplit",
    "generate",
    "locate_region",
    "parse_bean",
    "rewrite",
]
