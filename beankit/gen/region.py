"""Locating and rewriting the generated region of a bean class.

The region is bounded by two canonical comment lines. Everything before the
start marker and after the end marker is passed through untouched; the
region itself is regenerated from scratch on every run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..errors import StructuralError

AUTOGENERATED_START = "# ------------------------- AUTOGENERATED START -------------------------"
AUTOGENERATED_END = "# -------------------------- AUTOGENERATED END --------------------------"
SEPARATOR = "# -----------------------------------------------------------------------"

START_TOKEN = " AUTOGENERATED START "
END_TOKEN = " AUTOGENERATED END "

# canonical indentation of synthesized lines, swapped for the real indent last
INDENT_TOKEN = "\t"


@dataclass(frozen=True)
class RegionSplit:
    prefix: Tuple[str, ...]
    region: Tuple[str, ...]
    suffix: Tuple[str, ...]
    created: bool


def is_start_marker(line: str) -> bool:
    s = line.strip()
    return s.startswith("#") and START_TOKEN in s


def is_end_marker(line: str) -> bool:
    s = line.strip()
    return s.startswith("#") and END_TOKEN in s


def find_markers(lines: Sequence[str], begin: int, end: int) -> Tuple[int, int]:
    """Indices of the start and end marker in ``lines[begin:end]`` (-1 if absent)."""
    start_idx = end_idx = -1
    for i in range(begin, end):
        if is_start_marker(lines[i]):
            if start_idx >= 0:
                raise StructuralError("Duplicate AUTOGENERATED START marker", line=i + 1)
            start_idx = i
        elif is_end_marker(lines[i]):
            if end_idx >= 0:
                raise StructuralError("Duplicate AUTOGENERATED END marker", line=i + 1)
            if start_idx < 0:
                raise StructuralError("AUTOGENERATED END marker without a start marker", line=i + 1)
            end_idx = i
    return start_idx, end_idx


def last_body_line(lines: Sequence[str], header_end: int, body_end: int) -> int:
    """Index of the last non-blank line of the class body (the header when empty)."""
    for i in range(body_end - 1, header_end, -1):
        if lines[i].strip():
            return i
    return header_end


def locate_region(lines: Sequence[str], header_end: int, body_end: int,
                  region_start: int = -1, region_end: int = -1) -> RegionSplit:
    """Splits ``lines`` around the generated region, creating an empty one if needed."""
    if region_start >= 0 and region_end >= 0:
        return RegionSplit(tuple(lines[:region_start]), tuple(lines[region_start + 1:region_end]),
                           tuple(lines[region_end + 1:]), created=False)
    if region_start >= 0:
        # start marker alone: the end marker goes right after it
        return RegionSplit(tuple(lines[:region_start]), (), tuple(lines[region_start + 1:]), created=True)

    last = last_body_line(lines, header_end, body_end)
    return RegionSplit(tuple(lines[:last + 1]), (), tuple(lines[last + 1:]), created=True)


def resolve_indent(region: Sequence[str], indent: str, body_indent: str) -> List[str]:
    """Swaps leading indent tokens for real indentation.

    The first token becomes the class body's own indentation, every further
    token one ``indent``.
    """
    out: List[str] = []
    for line in region:
        if not line.strip():
            out.append("")
            continue
        text = line.lstrip(INDENT_TOKEN)
        depth = len(line) - len(text)
        lead = body_indent + indent * (depth - 1) if depth else ""
        out.append(lead + text)
    return out


def rewrite(prefix: Sequence[str], suffix: Sequence[str], region: Sequence[str], marker_indent: str) -> List[str]:
    return [*prefix, marker_indent + AUTOGENERATED_START, *region, marker_indent + AUTOGENERATED_END, *suffix]
