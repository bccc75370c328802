"""
File-level driver for the bean generator.

- Walk the given files/folders for Python modules (exclude set, optional recursion)
- Regenerate the AUTOGENERATED region of each bean class
- Dry-run and check modes (nothing written; check reports stale files)
- Backups: one session per run (.beankit/backups/<timestamp>/)
- Project settings from .beankit/settings.json, overridden by CLI flags
- Warn when a module does not import a runtime name its region uses
"""

from __future__ import annotations

import json
import os
import re
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .errors import StructuralError
from .gen import GeneratedClassModel, GenerationResult, generate, parse_bean
from .gen.parser import IMPORT_RE, mask_lines
from .gen.region import find_markers

# ---------------- constants ----------------

SETTINGS_DIR = ".beankit"
SETTINGS_FILE = "settings.json"

EXCLUDE_DIRS = {
    ".beankit",
    ".git", ".hg", ".idea", ".vscode",
    "__pycache__", ".mypy_cache", ".pytest_cache", ".tox", ".nox",
    ".venv", "venv", "env", "build", "dist", "node_modules",
}

BACKUP_MODES = ("none", "all")

console = Console()

# ---------------- tiny utils ----------------

def p(msg: str) -> None:
    console.print(msg)

def read_text(pth: Path) -> str:
    # bytes, so CRLF files keep their line endings
    return pth.read_bytes().decode("utf-8")

def write_text(pth: Path, txt: str) -> None:
    pth.parent.mkdir(parents=True, exist_ok=True)
    pth.write_bytes(txt.encode("utf-8"))

def relpath(pth: Path, root: Path) -> str:
    try:
        return str(pth.resolve().relative_to(root.resolve()))
    except ValueError:
        return str(pth)

def parse_indent(raw: Optional[str]) -> Optional[str]:
    """``tab`` -> a tab, ``N`` -> N spaces, empty -> None (detect from the class)."""
    if raw is None or raw == "":
        return None
    if raw.lower() == "tab":
        return "\t"
    if raw.isdigit() and int(raw) > 0:
        return " " * int(raw)
    raise ValueError(f"Invalid indent: {raw!r} (use 'tab' or a number of spaces)")

# ---------------- settings ----------------

@dataclass
class Settings:
    root: Path
    indent: Optional[str] = None
    prefix: str = "_"
    exclude_dirs: Set[str] = field(default_factory=lambda: set(EXCLUDE_DIRS))
    recursive: bool = False
    dry_run: bool = False
    check: bool = False
    backup_mode: str = "none"

def load_settings(root: Path) -> Dict[str, object]:
    cfg = root / SETTINGS_DIR / SETTINGS_FILE
    if not cfg.exists():
        return {}
    try:
        data = json.loads(read_text(cfg))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        p(f"[WARN] Ignoring {escape(str(cfg))}: {escape(str(e))}")
        return {}
    if not isinstance(data, dict):
        p(f"[WARN] Ignoring {escape(str(cfg))}: expected a JSON object")
        return {}
    return {str(k).lower(): v for k, v in data.items()}

def make_settings(root: Path, **overrides: Any) -> Settings:
    """Defaults, then the project's settings file, then non-None ``overrides``."""
    data = load_settings(root)
    settings = Settings(root=root)
    if "indent" in data:
        settings.indent = parse_indent(str(data["indent"]))
    if "prefix" in data:
        settings.prefix = str(data["prefix"])
    if "exclude_dirs" in data and isinstance(data["exclude_dirs"], list):
        settings.exclude_dirs |= {str(d) for d in data["exclude_dirs"]}
    if data.get("backup_mode") in BACKUP_MODES:
        settings.backup_mode = str(data["backup_mode"])
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "exclude_dirs":
            settings.exclude_dirs |= set(value)
        else:
            setattr(settings, key, value)
    return settings

# ---------------- backups ----------------

_BACKUP_SESSION_DIR: Dict[str, Path] = {}

def beankit_dir(root: Path) -> Path:
    d = root / SETTINGS_DIR
    d.mkdir(parents=True, exist_ok=True)
    return d

def get_backup_session_dir(root: Path) -> Path:
    key = str(root.resolve())
    if key in _BACKUP_SESSION_DIR:
        return _BACKUP_SESSION_DIR[key]
    d = beankit_dir(root) / "backups" / time.strftime("%Y%m%d-%H%M%S")
    d.mkdir(parents=True, exist_ok=True)
    _BACKUP_SESSION_DIR[key] = d
    return d

def backup_file(settings: Settings, f: Path) -> Optional[Path]:
    if not f.exists() or settings.backup_mode == "none":
        return None
    target = get_backup_session_dir(settings.root) / relpath(f, settings.root)
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(f, target)
    return target

# ---------------- discovery ----------------

def iter_python_files(paths: Iterable[Path], *, recursive: bool, exclude_dirs: Set[str]) -> List[Path]:
    out: List[Path] = []
    for path in paths:
        if path.is_file():
            if path.suffix == ".py":
                out.append(path)
            continue
        if not path.is_dir():
            continue
        if not recursive:
            out.extend(sorted(x for x in path.iterdir() if x.is_file() and x.suffix == ".py"))
            continue
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames[:] = sorted(d for d in dirnames if d not in exclude_dirs)
            for fn in sorted(filenames):
                if fn.endswith(".py"):
                    out.append(Path(dirpath) / fn)
    seen: Set[Path] = set()
    unique: List[Path] = []
    for f in out:
        key = f.resolve()
        if key not in seen:
            seen.add(key)
            unique.append(f)
    return unique

# ---------------- imports ----------------

_IMPORT_NAME_RE = re.compile(r"(\w+)(?:\s+as\s+(\w+))?")

def imported_names(lines: List[str], skip: Tuple[int, int] = (-1, -1)) -> Set[str]:
    """Names bound by import statements, ignoring lines in ``skip`` (inclusive)."""
    code, in_string = mask_lines(lines)
    names: Set[str] = set()
    i = 0
    while i < len(code):
        if skip[0] <= i <= skip[1] or in_string[i] or not IMPORT_RE.match(code[i]):
            i += 1
            continue
        stmt = code[i].strip()
        while ("(" in stmt and ")" not in stmt) or stmt.endswith("\\"):
            i += 1
            if i >= len(code):
                break
            stmt = stmt.rstrip("\\") + " " + code[i].strip()
        i += 1
        if stmt.startswith("from "):
            _, _, targets = stmt.partition(" import ")
            targets = targets.replace("(", " ").replace(")", " ")
        else:
            targets = stmt[len("import "):]
        for part in targets.split(","):
            m = _IMPORT_NAME_RE.search(part.strip())
            if m:
                names.add(m.group(2) or m.group(1))
    return names

def missing_imports(result: GenerationResult) -> List[str]:
    """Runtime names the generated region uses that the module never imports."""
    defined = imported_names(result.lines, find_markers(result.lines, 0, len(result.lines)))
    return sorted(n for n in result.runtime_names if n not in defined)

# ---------------- generation ----------------

@dataclass
class FileReport:
    path: Path
    status: str
    bean: str = ""
    properties: List[str] = field(default_factory=list)
    message: str = ""
    warnings: List[str] = field(default_factory=list)

def split_lines(text: str) -> Tuple[List[str], str, bool]:
    newline = "\r\n" if "\r\n" in text else "\n"
    return text.splitlines(), newline, text.endswith(("\n", "\r"))

def join_lines(lines: List[str], newline: str, trailing: bool) -> str:
    text = newline.join(lines)
    return text + newline if trailing and lines else text

def generate_text(text: str, settings: Settings, source: Optional[str] = None) -> Tuple[str, Optional[GenerationResult]]:
    """The regenerated module text; the input unchanged when it holds no bean."""
    lines, newline, trailing = split_lines(text)
    result = generate(lines, indent=settings.indent, prefix=settings.prefix, source=source)
    if result is None:
        return text, None
    return join_lines(result.lines, newline, trailing), result

def process_file(path: Path, settings: Settings) -> FileReport:
    rel = relpath(path, settings.root)
    try:
        text = read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        return FileReport(path, "error", message=str(e))
    try:
        new_text, result = generate_text(text, settings, source=rel)
    except StructuralError as e:
        return FileReport(path, "error", message=str(e))
    if result is None:
        return FileReport(path, "skipped")

    report = FileReport(path, "unchanged", bean=result.model.class_name,
                        properties=[d.name for d in result.model.properties])
    report.warnings = [f"missing import: {name}" for name in missing_imports(result)]
    if new_text == text:
        return report
    if settings.check:
        report.status = "stale"
        return report
    report.status = "updated"
    if settings.dry_run:
        report.message = "dry-run"
        return report
    backup_file(settings, path)
    write_text(path, new_text)
    return report

def run(paths: Iterable[Path], settings: Settings) -> List[FileReport]:
    files = iter_python_files(paths, recursive=settings.recursive, exclude_dirs=settings.exclude_dirs)
    return [process_file(f, settings) for f in files]

def inspect_file(path: Path, settings: Settings) -> Optional[GeneratedClassModel]:
    lines, _, _ = split_lines(read_text(path))
    return parse_bean(lines, indent=settings.indent, prefix=settings.prefix, source=relpath(path, settings.root))

# ---------------- UI ----------------

STATUS_STYLE = {
    "updated": "green",
    "unchanged": "dim",
    "stale": "yellow",
    "skipped": "dim",
    "error": "red",
}

def show_reports(reports: List[FileReport], settings: Settings) -> None:
    t = Table(title="Bean generation")
    t.add_column("#", justify="right")
    t.add_column("File")
    t.add_column("Bean")
    t.add_column("Properties", justify="right")
    t.add_column("Status")
    for i, r in enumerate(reports, start=1):
        if r.status == "skipped":
            continue
        style = STATUS_STYLE.get(r.status, "")
        status = f"[{style}]{r.status}[/{style}]" if style else r.status
        t.add_row(str(i), escape(relpath(r.path, settings.root)), r.bean,
                  str(len(r.properties)) if r.bean else "", status)
    console.print(t)
    for r in reports:
        if r.status == "error":
            p(f"[ERROR] {escape(r.message)}")
        for w in r.warnings:
            p(f"[WARN] {escape(relpath(r.path, settings.root))}: {escape(w)}")

def show_beans(models: List[Tuple[Path, GeneratedClassModel]], settings: Settings) -> None:
    for path, model in models:
        t = Table(title=f"{model.bean_type} ({escape(relpath(path, settings.root))})")
        t.add_column("#", justify="right")
        t.add_column("Property")
        t.add_column("Type")
        t.add_column("Style")
        t.add_column("Field")
        t.add_column("Line", justify="right")
        for i, d in enumerate(model.properties, start=1):
            t.add_row(str(i), d.name, escape(d.type_text), d.style.value, d.field_name or "-", str(d.line + 1))
        console.print(t)
