"""
beankit command line.

- generate: rewrite the AUTOGENERATED region of every bean found
- check:    report beans whose region is out of date (exit 1 if any)
- show:     list beans and their properties
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from rich.markup import escape

from . import __version__
from .codegen import (
    BACKUP_MODES, Settings, inspect_file, iter_python_files, make_settings, p, parse_indent, run,
    show_beans, show_reports,
)
from .errors import StructuralError
from .gen import GeneratedClassModel


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def _resolve_root(raw: Optional[str]) -> Path:
    root = Path(raw).expanduser().resolve() if raw else Path.cwd()
    if not root.is_dir():
        raise SystemExit(f"Project root not found: {root}")
    return root


def _resolve_paths(raw: Sequence[str]) -> List[Path]:
    paths = [Path(x).expanduser() for x in raw]
    missing = [str(x) for x in paths if not x.exists()]
    if missing:
        raise SystemExit("Path not found: " + ", ".join(missing))
    return paths


def _settings(args: argparse.Namespace, **extra: object) -> Settings:
    try:
        indent = parse_indent(args.indent)
    except ValueError as e:
        raise SystemExit(str(e))
    return make_settings(
        _resolve_root(args.root),
        indent=indent,
        prefix=args.prefix,
        exclude_dirs=_split_csv(args.exclude_dirs) or None,
        recursive=args.recursive or None,
        **extra,
    )


def run_generate(args: argparse.Namespace) -> int:
    settings = _settings(args, dry_run=args.dry_run or None, backup_mode=args.backup_mode)
    reports = run(_resolve_paths(args.paths), settings)
    show_reports(reports, settings)

    updated = sum(1 for r in reports if r.status == "updated")
    errors = sum(1 for r in reports if r.status == "error")
    p(f"\nGeneration complete. Updated: {updated}, errors: {errors}")
    if settings.dry_run and updated:
        p("Dry run: nothing was written.")
    if settings.backup_mode != "none" and updated and not settings.dry_run:
        p("Backups: .beankit/backups/<session>/")
    return 1 if errors else 0


def run_check(args: argparse.Namespace) -> int:
    settings = _settings(args, check=True)
    reports = run(_resolve_paths(args.paths), settings)
    show_reports(reports, settings)

    stale = [r for r in reports if r.status in ("stale", "error")]
    if stale:
        p(f"\n[FAIL] {len(stale)} file(s) need regeneration or have errors.")
        return 1
    p("\n[OK] All beans are up to date.")
    return 0


def run_show(args: argparse.Namespace) -> int:
    settings = _settings(args)
    files = iter_python_files(_resolve_paths(args.paths), recursive=settings.recursive,
                              exclude_dirs=settings.exclude_dirs)
    models: List[Tuple[Path, GeneratedClassModel]] = []
    rc = 0
    for f in files:
        try:
            model = inspect_file(f, settings)
        except StructuralError as e:
            p(f"[ERROR] {escape(str(e))}")
            rc = 1
            continue
        if model is not None:
            models.append((f, model))
    if not models:
        p("[WARN] No beans found.")
        return rc or 1
    show_beans(models, settings)
    return rc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="beankit", description="Bean source generator")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("paths", nargs="+", help="Python files or folders")
        p.add_argument("--root", default=None, help="Project root holding .beankit/ (default: cwd)")
        p.add_argument("-r", "--recursive", action="store_true", help="Descend into folders")
        p.add_argument("--indent", default=None, help="Indent of generated code: tab or N spaces (default: detect)")
        p.add_argument("--prefix", default=None, help="Field name prefix stripped to get the property name")
        p.add_argument("--exclude-dirs", default="", help="Comma-separated directories to exclude")

    gen = sub.add_parser("generate", help="Regenerate bean regions")
    add_common(gen)
    gen.add_argument("--dry-run", action="store_true", help="Do not write files")
    gen.add_argument("--backup-mode", default=None, choices=list(BACKUP_MODES), help="Backup mode")

    check = sub.add_parser("check", help="Fail if any bean region is out of date")
    add_common(check)

    show = sub.add_parser("show", help="List beans and their properties")
    add_common(show)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "generate":
        return run_generate(args)
    if args.command == "check":
        return run_check(args)
    if args.command == "show":
        return run_show(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
