import json

import pytest

from beankit.cli import build_parser, main
from beankit.codegen import (
    generate_text, imported_names, iter_python_files, make_settings, parse_indent, process_file,
)
from beankit.gen import AUTOGENERATED_START

from conftest import ADDRESS_SOURCE, PERSON_SOURCE

BROKEN_SOURCE = '''\
from beankit import DirectBean


class Broken(DirectBean):
    # @PropertyDefinition(colour="red")
    _a: int = 0
'''


@pytest.fixture
def project(tmp_path):
    (tmp_path / "address.py").write_text(ADDRESS_SOURCE, encoding="utf-8")
    (tmp_path / "plain.py").write_text("x = 1\n", encoding="utf-8")
    pkg = tmp_path / "pkg"
    pkg.mkdir()
    (pkg / "person.py").write_text(PERSON_SOURCE, encoding="utf-8")
    return tmp_path


def test_generate_then_check(project):
    assert main(["check", str(project), "--root", str(project), "-r"]) == 1
    assert main(["generate", str(project), "--root", str(project), "-r"]) == 0
    assert AUTOGENERATED_START in (project / "address.py").read_text(encoding="utf-8")
    assert AUTOGENERATED_START in (project / "pkg" / "person.py").read_text(encoding="utf-8")
    assert (project / "plain.py").read_text(encoding="utf-8") == "x = 1\n"
    assert main(["check", str(project), "--root", str(project), "-r"]) == 0


def test_non_recursive_skips_subfolders(project):
    assert main(["generate", str(project), "--root", str(project)]) == 0
    assert AUTOGENERATED_START not in (project / "pkg" / "person.py").read_text(encoding="utf-8")


def test_dry_run_writes_nothing(project):
    assert main(["generate", str(project / "address.py"), "--root", str(project), "--dry-run"]) == 0
    assert (project / "address.py").read_text(encoding="utf-8") == ADDRESS_SOURCE


def test_backup_session(project):
    target = project / "address.py"
    assert main(["generate", str(target), "--root", str(project), "--backup-mode", "all"]) == 0
    backups = list((project / ".beankit" / "backups").glob("*/address.py"))
    assert len(backups) == 1
    assert backups[0].read_text(encoding="utf-8") == ADDRESS_SOURCE


def test_error_in_one_file_does_not_stop_others(project):
    (project / "broken.py").write_text(BROKEN_SOURCE, encoding="utf-8")
    assert main(["generate", str(project), "--root", str(project)]) == 1
    assert (project / "broken.py").read_text(encoding="utf-8") == BROKEN_SOURCE
    assert AUTOGENERATED_START in (project / "address.py").read_text(encoding="utf-8")

    report = process_file(project / "broken.py", make_settings(project))
    assert report.status == "error"
    assert report.message.startswith("broken.py:5:")


def test_settings_file_and_flags(project):
    settings_dir = project / ".beankit"
    settings_dir.mkdir()
    (settings_dir / "settings.json").write_text(json.dumps({"indent": "2", "exclude_dirs": ["pkg"]}))
    settings = make_settings(project)
    assert settings.indent == "  "
    assert "pkg" in settings.exclude_dirs
    assert make_settings(project, indent="\t").indent == "\t"

    files = iter_python_files([project], recursive=True, exclude_dirs=settings.exclude_dirs)
    assert sorted(f.name for f in files) == ["address.py", "plain.py"]

    assert main(["generate", str(project / "address.py"), "--root", str(project)]) == 0
    text = (project / "address.py").read_text(encoding="utf-8")
    assert "\n    def get_number(self) -> int:\n      \"\"\"Gets the number.\"\"\"" in text


def test_bad_settings_file_is_ignored(project):
    (project / ".beankit").mkdir()
    (project / ".beankit" / "settings.json").write_text("{not json", encoding="utf-8")
    assert make_settings(project).prefix == "_"


def test_missing_import_warning(project):
    source = ADDRESS_SOURCE.replace(", Maybe", "")
    (project / "address.py").write_text(source, encoding="utf-8")
    report = process_file(project / "address.py", make_settings(project))
    assert report.status == "updated"
    assert report.warnings == ["missing import: Maybe"]
    assert report.bean == "Address"
    assert "nickname" in report.properties


def test_check_mode_reports_stale(project):
    report = process_file(project / "address.py", make_settings(project, check=True))
    assert report.status == "stale"
    assert (project / "address.py").read_text(encoding="utf-8") == ADDRESS_SOURCE


def test_crlf_line_endings_are_kept(project):
    target = project / "address.py"
    target.write_bytes(ADDRESS_SOURCE.replace("\n", "\r\n").encode("utf-8"))
    assert main(["generate", str(target), "--root", str(project)]) == 0
    data = target.read_bytes()
    assert AUTOGENERATED_START.encode("utf-8") in data
    assert b"\n" not in data.replace(b"\r\n", b"")
    assert data.endswith(b"\r\n")


def test_generate_text_without_bean(project):
    text, result = generate_text("x = 1\n", make_settings(project))
    assert text == "x = 1\n"
    assert result is None


def test_show(project, capsys):
    assert main(["show", str(project / "address.py"), "--root", str(project)]) == 0
    out = capsys.readouterr().out
    assert "nickname" in out
    assert main(["show", str(project / "plain.py"), "--root", str(project)]) == 1


def test_imported_names():
    names = imported_names([
        "import os.path",
        "from beankit import (",
        "    BeanUtils,",
        "    DirectBean as Base,",
        ")",
        "from typing import List",
    ])
    assert names == {"os", "BeanUtils", "Base", "List"}


def test_parse_indent():
    assert parse_indent("tab") == "\t"
    assert parse_indent("4") == "    "
    assert parse_indent(None) is None
    with pytest.raises(ValueError):
        parse_indent("wide")


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_missing_path_exits(project):
    with pytest.raises(SystemExit):
        main(["generate", str(project / "nope.py"), "--root", str(project)])
