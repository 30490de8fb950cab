from __future__ import annotations

import json
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from deprecheck.config import AnalyzerConfig
from deprecheck.models import Severity
from deprecheck.pipeline import analyze_paths, main
from deprecheck.storage import load_graph


LIB = '''from typing_extensions import deprecated

@deprecated("Use Spam instead")
class Ham:
    pass
'''

APP = '''from pkg.lib import Ham

def serve():
    return Ham()
'''


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DEPRECHECK_SEVERITY", "DEPRECHECK_DECORATORS", "DEPRECHECK_EXCLUDE", "DEPRECHECK_FORMAT"):
        monkeypatch.delenv(name, raising=False)


def write_tree(root: Path) -> None:
    (root / "pkg").mkdir()
    (root / "pkg" / "__init__.py").write_text("", encoding="utf-8")
    (root / "pkg" / "lib.py").write_text(LIB, encoding="utf-8")
    (root / "pkg" / "app.py").write_text(APP, encoding="utf-8")


def test_analyze_paths_on_disk():
    with TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_tree(root)
        out_path = root / "graph.json"

        result = analyze_paths([root], AnalyzerConfig(), graph_output=out_path)
        graph = load_graph(out_path)

    assert len(result.files) == 3
    assert [(Path(d.location.path).name, d.location.line) for d in result.diagnostics] == [
        ("app.py", 1),
        ("app.py", 4),
    ]
    assert not result.has_errors
    assert graph.has_node("def:pkg.lib:Ham")


def test_missing_paths_are_skipped():
    with TemporaryDirectory() as tmpdir:
        result = analyze_paths([Path(tmpdir) / "nope"])
    assert result.diagnostics == []
    assert result.files == []


def test_cli_text_output_and_exit_code(capsys):
    with TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_tree(root)

        assert main([str(root)]) == 0
        out = capsys.readouterr().out
        assert f"{Path('pkg') / 'app.py'}:4:12: warning: Use Spam instead [deprecated]" in out
        assert "2 diagnostics (0 errors, 2 warnings)" in out

        assert main([str(root), "--severity", "error"]) == 1
        assert "error: Use Spam instead" in capsys.readouterr().out


def test_cli_json_output(capsys):
    with TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_tree(root)

        assert main([str(root), "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)

    assert data["summary"]["total"] == 2
    assert data["summary"]["files"] == 1
    assert data["diagnostics"][0]["reference_kind"] == "import"
    assert data["diagnostics"][1]["reference_kind"] == "call"
    assert data["diagnostics"][1]["severity"] == Severity.WARNING.value


def test_cli_severity_ignore(capsys):
    with TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_tree(root)
        assert main([str(root), "--severity", "off"]) == 0
    assert "0 diagnostics" in capsys.readouterr().out


def test_cli_rejects_bad_severity():
    with TemporaryDirectory() as tmpdir:
        with pytest.raises(SystemExit) as excinfo:
            main([tmpdir, "--severity", "loud"])
    assert excinfo.value.code == 2
