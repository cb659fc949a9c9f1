import os
from pathlib import Path

import pytest

from shakecheck import analyze_project
from shakecheck.config_loader import AnalysisConfig


EXAMPLE = Path(__file__).resolve().parents[1] / "example_project"


def test_example_project_findings():
    result = analyze_project(EXAMPLE)
    summary = result["summary"]
    assert summary["analyzed_files"] == 8
    assert summary["fallback_files"] == 1
    assert summary["parsed_files"] == 7
    assert summary["unreadable_files"] == 0

    unused = sorted((u.file, u.name) for u in result["unused_exports"])
    assert unused == [
        ("src/components/index.js", "UNUSED_CONSTANT"),
        ("src/utils/date.ts", "unusedHelper"),
        ("src/utils/legacy.js", "legacy"),
    ]

    assert [set(c.members) for c in result["cycles"]] == [{"src/utils/format.ts", "src/utils/date.ts"}]
    assert result["cycles"][0].severity == "high"

    assert [(b.file, b.source) for b in result["barrels"]] == [
        ("src/components/index.js", "./button"),
        ("src/components/index.js", "./input"),
        ("src/components/index.js", "./modal"),
    ]

    assert [(s.file, s.kind, s.severity) for s in result["side_effects"]] == [
        ("src/components/index.js", "statement", "medium"),
    ]
    assert result["module_types"] == []

    assert summary["total_issues"] == 8
    assert summary["by_severity"] == {"critical": 0, "high": 4, "medium": 1, "low": 3}
    severities = [i["severity"] for i in result["issues"]]
    assert severities == ["high"] * 4 + ["medium"] + ["low"] * 3
    assert result["artifacts"] == {}


def test_explicit_file_list_and_entry_predicate(tmp_path, w):
    w("a.ts", "export const foo = 1;\n")
    w("b.ts", 'import { foo } from "./a";\nexport const used = foo;\n')
    w("c.ts", "export const bar = 2;\n")
    result = analyze_project(
        tmp_path,
        config=AnalysisConfig(),
        files=[str(tmp_path / "a.ts"), str(tmp_path / "c.ts")],
        is_entry_point=lambda p: False,
    )
    # b.ts is not in the file list, so a.ts/foo has no importer
    assert sorted(u.name for u in result["unused_exports"]) == ["bar", "foo"]
    assert result["summary"]["analyzed_files"] == 2


def test_log_receives_progress(tmp_path, w):
    w("broken.js", "export const a = ;\nexport const b = 1;\n")
    messages = []
    result = analyze_project(tmp_path, config=AnalysisConfig(), log=messages.append)
    assert result["summary"]["fallback_files"] == 1
    assert any("broken.js" in m for m in messages)
    assert [u.name for u in result["unused_exports"]] == ["a", "b"]


def test_renders_dot_when_output_given(tmp_path, w):
    w("x.ts", 'import { y } from "./y";\nexport const x = 1;\n')
    w("y.ts", 'import { x } from "./x";\nexport const y = 2;\n')
    out = tmp_path / "out"
    result = analyze_project(tmp_path, output=str(out), format="svg", config=AnalysisConfig(), files=None)
    dot_path = result["artifacts"]["dot"]
    assert os.path.exists(dot_path)
    dot = open(dot_path, encoding="utf-8").read()
    assert "#F44336" in dot
    assert "x.ts" in dot and "y.ts" in dot


def test_nonexistent_root_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        analyze_project(tmp_path / "missing")


def test_output_and_format_fall_back_to_config(tmp_path, w):
    w("pyproject.toml", '[tool.shakecheck]\noutput = "reports"\nformat = "png"\n')
    w("a.ts", 'import { b } from "./b";\nexport const a = b;\n')
    w("b.ts", "export const b = 1;\n")
    result = analyze_project(tmp_path)
    dot_path = result["artifacts"]["dot"]
    assert Path(dot_path) == tmp_path / "reports" / "dependency_graph.dot"
    assert os.path.exists(dot_path)
    assert set(result["artifacts"]) <= {"dot", "png"}


def test_output_argument_overrides_config(tmp_path, w):
    w("a.ts", "export const a = 1;\n")
    out = tmp_path / "elsewhere"
    config = AnalysisConfig(output="reports")
    result = analyze_project(tmp_path, output=str(out), config=config)
    assert Path(result["artifacts"]["dot"]) == out / "dependency_graph.dot"
    assert not (tmp_path / "reports").exists()


def test_side_effect_and_commonjs_findings(tmp_path, w):
    w("package.json", '{"name": "app"}')
    w("boot.js", 'import { run } from "./run";\nconst fs = require("fs");\nsetTimeout(run, 10);\n')
    w("run.js", "function run() {}\nmodule.exports = run;\n")
    result = analyze_project(tmp_path, config=AnalysisConfig())

    effects = [(s.file, s.kind, s.severity) for s in result["side_effects"]]
    assert effects == [
        ("package.json", "config-missing", "medium"),
        ("boot.js", "call", "high"),
    ]
    cjs = [(c.file, c.module, c.severity) for c in result["module_types"]]
    assert cjs == [("boot.js", "fs", "high"), ("run.js", None, "medium")]

    types = {i["type"] for i in result["issues"]}
    assert {"side-effect", "missing-sideeffects-config", "commonjs-module"} <= types
    assert result["summary"]["total_issues"] == len(result["issues"])
