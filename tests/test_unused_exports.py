from shakecheck.data_collector import collect_project_data
from shakecheck.unused_exports import find_unused_exports, make_entry_point_predicate


def _unused(tmp_path, files, is_entry_point=lambda p: False):
    project = collect_project_data([str(tmp_path / f) for f in files], root=str(tmp_path))
    return find_unused_exports(project.graph, is_entry_point, str(tmp_path))


def _pairs(findings):
    return sorted((f.file, f.name) for f in findings)


def test_two_exports_without_importers_are_unused(tmp_path, w):
    w("lib.ts", "export const a = 1;\nexport function b() {}\n")
    findings = _unused(tmp_path, ["lib.ts"])
    assert _pairs(findings) == [("lib.ts", "a"), ("lib.ts", "b")]
    assert {f.line for f in findings} == {1, 2}
    assert all(f.severity == "low" for f in findings)


def test_imported_export_is_used_and_orphan_is_not(tmp_path, w):
    w("a.ts", "export const foo = 1;\n")
    w("b.ts", 'import { foo } from "./a";\nconsole.log(foo);\n')
    w("c.ts", "export const bar = 2;\n")
    findings = _unused(tmp_path, ["a.ts", "b.ts", "c.ts"])
    assert _pairs(findings) == [("c.ts", "bar")]


def test_default_and_namespace_imports(tmp_path, w):
    w("d.ts", "export default function d() {}\nexport const extra = 1;\n")
    w("n.ts", "export const p = 1;\nexport const q = 2;\n")
    w("use.ts", 'import d from "./d";\nimport * as n from "./n";\nd(n);\n')
    findings = _unused(tmp_path, ["d.ts", "n.ts", "use.ts"])
    assert _pairs(findings) == [("d.ts", "extra")]


def test_entry_point_exports_are_exempt(tmp_path, w):
    w("src/index.ts", "export const publicApi = 1;\n")
    w("src/helper.ts", "export const internal = 1;\n")
    pred = make_entry_point_predicate(str(tmp_path))
    findings = _unused(tmp_path, ["src/index.ts", "src/helper.ts"], pred)
    assert _pairs(findings) == [("src/helper.ts", "internal")]


def test_entry_point_predicate_patterns(tmp_path):
    pred = make_entry_point_predicate(str(tmp_path), ["app/Main.*"])
    assert pred(str(tmp_path / "app" / "main.tsx"))
    assert not pred(str(tmp_path / "app" / "other.tsx"))
    default = make_entry_point_predicate(str(tmp_path))
    assert default(str(tmp_path / "src" / "main.js"))
    assert default(str(tmp_path / "index.ts"))
    assert not default(str(tmp_path / "src" / "lib" / "util.ts"))


def test_wildcard_record_itself_is_never_reported(tmp_path, w):
    w("lib/a.ts", "export const one = 1;\n")
    w("lib/index.ts", 'export * from "./a";\n')
    findings = _unused(tmp_path, ["lib/a.ts", "lib/index.ts"])
    assert findings == []


def test_namespace_import_from_unparsable_file_marks_all_used(tmp_path, w):
    w("n.ts", "export const p = 1;\nexport const q = 2;\n")
    w("use.ts", 'import * as n from "./n";\nexport default n.p +;\n')
    project = collect_project_data([str(tmp_path / "n.ts"), str(tmp_path / "use.ts")], root=str(tmp_path))
    assert project.fallback == [str(tmp_path / "use.ts")]
    findings = find_unused_exports(project.graph, lambda p: p.endswith("use.ts"), str(tmp_path))
    assert _pairs(findings) == []
