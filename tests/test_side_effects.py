from shakecheck.js_parse import parse_tree
from shakecheck.node_types import SourceFile
from shakecheck.side_effects import analyze_side_effects, check_side_effects_config


MODULE = """\
import "./polyfill";
import "./theme.css";
import { setup } from "./setup";
setTimeout(setup, 0);
window.APP = {};
console.log("ready");
document.addEventListener("click", setup);
export const data = fetch("/api");
function later() {
  setInterval(setup, 100);
}
const mod = require("./x");
"""


def _found(effects):
    return [(s.line, s.kind, s.severity, s.pattern) for s in effects]


def test_top_level_effects_from_parsed_file():
    source = SourceFile(path="/p/app.js", text=MODULE)
    tree = parse_tree(source)
    assert not tree.root_node.has_error
    effects = analyze_side_effects(source, "app.js", tree)
    assert _found(effects) == [
        (1, "bare-import", "low", "import './polyfill'"),
        (4, "call", "high", "setTimeout()"),
        (5, "global-assignment", "high", "Global assignment: window.APP"),
        (6, "statement", "medium", 'console.log("ready");'),
        (7, "call", "high", "addEventListener()"),
        (8, "call", "high", "fetch()"),
    ]
    assert all(s.file == "app.js" for s in effects)


def test_unparsable_file_uses_mask_patterns():
    text = MODULE + "// setTimeout(later, 5);\nconst broken = {;\n"
    source = SourceFile(path="/p/app.js", text=text)
    assert parse_tree(source).root_node.has_error
    effects = analyze_side_effects(source, "app.js")
    assert [(s.line, s.kind, s.severity) for s in effects] == [
        (1, "bare-import", "low"),
        (4, "call", "high"),
        (5, "global-assignment", "high"),
        (6, "statement", "medium"),
        (7, "call", "high"),
        (8, "call", "high"),
    ]


def test_module_without_effects():
    text = 'import { a } from "./a";\nexport function run() {\n  console.log(a);\n}\n'
    source = SourceFile(path="/p/lib.ts", text=text)
    assert analyze_side_effects(source, "lib.ts", parse_tree(source)) == []


def test_side_effect_issue_shape():
    source = SourceFile(path="/p/app.js", text="setInterval(tick, 1000);\n")
    [effect] = analyze_side_effects(source, "app.js", parse_tree(source))
    issue = effect.to_issue()
    assert issue["type"] == "side-effect"
    assert issue["severity"] == "high"
    assert issue["line"] == 1
    assert "setInterval()" in issue["description"]
    assert issue["suggestion"]["title"] == "Move to an initialization function"


def test_package_json_side_effects_field(tmp_path, w):
    assert check_side_effects_config(str(tmp_path)) == []

    w("package.json", '{"name": "app"}')
    [missing] = check_side_effects_config(str(tmp_path))
    assert (missing.file, missing.line, missing.kind, missing.severity) == (
        "package.json",
        None,
        "config-missing",
        "medium",
    )
    assert missing.to_issue()["type"] == "missing-sideeffects-config"

    w("package.json", '{"sideEffects": true}')
    [everything] = check_side_effects_config(str(tmp_path))
    assert (everything.kind, everything.severity) == ("config-true", "high")
    assert everything.to_issue()["type"] == "side-effect"

    w("package.json", '{"sideEffects": false}')
    assert check_side_effects_config(str(tmp_path)) == []
    w("package.json", '{"sideEffects": ["*.css"]}')
    assert check_side_effects_config(str(tmp_path)) == []
    w("package.json", "{not json")
    assert check_side_effects_config(str(tmp_path)) == []
