"""
Build step and CLI: templates on disk -> compiled target file.
"""
from __future__ import annotations

import asyncio
import json

import pytest

from bt_bundle.cli import main
from bt_bundle.core.build import build_bundle
from bt_bundle.core.config import parse_bundle_config
from bt_bundle.core.errors import BundlingError, TemplateReadError
from bt_bundle.core.observability.metrics import snapshot_named


@pytest.fixture()
def project(tmp_path, core_file):
    blocks = tmp_path / "blocks"
    blocks.mkdir()
    (blocks / "page.bt.js").write_text(
        "module.exports = function (bt) {\n    bt.lib.page = 'page';\n};\n", encoding="utf-8"
    )
    (blocks / "button.bt.js").write_text(
        "module.exports = function (bt) {\n    bt.lib.button = 'button';\n};\n", encoding="utf-8"
    )
    return tmp_path


def _config(**overrides):
    data = {
        "target": "dist/index.bt.js",
        "btFilename": "core.js",
        "templates": ["blocks/page.bt.js", "blocks/button.bt.js"],
    }
    data.update(overrides)
    return parse_bundle_config(data)


def test_build_writes_target(project, failing_bundler):
    result = asyncio.run(build_bundle(_config(), root=project, bundler=failing_bundler))

    target = project / "dist" / "index.bt.js"
    assert result.target == target
    assert result.fragments == 2

    code = target.read_text(encoding="utf-8")
    assert result.size == len(code.encode("utf-8"))
    assert "module.exports = function" not in code
    assert code.index("// begin: blocks/page.bt.js") < code.index("// begin: blocks/button.bt.js")
    assert "    bt.lib.page = 'page';" in code
    assert 'global["bt"] = bt;' in code
    assert failing_bundler.calls == 0
    assert snapshot_named()["compilations_succeeded"] == 1


def test_build_bundles_commonjs_requires(project, recording_bundler):
    cfg = _config(requires={"lodash": {"commonJS": "lodash"}})
    asyncio.run(build_bundle(cfg, root=project, bundler=recording_bundler))
    assert recording_bundler.calls == [(["lodash"], str(project / "dist"))]


def test_build_failure_writes_nothing(project, failing_bundler):
    cfg = _config(requires={"lodash": {"commonJS": "lodash"}})
    with pytest.raises(BundlingError):
        asyncio.run(build_bundle(cfg, root=project, bundler=failing_bundler))
    assert not (project / "dist" / "index.bt.js").exists()
    assert snapshot_named()["compilations_failed"] == 1


def test_build_missing_template(project, failing_bundler):
    with pytest.raises(TemplateReadError):
        asyncio.run(build_bundle(_config(templates=["blocks/nope.bt.js"]), root=project, bundler=failing_bundler))


def test_cli_build(project, capsys):
    cfg_path = project / "bt-bundle.json"
    cfg_path.write_text(json.dumps(_config().model_dump(by_alias=True)), encoding="utf-8")

    rc = main(["build", "--config", str(cfg_path), "--root", str(project)])

    assert rc == 0
    assert (project / "dist" / "index.bt.js").exists()
    assert "index.bt.js" in capsys.readouterr().out


def test_cli_compile_to_stdout(project, core_file, capsys, monkeypatch):
    monkeypatch.chdir(project)
    rc = main(
        [
            "compile",
            "blocks/page.bt.js",
            "--output",
            "out.js",
            "--core",
            str(core_file),
            "--alias",
            "ui",
            "--require",
            "jquery=globals:jQuery",
            "--bt-options",
            '{"a": 1}',
            "--stdout",
        ]
    )

    out = capsys.readouterr().out
    assert rc == 0
    assert "// begin: blocks/page.bt.js" in out
    assert 'bt.lib.jquery = global["jQuery"];' in out
    assert 'global["ui"] = bt;' in out
    assert 'bt.setOptions({"a":1});' in out
    assert not (project / "out.js").exists()


def test_cli_compile_no_scope_writes_output(project, core_file, monkeypatch):
    monkeypatch.chdir(project)
    rc = main(["compile", "blocks/page.bt.js", "-o", "build/out.js", "--core", str(core_file), "--no-scope"])
    assert rc == 0
    code = (project / "build" / "out.js").read_text(encoding="utf-8")
    assert "(function () {" not in code


def test_cli_missing_config_exit_code(tmp_path, capsys):
    assert main(["build", "--config", str(tmp_path / "absent.yaml")]) == 2
    assert "error:" in capsys.readouterr().err


def test_cli_bad_require_exit_code(project, core_file, capsys):
    assert main(["compile", "-o", str(project / "o.js"), "--core", str(core_file), "--require", "jquery"]) == 2


def test_cli_missing_core_exit_code(project, capsys):
    assert main(["compile", "-o", str(project / "o.js"), "--core", str(project / "missing.js")]) == 1
