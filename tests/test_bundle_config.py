from __future__ import annotations

import json
from pathlib import Path

import pytest

from bt_bundle.core.compiler.models import GlobalPath
from bt_bundle.core.config import BundleConfig, load_bundle_config, parse_bundle_config
from bt_bundle.core.errors import ConfigurationError

YAML_CONFIG = """\
target: dist/page.bt.js
btFilename: lib/bt.js
templates:
  - blocks/page.bt.js
requires:
  jquery:
    ym: jquery
    globals: jQuery
btOptions:
  jsAttrName: data-bem
sourcemap: true
"""


def test_load_yaml_config(tmp_path):
    p = tmp_path / "bt-bundle.yaml"
    p.write_text(YAML_CONFIG, encoding="utf-8")

    cfg = load_bundle_config(p)

    assert cfg.target == "dist/page.bt.js"
    assert cfg.bt_filename == "lib/bt.js"
    assert cfg.templates == ["blocks/page.bt.js"]
    assert cfg.requires == {"jquery": {"ym": "jquery", "globals": "jQuery"}}
    assert cfg.bt_options == {"jsAttrName": "data-bem"}
    assert cfg.sourcemap is True


def test_load_json_config(tmp_path):
    p = tmp_path / "bt-bundle.json"
    p.write_text(json.dumps({"target": "x.js", "mimic": "ui"}), encoding="utf-8")
    cfg = load_bundle_config(p)
    assert cfg.target == "x.js"
    assert cfg.mimic == ["ui"]


def test_defaults_follow_build_step():
    cfg = BundleConfig()
    assert cfg.target == "bundle.bt.js"
    assert cfg.mimic == ["bt"]
    assert cfg.bt_options == {}
    assert cfg.scope == "template"
    assert cfg.sourcemap is False
    assert cfg.bundler == "browserify"


def test_config_path_from_env(tmp_path, monkeypatch):
    p = tmp_path / "custom.yaml"
    p.write_text("target: env.js\n", encoding="utf-8")
    monkeypatch.setenv("BT_BUNDLE_CONFIG", str(p))
    assert load_bundle_config().target == "env.js"


def test_missing_config_is_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        load_bundle_config(tmp_path / "absent.yaml")


@pytest.mark.parametrize("text", ["- just\n- a list\n", "target: [unclosed\n", "target: {a: 1}\n"])
def test_malformed_config_is_configuration_error(tmp_path, text):
    p = tmp_path / "bad.yaml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_bundle_config(p)


def test_parse_bundle_config_rejects_non_mapping():
    with pytest.raises(ConfigurationError):
        parse_bundle_config(None)


def test_to_compile_options_resolves_paths(tmp_path):
    cfg = parse_bundle_config(
        {
            "target": "dist/page.bt.js",
            "btFilename": "lib/bt.js",
            "requires": {"jquery": {"globals": "jQuery"}},
        }
    )

    opts = cfg.to_compile_options(tmp_path)

    assert opts.filename == str(tmp_path / "dist" / "page.bt.js")
    assert opts.dirname == str(tmp_path / "dist")
    assert opts.bt_filename == str(tmp_path / "lib" / "bt.js")
    assert opts.mimic == ["bt"]
    assert isinstance(opts.requires[0].provider(GlobalPath), GlobalPath)


def test_to_compile_options_rejects_bad_requires(tmp_path):
    cfg = parse_bundle_config({"requires": {"jquery": {"amd": "jquery"}}})
    with pytest.raises(ConfigurationError):
        cfg.to_compile_options(Path(tmp_path))
