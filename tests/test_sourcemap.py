"""
Inline source maps: VLQ encoding and line mappings of embedded files.
"""
from __future__ import annotations

import asyncio
import base64
import json

import pytest

from bt_bundle.core.compiler.emitter import compile_bundle
from bt_bundle.core.compiler.models import SourceFragment
from bt_bundle.core.compiler.output_file import OutputFile
from bt_bundle.core.compiler.sourcemap import encode_vlq

PREFIX = "//# sourceMappingURL=data:application/json;charset=utf-8;base64,"


def _decode_inline_map(code: str) -> dict:
    last = code.rstrip("\n").split("\n")[-1]
    assert last.startswith(PREFIX)
    return json.loads(base64.b64decode(last[len(PREFIX):]).decode("utf-8"))


@pytest.mark.parametrize(
    "value, expected",
    [(0, "A"), (1, "C"), (-1, "D"), (15, "e"), (16, "gB"), (-16, "hB"), (123, "2H")],
)
def test_encode_vlq(value, expected):
    assert encode_vlq(value) == expected


def test_render_without_source_map_has_no_comment():
    f = OutputFile("/out/bundle.js")
    f.write_line("a")
    f.write_file_content("/out/src.js", "b\n")
    assert f.render() == "a\nb\n"


def test_embedded_lines_map_to_original_lines():
    f = OutputFile("/out/bundle.js", use_source_map=True)
    f.write_line("header")
    f.write_file_content("/out/src/one.js", "a\nb\n")
    f.write_file_content("/out/src/two.js", "c")

    smap = _decode_inline_map(f.render())

    assert smap["version"] == 3
    assert smap["file"] == "bundle.js"
    assert smap["sources"] == ["src/one.js", "src/two.js"]
    assert smap["sourcesContent"] == ["a\nb\n", "c"]
    # line 0 unmapped, one.js lines 0..1, then two.js line 0
    assert smap["mappings"] == ";AAAA;AACA;ACDA"


def test_compiled_module_maps_core_and_templates(core_file):
    tpl = core_file.parent / "blocks" / "page.bt.js"
    fragments = [SourceFragment(path=str(tpl), rel_path="blocks/page.bt.js", contents="bt.lib.x = 1;\nbt.lib.y = 2;")]
    opts = dict(filename=str(core_file.parent / "out.js"), btFilename=str(core_file), sourcemap=True)

    code = asyncio.run(compile_bundle(fragments, opts))
    smap = _decode_inline_map(code)

    assert smap["sources"] == ["core.js", "blocks/page.bt.js"]
    lines = code.split("\n")
    segments = smap["mappings"].split(";")
    template_line = lines.index("bt.lib.y = 2;")
    # second template line: template source, original line 1
    assert segments[template_line] == "AACA"
    assert segments[1] == "AAAA"


def test_source_map_disabled_by_default(core_file):
    opts = dict(filename=str(core_file.parent / "out.js"), btFilename=str(core_file))
    code = asyncio.run(compile_bundle([], opts))
    assert "sourceMappingURL" not in code
