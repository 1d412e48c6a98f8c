from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest

from bt_bundle.core.bundler.base import Bundler
from bt_bundle.core.errors import BundlingError
from bt_bundle.core.observability.metrics import reset_metrics

CORE_JS = (
    "function BT() { this.lib = {}; this.options = {}; }\n"
    "BT.prototype.setOptions = function (options) { this.options = options; return this; };\n"
)

FAKE_BUNDLE = 'require=(function () { return function (name) { return {bundled: name}; }; })();\n'


class RecordingBundler(Bundler):
    name = "recording"

    def __init__(self, output: str = FAKE_BUNDLE):
        self.output = output
        self.calls: List[Tuple[List[str], Optional[str]]] = []

    async def bundle(self, packages: Sequence[str], *, basedir: Optional[str] = None) -> str:
        self.calls.append((list(packages), basedir))
        return self.output


class FailingBundler(Bundler):
    name = "failing"

    def __init__(self):
        self.calls = 0

    async def bundle(self, packages: Sequence[str], *, basedir: Optional[str] = None) -> str:
        self.calls += 1
        raise BundlingError(f"Cannot find module '{packages[0]}'")


@pytest.fixture(autouse=True)
def _reset_named_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def core_file(tmp_path: Path) -> Path:
    p = tmp_path / "core.js"
    p.write_text(CORE_JS, encoding="utf-8")
    return p


@pytest.fixture()
def recording_bundler() -> RecordingBundler:
    return RecordingBundler()


@pytest.fixture()
def failing_bundler() -> FailingBundler:
    return FailingBundler()
