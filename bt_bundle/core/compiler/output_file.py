from __future__ import annotations

import os
from typing import List, Optional

from .sourcemap import SourceMapBuilder

EOL = "\n"


def _split_lines(text: str) -> List[str]:
    if not text:
        return []
    if text.endswith(EOL):
        text = text[: -len(EOL)]
    return text.split(EOL)


class OutputFile:
    """
    Line buffer for emitted code.

    Text written with `write_file_content` is embedded verbatim and, when
    source maps are on, every embedded line maps back to its original line.
    """

    def __init__(self, filename: str, use_source_map: bool = False):
        self.filename = filename
        self.use_source_map = bool(use_source_map)
        self._lines: List[str] = []
        self._map: Optional[SourceMapBuilder] = (
            SourceMapBuilder(os.path.basename(filename)) if self.use_source_map else None
        )

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def write_line(self, text: str) -> None:
        self._lines.extend(text.split(EOL))

    def write_file_content(self, path: str, contents: str) -> None:
        lines = _split_lines(contents)
        if self._map is not None:
            source = self._map.add_source(self._source_name(path), contents)
            start = len(self._lines)
            for i in range(len(lines)):
                self._map.add_mapping(start + i, source, i)
        self._lines.extend(lines)

    def _source_name(self, path: str) -> str:
        base = os.path.dirname(os.path.abspath(self.filename))
        try:
            rel = os.path.relpath(os.path.abspath(path), base)
        except ValueError:
            # different drive (windows)
            rel = path
        return rel.replace(os.sep, "/")

    def render(self) -> str:
        lines = list(self._lines)
        if self._map is not None:
            lines.append(self._map.to_comment())
        return EOL.join(lines) + EOL
