"""Source Map v3 builder (line-level mappings, Base64 VLQ encoded)."""
from __future__ import annotations

import base64
import json
from typing import Dict, List, Optional, Tuple

_B64_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"

_VLQ_SHIFT = 5
_VLQ_CONTINUATION = 1 << _VLQ_SHIFT
_VLQ_MASK = _VLQ_CONTINUATION - 1


def encode_vlq(value: int) -> str:
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    out = []
    while True:
        digit = vlq & _VLQ_MASK
        vlq >>= _VLQ_SHIFT
        if vlq:
            digit |= _VLQ_CONTINUATION
        out.append(_B64_CHARS[digit])
        if not vlq:
            return "".join(out)


class SourceMapBuilder:
    def __init__(self, file: str):
        self.file = file
        self._sources: List[str] = []
        self._contents: List[Optional[str]] = []
        self._index: Dict[str, int] = {}
        # generated line -> (source index, original line)
        self._mappings: Dict[int, Tuple[int, int]] = {}

    def add_source(self, name: str, contents: Optional[str] = None) -> int:
        if name in self._index:
            return self._index[name]
        idx = len(self._sources)
        self._sources.append(name)
        self._contents.append(contents)
        self._index[name] = idx
        return idx

    def add_mapping(self, generated_line: int, source: int, original_line: int) -> None:
        """Map column 0 of a generated line (0-based) to column 0 of an original line (0-based)."""
        self._mappings[generated_line] = (source, original_line)

    def _encode_mappings(self) -> str:
        if not self._mappings:
            return ""

        prev_source = 0
        prev_line = 0
        lines: List[str] = []
        for gen_line in range(max(self._mappings) + 1):
            m = self._mappings.get(gen_line)
            if m is None:
                lines.append("")
                continue
            source, orig_line = m
            lines.append(
                encode_vlq(0)
                + encode_vlq(source - prev_source)
                + encode_vlq(orig_line - prev_line)
                + encode_vlq(0)
            )
            prev_source, prev_line = source, orig_line
        return ";".join(lines)

    def to_dict(self) -> dict:
        return {
            "version": 3,
            "file": self.file,
            "sources": list(self._sources),
            "sourcesContent": list(self._contents),
            "names": [],
            "mappings": self._encode_mappings(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    def to_comment(self) -> str:
        payload = base64.b64encode(self.to_json().encode("utf-8")).decode("ascii")
        return "//# sourceMappingURL=data:application/json;charset=utf-8;base64," + payload
