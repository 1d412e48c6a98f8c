from __future__ import annotations

import asyncio
import logging
import os
import shlex
from typing import List, Optional, Sequence

from bt_bundle.core.errors import BundlingError

from .base import Bundler

log = logging.getLogger("bt_bundle.bundler")

DEFAULT_COMMAND = "browserify"


def browserify_command() -> List[str]:
    raw = (os.getenv("BT_BUNDLE_BROWSERIFY") or DEFAULT_COMMAND).strip()
    return shlex.split(raw) or [DEFAULT_COMMAND]


class BrowserifyBundler(Bundler):
    """
    Runs `browserify -r <pkg> ...` so the bundle exposes an outer `require`.

    The child process is killed if the awaiting compilation is cancelled.
    """

    name = "browserify"

    def __init__(self, command: Optional[Sequence[str]] = None):
        self.command = list(command) if command else None

    def _cmd(self, packages: Sequence[str]) -> List[str]:
        cmd = list(self.command or browserify_command())
        for pkg in packages:
            cmd += ["-r", pkg]
        return cmd

    async def bundle(self, packages: Sequence[str], *, basedir: Optional[str] = None) -> str:
        cmd = self._cmd(packages)
        log.info("Running %s in %s", " ".join(cmd), basedir or os.getcwd())

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=basedir or None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise BundlingError(f"cannot run {cmd[0]}: {exc}") from exc

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                log.info("Killing %s (pid=%s): compilation cancelled", cmd[0], proc.pid)
                proc.kill()
                await proc.wait()
            raise

        out = stdout.decode("utf-8")
        if proc.returncode != 0:
            err = stderr.decode("utf-8", errors="replace").strip()
            raise BundlingError(f"{cmd[0]} failed: {err or out.strip()}")
        return out
