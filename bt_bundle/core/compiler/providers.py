"""
Dependency provisioning for the compiled BT module.

Each dependency from `requires` is resolved per loader branch:

  ymodules branch      NamedModuleRef -> declared module dependency
                       GlobalPath     -> global object lookup
  shared prelude       BundledModule  -> `require` of the bundled package
                       GlobalPath     -> global object lookup
  global branch        GlobalPath     -> global object lookup

Statements are generated in declaration order of `requires`, so unchanged input
always yields byte-identical output.
"""
from __future__ import annotations

import json
import logging
from typing import List, Optional, Sequence

from bt_bundle.core.bundler import get_bundler
from bt_bundle.core.bundler.base import Bundler
from bt_bundle.core.compiler.accessor import global_ref
from bt_bundle.core.compiler.models import BundledModule, Dependency, GlobalPath, NamedModuleRef
from bt_bundle.core.compiler.output_file import EOL

log = logging.getLogger("bt_bundle.compiler")

RUNTIME_VAR = "bt"
CANONICAL_NAME = "BT"


def _lib_assign(name: str, expr: str) -> str:
    return f"{RUNTIME_VAR}.lib.{name} = {expr};"


def bundled_packages(dependencies: Sequence[Dependency]) -> List[str]:
    """Unique package specifiers to bundle, in declaration order."""
    packages: List[str] = []
    for dep in dependencies:
        bundled = dep.provider(BundledModule)
        if bundled and bundled.package not in packages:
            packages.append(bundled.package)
    return packages


def compile_direct_provides(dependencies: Sequence[Dependency]) -> List[str]:
    """Prelude statements: bundled `require` calls, else global lookups."""
    provides: List[str] = []
    for dep in dependencies:
        bundled = dep.provider(BundledModule)
        glob = dep.provider(GlobalPath)
        if bundled is not None:
            provides.append(_lib_assign(dep.name, f"require({json.dumps(bundled.package)})"))
        elif glob is not None:
            provides.append(_lib_assign(dep.name, global_ref(glob.path)))
    return provides


async def compile_commonjs_provides(
    dependencies: Sequence[Dependency],
    dirname: Optional[str],
    *,
    bundler: Optional[Bundler] = None,
) -> str:
    """
    Build the prelude shared by the CommonJS and global branches.

    Without BundledModule dependencies the bundler is never touched and only
    the global lookups are returned. Otherwise the bundle is wrapped in its own
    scope, so its `require` stays local, followed by the `bt.lib` assignments.
    """
    provides = compile_direct_provides(dependencies)
    packages = bundled_packages(dependencies)

    if not packages:
        return EOL.join(provides)

    if bundler is None:
        bundler = get_bundler("browserify")

    log.debug("Bundling %d CommonJS package(s) from %s: %s", len(packages), dirname, ", ".join(packages))
    bundle = await bundler.bundle(packages, basedir=dirname)

    return EOL.join(
        [
            "(function () {",
            "var " + bundle.rstrip(),
            *provides,
            "}());",
        ]
    )


def compile_ymodule(name: str, dependencies: Optional[Sequence[Dependency]] = None, *, alias_of: Optional[str] = None) -> str:
    """
    Compile a `modules.define` call providing the runtime.

    With `alias_of` the definition only depends on the already defined module
    and re-provides the same runtime object without calling `init()` again.
    """
    modules: List[str] = []
    params: List[str] = []
    body: List[str] = []

    if alias_of is not None:
        modules.append(alias_of)
    else:
        for dep in dependencies or ():
            ym = dep.provider(NamedModuleRef)
            glob = dep.provider(GlobalPath)
            if ym is not None:
                modules.append(ym.module)
                params.append(dep.name)
                body.append(_lib_assign(dep.name, dep.name))
            elif glob is not None:
                body.append(_lib_assign(dep.name, global_ref(glob.path)))
        body.append("init();")

    body.append(f"provide({RUNTIME_VAR});")

    signature = ", ".join(["provide", *params])
    lines = [f"    modules.define({json.dumps(name)}, {json.dumps(modules, separators=(',', ':'))}, function ({signature}) {{"]
    lines.extend("        " + stmt for stmt in body)
    lines.append("    });")
    return EOL.join(lines)


def compile_global_provides(dependencies: Sequence[Dependency]) -> List[str]:
    """Global-branch statements: every GlobalPath dependency, nothing else."""
    out: List[str] = []
    for dep in dependencies:
        glob = dep.provider(GlobalPath)
        if glob is not None:
            out.append(_lib_assign(dep.name, global_ref(glob.path)))
    return out
