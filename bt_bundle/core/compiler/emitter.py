"""
Module emitter: compiles the BT core and BT templates into one module.

The compiled module supports YModules and CommonJS. If there is no module
system in the runtime, the module is provided as the global variable `BT`.

Layout of the emitted code:

    (function (global) {
    <BT core, verbatim>
    var bt = new BT();
    bt.setOptions(<btOptions as JSON>);
    var init = function (global, BT) {
    // begin: <template>
    (function () {
    <template, verbatim>
    }());
    // end: <template>
    ...
    };
    <shared prelude + export logic, see templates/export.js.j2>
    }(typeof window !== "undefined" ? window : global));
"""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import ValidationError

from bt_bundle.core.bundler.base import Bundler
from bt_bundle.core.errors import ConfigurationError, CoreLibraryError

from .models import CompileOptions, CoreSource, SourceFragment, coerce_fragments
from .output_file import EOL, OutputFile
from .providers import (
    CANONICAL_NAME,
    RUNTIME_VAR,
    compile_commonjs_provides,
    compile_global_provides,
    compile_ymodule,
)

log = logging.getLogger("bt_bundle.compiler")

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"

CoreLoader = Callable[[Optional[str]], Awaitable[CoreSource]]
OptionsLike = Union[CompileOptions, Mapping[str, Any], None]


def _to_js_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


async def load_core_source(filename: Optional[str]) -> CoreSource:
    """Reads code of the BT core."""
    if not filename:
        raise CoreLibraryError("Path to the BT core (`btFilename`) is not specified")
    try:
        contents = await asyncio.to_thread(Path(filename).read_text, encoding="utf-8")
    except OSError as exc:
        raise CoreLibraryError(f"Cannot read BT core {filename}: {exc}") from exc
    return CoreSource(path=str(filename), contents=contents)


def _coerce_options(options: OptionsLike) -> CompileOptions:
    if options is None:
        raise ConfigurationError("The `filename` option is not specified!")

    if not isinstance(options, CompileOptions):
        try:
            options = CompileOptions.model_validate(options)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid compile options: {exc}") from exc

    if not options.filename:
        raise ConfigurationError("The `filename` option is not specified!")

    try:
        _to_js_json(options.bt_options)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"`btOptions` is not JSON serializable: {exc}") from exc

    return options


def export_aliases(mimic: Sequence[str]) -> List[str]:
    """Distinct export names besides the canonical one, in configured order."""
    out: List[str] = []
    for name in mimic:
        if name and name != CANONICAL_NAME and name not in out:
            out.append(name)
    return out


def render_export(options: CompileOptions, prelude: str) -> str:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=()),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["js"] = json.dumps

    aliases = export_aliases(options.mimic)
    ymodules = [compile_ymodule(CANONICAL_NAME, options.requires)]
    ymodules += [compile_ymodule(name, alias_of=CANONICAL_NAME) for name in aliases]

    template = env.get_template("export.js.j2")

    return template.render(
        prelude=prelude,
        ymodules=ymodules,
        aliases=aliases,
        global_provides=compile_global_provides(options.requires),
        runtime=RUNTIME_VAR,
        canonical=CANONICAL_NAME,
    )


def emit_module(
    sources: Sequence[SourceFragment],
    options: CompileOptions,
    core: CoreSource,
    prelude: str,
) -> str:
    """Assemble the compiled module. Pure text assembly, no I/O."""
    file = OutputFile(options.filename, options.sourcemap)

    file.write_line("(function (global) {")

    file.write_file_content(core.path, core.contents)
    file.write_line(
        EOL.join(
            [
                f"var {RUNTIME_VAR} = new {CANONICAL_NAME}();",
                f"{RUNTIME_VAR}.setOptions({_to_js_json(options.bt_options)});",
            ]
        )
    )

    # `init()` runs once every dependency has been put into bt.lib
    file.write_line(f"var init = function (global, {CANONICAL_NAME}) {{")
    for source in sources:
        rel_path = source.display_path
        file.write_line("// begin: " + rel_path)
        if options.is_template_scope:
            file.write_line("(function () {")
        file.write_file_content(source.path, source.contents)
        if options.is_template_scope:
            file.write_line("}());")
        file.write_line("// end: " + rel_path)
    file.write_line("};")

    file.write_line(render_export(options, prelude))

    file.write_line('}(typeof window !== "undefined" ? window : global));')

    return file.render()


async def _gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """Like `asyncio.gather`, but the first failure cancels the steps still running."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        pending = [t for t in tasks if not t.done()]
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.wait(pending)

    for t in tasks:
        if not t.cancelled() and t.exception() is not None:
            raise t.exception()
    return [t.result() for t in tasks]


async def _compile(
    sources: List[SourceFragment],
    options: CompileOptions,
    core_loader: CoreLoader,
    bundler: Optional[Bundler],
) -> str:
    core, prelude = await _gather_or_cancel(
        core_loader(options.bt_filename),
        compile_commonjs_provides(options.requires, options.output_dir, bundler=bundler),
    )
    code = emit_module(sources, options, core, prelude)
    log.debug("Compiled %d template(s) into %s (%d chars)", len(sources), options.filename, len(code))
    return code


def compile_bundle(
    fragments: Sequence[Union[SourceFragment, Mapping[str, Any]]],
    options: OptionsLike,
    *,
    core_loader: Optional[CoreLoader] = None,
    bundler: Optional[Bundler] = None,
) -> Awaitable[str]:
    """
    Compile the BT core with source templates.

    Options are validated right away: a missing `filename` raises
    ConfigurationError before the core is loaded or anything is bundled.
    The returned awaitable resolves to the compiled code and propagates
    failures of the core loader and the bundler unchanged.
    """
    opts = _coerce_options(options)
    try:
        sources = coerce_fragments(fragments)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid template sources: {exc}") from exc

    return _compile(sources, opts, core_loader or load_core_source, bundler)
