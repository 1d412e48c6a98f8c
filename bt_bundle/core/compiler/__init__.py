from .accessor import compile_global_accessor
from .emitter import compile_bundle, emit_module, load_core_source
from .models import (
    BundledModule,
    CompileOptions,
    CoreSource,
    Dependency,
    GlobalPath,
    NamedModuleRef,
    SourceFragment,
    parse_requires,
)
from .providers import compile_commonjs_provides, compile_global_provides, compile_ymodule

__all__ = [
    "BundledModule",
    "CompileOptions",
    "CoreSource",
    "Dependency",
    "GlobalPath",
    "NamedModuleRef",
    "SourceFragment",
    "compile_bundle",
    "compile_commonjs_provides",
    "compile_global_accessor",
    "compile_global_provides",
    "compile_ymodule",
    "emit_module",
    "load_core_source",
    "parse_requires",
]
