from __future__ import annotations

import os
import re
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from bt_bundle.core.errors import ConfigurationError


JS_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Reserved words (ES2015+, strict mode included) cannot name a binding.
JS_RESERVED_WORDS = frozenset(
    """
    await break case catch class const continue debugger default delete do else enum
    export extends false finally for function if implements import in instanceof
    interface let new null package private protected public return static super
    switch this throw true try typeof var void while with yield
    """.split()
)

# Parameter already taken by the `modules.define` callback.
YM_PROVIDE_PARAM = "provide"


class SourceFragment(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str
    rel_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("relPath", "relativePath", "rel_path"),
    )
    contents: str = Field(validation_alias=AliasChoices("contents", "content"))

    @property
    def display_path(self) -> str:
        return self.rel_path or self.path


class CoreSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    contents: str


# ------------------------------------------------------------------
# Dependency providers (one variant per provisioning strategy)
# ------------------------------------------------------------------
class BundledModule(BaseModel):
    """Package bundled at build time and obtained through the bundle's `require`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["commonJS"] = "commonJS"
    package: str


class NamedModuleRef(BaseModel):
    """Module declared as a dependency of `modules.define`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ym"] = "ym"
    module: str


class GlobalPath(BaseModel):
    """Value read off the global object along a dotted path."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["globals"] = "globals"
    path: str

    @property
    def segments(self) -> List[str]:
        return self.path.split(".")


Provider = Annotated[
    Union[BundledModule, NamedModuleRef, GlobalPath],
    Field(discriminator="kind"),
]

P = TypeVar("P", BundledModule, NamedModuleRef, GlobalPath)

_PROVIDER_KINDS: Dict[str, Type[BaseModel]] = {
    "commonJS": BundledModule,
    "ym": NamedModuleRef,
    "globals": GlobalPath,
}


class Dependency(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    providers: List[Provider] = Field(default_factory=list)

    def provider(self, kind: Type[P]) -> Optional[P]:
        for p in self.providers:
            if isinstance(p, kind):
                return p
        return None


def _provider_from_raw(name: str, key: str, value: Any) -> BaseModel:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"requires.{name}.{key} must be a non-empty string")
    value = value.strip()
    if key == "commonJS":
        return BundledModule(package=value)
    if key == "ym":
        return NamedModuleRef(module=value)
    return GlobalPath(path=value)


def parse_requires(raw: Optional[Mapping[str, Any]]) -> List[Dependency]:
    """
    Convert the `requires` option into ordered dependencies.

    Accepted shape (per dependency name, any non-empty subset of keys):
        {"jquery": {"ym": "jquery", "commonJS": "jquery", "globals": "jQuery"}}

    Declaration order is preserved so the emitted statements are stable.
    """
    if not raw:
        return []
    if not isinstance(raw, Mapping):
        raise ConfigurationError("`requires` must be a mapping of dependency names")

    deps: List[Dependency] = []
    for name, item in raw.items():
        if not JS_IDENTIFIER.match(str(name)):
            raise ConfigurationError(f"Dependency name {name!r} is not a valid identifier")
        if name in JS_RESERVED_WORDS:
            raise ConfigurationError(f"Dependency name {name!r} is a reserved word")
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"requires.{name} must be a mapping")

        unknown = sorted(set(item.keys()) - set(_PROVIDER_KINDS))
        if unknown:
            raise ConfigurationError(f"requires.{name} has unknown keys: {', '.join(unknown)}")

        providers = [_provider_from_raw(name, key, item[key]) for key in _PROVIDER_KINDS if item.get(key) is not None]
        if not providers:
            raise ConfigurationError(f"requires.{name} declares no provider (expected ym, commonJS or globals)")
        if name == YM_PROVIDE_PARAM and item.get("ym") is not None:
            raise ConfigurationError(f"Dependency name {name!r} clashes with the modules.define callback parameter")
        deps.append(Dependency(name=name, providers=providers))

    return deps


class CompileOptions(BaseModel):
    """Options of a single compilation (field aliases follow the build config's camelCase)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    filename: Optional[str] = None
    dirname: Optional[str] = None
    bt_filename: Optional[str] = Field(default=None, alias="btFilename")
    requires: List[Dependency] = Field(default_factory=list)
    mimic: List[str] = Field(default_factory=list)
    scope: str = "template"
    sourcemap: bool = False
    bt_options: Any = Field(default_factory=dict, alias="btOptions")

    @field_validator("requires", mode="before")
    @classmethod
    def _parse_requires(cls, v: Any) -> Any:
        if isinstance(v, list):
            return v
        return parse_requires(v)

    @field_validator("mimic", mode="before")
    @classmethod
    def _coerce_mimic(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @property
    def is_template_scope(self) -> bool:
        return self.scope == "template"

    @property
    def output_dir(self) -> str:
        if self.dirname:
            return self.dirname
        return os.path.dirname(os.path.abspath(self.filename or "."))


def coerce_fragments(fragments: Sequence[Union[SourceFragment, Mapping[str, Any]]]) -> List[SourceFragment]:
    return [f if isinstance(f, SourceFragment) else SourceFragment.model_validate(f) for f in fragments]
