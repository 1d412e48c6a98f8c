"""
Build configuration loader.

Reads the bundle configuration from a YAML or JSON file:

    target: bundle.bt.js
    btFilename: lib/bt.js
    templates:
      - blocks/page/page.bt.js
      - blocks/button/button.bt.js
    requires:
      jquery:
        ym: jquery
        globals: jQuery
      lodash:
        commonJS: lodash
    mimic: [bt]
    btOptions: {jsAttrName: data-bem}

Environment variable:
    BT_BUNDLE_CONFIG: path to the config file (optional).
    Default search path: <cwd>/bt-bundle.yaml
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bt_bundle.core.compiler.models import CompileOptions, parse_requires
from bt_bundle.core.errors import ConfigurationError

_log = logging.getLogger("bt_bundle.config")

DEFAULT_CONFIG_NAME = "bt-bundle.yaml"


class BundleConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target: str = "bundle.bt.js"
    templates: List[str] = Field(default_factory=list)
    bt_filename: Optional[str] = Field(default=None, alias="btFilename")
    requires: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    mimic: List[str] = Field(default_factory=lambda: ["bt"])
    bt_options: Any = Field(default_factory=dict, alias="btOptions")
    sourcemap: bool = False
    scope: str = "template"
    bundler: str = "browserify"

    @field_validator("mimic", mode="before")
    @classmethod
    def _coerce_mimic(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v

    def to_compile_options(self, root: Path) -> CompileOptions:
        """Resolve paths against `root` and produce options for one compilation."""
        target = Path(self.target)
        if not target.is_absolute():
            target = root / target

        bt_filename = self.bt_filename
        if bt_filename and not Path(bt_filename).is_absolute():
            bt_filename = str(root / bt_filename)

        return CompileOptions(
            filename=str(target),
            dirname=str(target.parent),
            bt_filename=bt_filename,
            requires=parse_requires(self.requires),
            mimic=list(self.mimic),
            scope=self.scope,
            sourcemap=self.sourcemap,
            bt_options=self.bt_options,
        )


def _resolve_path(path: Optional[Path]) -> Path:
    """Determine the config file path from argument or env var or default."""
    if path is not None:
        return Path(path)
    env_path = os.getenv("BT_BUNDLE_CONFIG", "").strip()
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_NAME


def parse_bundle_config(data: Any, *, source: str = "<config>") -> BundleConfig:
    if not isinstance(data, dict):
        raise ConfigurationError(f"Bundle config {source} must be a mapping, got {type(data).__name__}")
    try:
        return BundleConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid bundle config {source}: {exc}") from exc


def load_bundle_config(path: Optional[Path] = None) -> BundleConfig:
    """
    Load the bundle configuration from a YAML or JSON file.

    Unlike optional override files, a build cannot proceed without its config,
    so a missing or malformed file raises ConfigurationError.
    """
    resolved = _resolve_path(path)
    try:
        raw_text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read bundle config {resolved}: {exc}") from exc

    # Try JSON first, YAML is a superset for the shapes we accept
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Failed to parse bundle config {resolved} as JSON or YAML: {exc}") from exc

    config = parse_bundle_config(data, source=str(resolved))
    _log.info("Loaded bundle config from %s (%d templates)", resolved, len(config.templates))
    return config
