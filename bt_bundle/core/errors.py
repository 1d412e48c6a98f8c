from __future__ import annotations


class BundleError(Exception):
    """Base class for every failure raised by bt-bundle."""

    code = "bundle_error"


class ConfigurationError(BundleError, ValueError):
    """Options are missing or malformed. Raised before any I/O happens."""

    code = "configuration_error"


class CoreLibraryError(BundleError):
    """The BT core library could not be read."""

    code = "core_library_error"


class TemplateReadError(BundleError):
    """A template file could not be read."""

    code = "template_read_error"


class BundlingError(BundleError):
    """The package bundler failed to resolve or bundle a CommonJS dependency."""

    code = "bundling_error"
