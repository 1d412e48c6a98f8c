"""bt-bundle: compiles a BT core library and BT templates into one loadable module."""

__version__ = "0.1.0"
