"""enginevu — fetch, install and smoke-test JavaScript engine binaries."""

__version__ = "0.1.0"
