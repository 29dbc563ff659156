"""Exception types for argswap."""

from __future__ import annotations


class ArgswapError(Exception):
    """Base class for argswap errors."""


class InapplicableInvocation(ArgswapError):
    """Raised when a call site cannot be modelled as an invocation.

    The detector declines to analyze such calls. Callers are expected to treat
    this as a silent skip, never as a reportable failure.
    """


class ConfigError(ArgswapError, ValueError):
    """An explicitly supplied configuration value is invalid."""
