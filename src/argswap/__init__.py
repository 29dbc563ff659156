"""argswap package root."""

from argswap.config import DEFAULT_BETA, DetectorConfig
from argswap.detector import check_invocation, find_best_match, resolve_invocation
from argswap.exceptions import ArgswapError, ConfigError, InapplicableInvocation
from argswap.naming import similarity, split_terms, terms

__all__ = [
    "__version__",
    "ArgswapError",
    "ConfigError",
    "DEFAULT_BETA",
    "DetectorConfig",
    "InapplicableInvocation",
    "check_invocation",
    "find_best_match",
    "resolve_invocation",
    "similarity",
    "split_terms",
    "terms",
]

__version__ = "0.1.0"
