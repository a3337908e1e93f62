"""
Target triples and cross-compilation defaults.
"""

from .targets import (
    CROSS_PREFIXES,
    TargetTriple,
    DefaultTools,
    default_tools,
)

__all__ = [
    "CROSS_PREFIXES",
    "TargetTriple",
    "DefaultTools",
    "default_tools",
]
