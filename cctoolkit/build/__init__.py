"""
Build orchestration: compiler selection and compile/archive invocations.
"""

from .builder import (
    Build,
    Compiler,
    CompileInvocation,
    ArchiveInvocation,
)

__all__ = [
    "Build",
    "Compiler",
    "CompileInvocation",
    "ArchiveInvocation",
]
