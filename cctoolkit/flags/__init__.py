"""
Per-family flag tables and compiler argument assembly.
"""

from .tables import (
    FlagTable,
    FlagTableLoader,
)
from .assembler import (
    ArgumentAssembler,
)

__all__ = [
    "FlagTable",
    "FlagTableLoader",
    "ArgumentAssembler",
]
