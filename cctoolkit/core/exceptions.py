"""
Centralized exception hierarchy for cctoolkit.

Every failure raised by the toolchain layer is terminal to the single
resolution, classification or probe attempt that raised it. None of these
errors is retried automatically and none is ever replaced by a default
outcome (an "unsupported" flag or a "gnu" family).
"""

from typing import Optional, Sequence


# ============================================================================
# Base Exceptions
# ============================================================================


class CCToolkitError(Exception):
    """Base exception for all cctoolkit errors."""

    pass


# ============================================================================
# Toolchain Exceptions
# ============================================================================


class ToolchainError(CCToolkitError):
    """Base exception for errors raised while talking to a real tool."""

    pass


class ToolNotFound(ToolchainError):
    """Raised when an executable cannot be located or cannot be spawned."""

    def __init__(
        self,
        requested: str,
        reason: str,
        search_path: Optional[Sequence[str]] = None,
        current_dir: Optional[str] = None,
        os_error: Optional[str] = None,
    ):
        self.requested = requested
        self.reason = reason
        self.search_path = list(search_path) if search_path is not None else None
        self.current_dir = current_dir
        self.os_error = os_error

        msg = f"{requested!r}: {reason}"
        details = []
        if search_path is not None:
            details.append(f"paths: {self.search_path}")
        if current_dir is not None:
            details.append(f"current_dir: {current_dir!r}")
        if details:
            msg += f" ({', '.join(details)})"
        if os_error:
            msg += f": {os_error}"
        super().__init__(msg)


class ClassificationFailed(ToolchainError):
    """Raised when the family of a tool cannot be determined."""

    def __init__(self, requested: str, path: str, reason: str):
        self.requested = requested
        self.path = path
        self.reason = reason
        super().__init__(
            f"Can't detect tool family of {requested!r} (path: {path}): {reason}"
        )


class ProbeInfrastructureFailed(ToolchainError):
    """
    Raised when a flag-support trial could not be run at all.

    This is distinct from a negative probe result: a compiler that rejects a
    flag produces ``False``, a compiler that cannot be started produces this.
    """

    def __init__(self, flag: str, path: str, os_error: str):
        self.flag = flag
        self.path = path
        self.os_error = os_error
        super().__init__(
            f"Can't run flag check for {flag!r} with {path}: {os_error}"
        )


# ============================================================================
# Override / Configuration Exceptions
# ============================================================================


class OverrideParseFailed(CCToolkitError):
    """Raised when a compiler-selection string has no resolvable reading."""

    def __init__(self, raw: str, causes: Optional[Sequence[Exception]] = None):
        self.raw = raw
        self.causes = list(causes or [])
        msg = f"Can't interpret compiler override {raw!r}"
        if self.causes:
            msg += ": " + "; ".join(str(cause) for cause in self.causes)
        super().__init__(msg)


class ConfigError(CCToolkitError):
    """Configuration parsing or validation error."""

    pass


class FlagTableError(CCToolkitError):
    """Raised when a family flag table is missing or malformed."""

    pass


__all__ = [
    "CCToolkitError",
    "ToolchainError",
    "ToolNotFound",
    "ClassificationFailed",
    "ProbeInfrastructureFailed",
    "OverrideParseFailed",
    "ConfigError",
    "FlagTableError",
]
