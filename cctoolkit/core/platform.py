"""
Platform detection for cctoolkit.

This module detects the machine cctoolkit runs on (OS, architecture, ABI) so
that a host triple can be derived when the build configuration does not name
one, and so that Windows-specific path handling is only applied on Windows.

Usage:
    from cctoolkit.core.platform import detect_platform

    platform_info = detect_platform()
    print(platform_info.host_triple())   # 'x86_64-unknown-linux-gnu'
"""

import functools
import platform
from dataclasses import dataclass
from typing import Optional


@dataclass
class PlatformInfo:
    """
    Host platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos', 'freebsd', ...)
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm', ...)
        os_version: OS version string
        abi: ABI information ('gnu', 'musl', 'msvc', 'darwin')
    """

    os: str
    arch: str
    os_version: str
    abi: str

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-arm64').

        Example:
            >>> PlatformInfo('linux', 'x64', '6.1', 'gnu').platform_string()
            'linux-x64'
        """
        return f"{self.os}-{self.arch}"

    def host_triple(self) -> str:
        """
        Get the target triple describing this host.

        Example:
            >>> PlatformInfo('linux', 'x64', '6.1', 'gnu').host_triple()
            'x86_64-unknown-linux-gnu'
            >>> PlatformInfo('windows', 'x64', '10.0', 'msvc').host_triple()
            'x86_64-pc-windows-msvc'
        """
        arch_map = {
            "x64": "x86_64",
            "arm64": "aarch64",
            "x86": "i686",
            "arm": "armv7",
        }
        arch = arch_map.get(self.arch, self.arch)

        if self.os == "windows":
            return f"{arch}-pc-windows-{self.abi or 'msvc'}"
        if self.os == "macos":
            return f"{arch}-apple-darwin"
        if self.os == "freebsd":
            return f"{arch}-unknown-freebsd"
        if self.os == "linux":
            return f"{arch}-unknown-linux-{self.abi or 'gnu'}"
        return f"{arch}-unknown-{self.os}"

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    def __str__(self) -> str:
        return f"{self.os}-{self.arch} v{self.os_version} [{self.abi}]"


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    os_name = _detect_os()
    return PlatformInfo(
        os=os_name,
        arch=_detect_architecture(),
        os_version=platform.release() or "unknown",
        abi=_detect_abi(os_name),
    )


def _detect_os() -> str:
    """Return the normalized OS name."""
    system = platform.system().lower()

    if system == "darwin":
        return "macos"
    if system.startswith(("cygwin", "msys", "mingw")):
        return "windows"
    return system or "unknown"


def _detect_architecture() -> str:
    """Return the normalized CPU architecture."""
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i586", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    return machine


def _detect_abi(os_name: str) -> str:
    """Return the ABI suffix used in the host triple."""
    if os_name == "windows":
        system = platform.system().lower()
        return "gnu" if system.startswith(("msys", "mingw", "cygwin")) else "msvc"
    if os_name == "macos":
        return "darwin"
    if os_name == "linux":
        libc, _ = platform.libc_ver()
        return "gnu" if libc in ("glibc", "") else "musl"
    return ""


def default_host_triple(info: Optional[PlatformInfo] = None) -> str:
    """Return the host triple of ``info`` or of the detected platform."""
    return (info or detect_platform()).host_triple()


def clear_platform_cache():
    """
    Clear the platform detection cache.

    This forces the next call to detect_platform() to re-detect.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "default_host_triple",
    "clear_platform_cache",
]
