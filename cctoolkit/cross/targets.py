"""
Target triple handling.

This module parses ``arch-vendor-os[-env]`` target triples and answers the
questions the rest of cctoolkit asks about a target: which default tools to
use, whether position independent code is on by default, and which GNU
cross prefix the toolchain binaries carry.
"""

from dataclasses import dataclass
from typing import Dict, Optional


# Targets whose GNU toolchain binaries are installed under a prefix,
# e.g. ``aarch64-linux-gnu-gcc``.
CROSS_PREFIXES: Dict[str, str] = {
    "aarch64-unknown-linux-gnu": "aarch64-linux-gnu",
    "aarch64-unknown-linux-musl": "aarch64-linux-musl",
    "aarch64-unknown-none": "aarch64-none-elf",
    "arm-unknown-linux-gnueabi": "arm-linux-gnueabi",
    "arm-unknown-linux-gnueabihf": "arm-linux-gnueabihf",
    "arm-unknown-linux-musleabi": "arm-linux-musleabi",
    "arm-unknown-linux-musleabihf": "arm-linux-musleabihf",
    "armv7-unknown-linux-gnueabi": "arm-linux-gnueabi",
    "armv7-unknown-linux-gnueabihf": "arm-linux-gnueabihf",
    "armv7-unknown-linux-musleabihf": "arm-linux-musleabihf",
    "i586-unknown-linux-gnu": "i686-linux-gnu",
    "i686-pc-windows-gnu": "i686-w64-mingw32",
    "i686-unknown-linux-gnu": "i686-linux-gnu",
    "i686-unknown-linux-musl": "musl",
    "mips-unknown-linux-gnu": "mips-linux-gnu",
    "mipsel-unknown-linux-gnu": "mipsel-linux-gnu",
    "powerpc-unknown-linux-gnu": "powerpc-linux-gnu",
    "powerpc64-unknown-linux-gnu": "powerpc64-linux-gnu",
    "powerpc64le-unknown-linux-gnu": "powerpc64le-linux-gnu",
    "riscv64gc-unknown-linux-gnu": "riscv64-linux-gnu",
    "riscv32imac-unknown-none-elf": "riscv32-unknown-elf",
    "s390x-unknown-linux-gnu": "s390x-linux-gnu",
    "sparc64-unknown-linux-gnu": "sparc64-linux-gnu",
    "thumbv6m-none-eabi": "arm-none-eabi",
    "thumbv7em-none-eabi": "arm-none-eabi",
    "thumbv7em-none-eabihf": "arm-none-eabi",
    "thumbv7m-none-eabi": "arm-none-eabi",
    "x86_64-pc-windows-gnu": "x86_64-w64-mingw32",
    "x86_64-unknown-linux-musl": "musl",
}

# Second triple components that are an OS rather than a vendor.
_VENDORLESS_OS = {"none", "linux", "windows", "darwin", "elf"}


@dataclass(frozen=True)
class TargetTriple:
    """
    Parsed target triple.

    Attributes:
        raw: The triple exactly as given (e.g., 'x86_64-unknown-linux-gnu')
        arch: CPU architecture component (e.g., 'x86_64', 'thumbv7em')
        vendor: Vendor component (e.g., 'pc', 'apple', 'unknown')
        os: Operating system component ('linux', 'windows', 'darwin', 'none')
        env: Environment / ABI component ('gnu', 'msvc', 'gnueabihf', '')
    """

    raw: str
    arch: str
    vendor: str
    os: str
    env: str = ""

    @classmethod
    def parse(cls, triple: str) -> "TargetTriple":
        """
        Parse a target triple string.

        Three-component triples are read as ``arch-vendor-os`` unless the
        middle component is itself an OS (``thumbv7em-none-eabi``,
        ``i686-linux-android``), in which case the vendor is 'unknown'.

        Args:
            triple: Target triple string

        Returns:
            TargetTriple

        Raises:
            ValueError: If the triple has fewer than two components

        Example:
            >>> t = TargetTriple.parse('x86_64-pc-windows-msvc')
            >>> (t.arch, t.vendor, t.os, t.env)
            ('x86_64', 'pc', 'windows', 'msvc')
        """
        text = triple.strip()
        parts = text.split("-")
        if len(parts) < 2 or not all(parts):
            raise ValueError(
                f"Invalid target triple: {triple!r}. "
                f"Expected 'arch-vendor-os[-env]'"
            )

        arch = parts[0]
        if len(parts) == 2:
            return cls(raw=text, arch=arch, vendor="unknown", os=parts[1])
        if len(parts) == 3:
            if parts[1] in _VENDORLESS_OS:
                return cls(
                    raw=text, arch=arch, vendor="unknown", os=parts[1], env=parts[2]
                )
            return cls(raw=text, arch=arch, vendor=parts[1], os=parts[2])
        return cls(
            raw=text,
            arch=arch,
            vendor=parts[1],
            os=parts[2],
            env="-".join(parts[3:]),
        )

    @property
    def is_msvc(self) -> bool:
        return self.env == "msvc"

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def is_apple(self) -> bool:
        return self.vendor == "apple" or self.os in ("darwin", "ios", "tvos", "watchos")

    @property
    def is_emscripten(self) -> bool:
        return self.os == "emscripten"

    @property
    def is_bare_metal(self) -> bool:
        return self.os == "none"

    @property
    def is_arm(self) -> bool:
        return self.arch.startswith(("arm", "thumb"))

    @property
    def prefers_clang(self) -> bool:
        """True for targets whose system compiler is Clang."""
        return self.is_apple or self.os in ("freebsd", "openbsd")

    @property
    def pic_default(self) -> bool:
        """Whether position independent code is on unless configured."""
        return not (self.is_windows or self.is_bare_metal)

    def cross_prefix(self) -> Optional[str]:
        """
        Return the GNU binary prefix for this target, if one is known.

        Example:
            >>> TargetTriple.parse('aarch64-unknown-linux-gnu').cross_prefix()
            'aarch64-linux-gnu'
        """
        return CROSS_PREFIXES.get(self.raw)

    def underscored(self) -> str:
        """Return the triple with dashes replaced by underscores."""
        return self.raw.replace("-", "_")

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class DefaultTools:
    """Default compiler and archiver names for a target."""

    c_compiler: str
    cxx_compiler: str
    archiver: str
    # Interpreter that runs the tools (Emscripten batch files on Windows).
    interpreter: Optional[str] = None

    def compiler(self, cpp: bool) -> str:
        return self.cxx_compiler if cpp else self.c_compiler


def default_tools(target: TargetTriple, host: TargetTriple) -> DefaultTools:
    """
    Pick the tool names used when no override is configured.

    Args:
        target: Triple being compiled for
        host: Triple of the machine running the build

    Returns:
        DefaultTools for the target

    Example:
        >>> default_tools(TargetTriple.parse('x86_64-pc-windows-msvc'),
        ...               TargetTriple.parse('x86_64-pc-windows-msvc')).c_compiler
        'cl'
    """
    if target.is_msvc:
        return DefaultTools("cl", "cl", "lib")

    if target.is_emscripten:
        if host.is_windows:
            return DefaultTools("emcc.bat", "em++.bat", "emar.bat", interpreter="cmd")
        return DefaultTools("emcc", "em++", "emar")

    if target.prefers_clang:
        return DefaultTools("clang", "clang++", "ar")

    if target.raw != host.raw:
        prefix = target.cross_prefix()
        if prefix == "musl":
            return DefaultTools("musl-gcc", "musl-g++", "ar")
        if prefix:
            return DefaultTools(f"{prefix}-gcc", f"{prefix}-g++", f"{prefix}-ar")

    return DefaultTools("cc", "c++", "ar")


__all__ = [
    "CROSS_PREFIXES",
    "TargetTriple",
    "DefaultTools",
    "default_tools",
]
