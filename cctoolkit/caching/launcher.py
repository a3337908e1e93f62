"""
Compiler override parsing with wrapper (launcher) support.

``CC``/``CXX``-style overrides may name a compilation cache or distributor in
front of the compiler and may carry extra flags after it::

    CC="ccache cc"            wrapper ccache, compiler cc
    CC="sccache clang -m32"   wrapper sccache, compiler clang, extra -m32
    CC="cc -m32"              compiler cc, extra -m32
    CC="ccache not-a-tool"    compiler ccache, extra not-a-tool

The parser decides between these readings by asking the resolver which
tokens are real executables.

Usage:
    from cctoolkit.caching.launcher import CompilerOverrideParser

    parser = CompilerOverrideParser()
    parsed = parser.resolve("ccache cc -m32")
    parsed.invocation.wrapper       # 'ccache'
    parsed.compiler.path            # PosixPath('/usr/bin/gcc-13')
    parsed.cc_env()                 # 'ccache /usr/bin/gcc-13 -m32'
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

from ..core.exceptions import OverrideParseFailed, ToolNotFound
from ..toolchain.resolver import ExecutableResolver, ResolvedTool
from .detection import KNOWN_WRAPPERS, WrapperRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WrapperInvocation:
    """
    Token-level reading of an override string.

    Attributes:
        wrapper: Wrapper token, if the override starts with a known wrapper
        compiler: Compiler token
        extra_flags: Remaining tokens, in order
    """

    wrapper: Optional[str]
    compiler: str
    extra_flags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedOverride:
    """
    An override string with its tools resolved.

    Attributes:
        raw: The override string as given
        invocation: Token-level reading
        compiler: Resolved compiler
        wrapper: Resolved wrapper. None when the override has no wrapper or
            the wrapper token could not be resolved.
    """

    raw: str
    invocation: WrapperInvocation
    compiler: ResolvedTool
    wrapper: Optional[ResolvedTool] = None

    @property
    def extra_flags(self) -> List[str]:
        return list(self.invocation.extra_flags)

    def cc_env(self) -> str:
        """
        Environment-visible compiler string.

        Returns ``"<wrapper> <compiler path> <extra flags>"`` when the
        override used a wrapper, else an empty string.
        """
        if self.invocation.wrapper is None:
            return ""
        return " ".join(
            [self.invocation.wrapper, str(self.compiler.path), *self.invocation.extra_flags]
        )

    def wrapper_command(self) -> List[str]:
        """
        Argv prefix that starts the wrapper.

        An unresolved wrapper is started by its token.
        """
        if self.wrapper is not None:
            return self.wrapper.command()
        if self.invocation.wrapper is not None:
            return [self.invocation.wrapper]
        return []


class CompilerOverrideParser:
    """
    Interpret compiler override strings.

    Example:
        >>> parser = CompilerOverrideParser()
        >>> parser.parse("ccache        cc")
        WrapperInvocation(wrapper='ccache', compiler='cc', extra_flags=())
    """

    def __init__(
        self,
        resolver: Optional[ExecutableResolver] = None,
        registry: Optional[WrapperRegistry] = None,
    ):
        """
        Initialize parser.

        Args:
            resolver: Resolver used to test which tokens are executables
            registry: Known wrapper names. Defaults to KNOWN_WRAPPERS.
        """
        self.resolver = resolver or ExecutableResolver()
        self.registry = registry or KNOWN_WRAPPERS

    def parse(
        self,
        raw: str,
        search_path: Optional[Sequence[str]] = None,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> WrapperInvocation:
        """Return the token-level reading of ``raw``."""
        return self.resolve(raw, search_path=search_path, cwd=cwd, env=env).invocation

    def resolve(
        self,
        raw: str,
        search_path: Optional[Sequence[str]] = None,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> ParsedOverride:
        """
        Parse ``raw`` and resolve the tools it names.

        Args:
            raw: Override string (e.g., the value of ``CC``)
            search_path: Explicit search directories passed to the resolver
            cwd: Working directory passed to the resolver
            env: Environment overlay passed to the resolver

        Returns:
            ParsedOverride with resolved compiler and wrapper

        Raises:
            OverrideParseFailed: If ``raw`` is empty or no reading of it
                names a resolvable executable
        """
        tokens = raw.split()
        if not tokens:
            raise OverrideParseFailed(raw)

        def resolve(token: str) -> ResolvedTool:
            return self.resolver.resolve(
                token, search_path=search_path, cwd=cwd, env=env, note=f"from override {raw!r}"
            )

        errors: List[Exception] = []

        if len(tokens) >= 2 and self.registry.is_wrapper(tokens[0]):
            try:
                compiler = resolve(tokens[1])
            except ToolNotFound as e:
                logger.debug(f"Wrapper reading of {raw!r} rejected: {e}")
                errors.append(e)
            else:
                # The wrapper is recognised by name; only the compiler must resolve.
                try:
                    wrapper: Optional[ResolvedTool] = resolve(tokens[0])
                except ToolNotFound as e:
                    logger.warning(
                        f"Wrapper {tokens[0]!r} in {raw!r} did not resolve, "
                        f"it will be started by name: {e}"
                    )
                    wrapper = None
                invocation = WrapperInvocation(
                    wrapper=tokens[0], compiler=tokens[1], extra_flags=tuple(tokens[2:])
                )
                logger.info(
                    f"Compiler override {raw!r}: {tokens[0]} wrapping {compiler.path}"
                )
                return ParsedOverride(raw, invocation, compiler, wrapper)

        try:
            compiler = resolve(tokens[0])
        except ToolNotFound as e:
            errors.append(e)
            raise OverrideParseFailed(raw, errors) from e

        invocation = WrapperInvocation(
            wrapper=None, compiler=tokens[0], extra_flags=tuple(tokens[1:])
        )
        logger.info(f"Compiler override {raw!r}: {compiler.path}")
        return ParsedOverride(raw, invocation, compiler)


__all__ = [
    "WrapperInvocation",
    "ParsedOverride",
    "CompilerOverrideParser",
]
