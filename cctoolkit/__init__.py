"""
cctoolkit - resolve, classify and drive C/C++ compiler toolchains.

Quick start:
    from cctoolkit.build.builder import Build
    from cctoolkit.config.parser import BuildSettings

    build = Build(BuildSettings(opt_level="2"))
    print(build.compile_invocation("foo.c", "foo.o").command())
"""

__version__ = "0.1.0"
