"""
Tests for flag support probing and the probe cache.
"""

import threading
import time
from pathlib import Path

import pytest

from cctoolkit.core.exceptions import ProbeInfrastructureFailed
from cctoolkit.core.interfaces import ProcessResult
from cctoolkit.toolchain.family import ToolFamily
from cctoolkit.toolchain.probe import FlagProbeCache, FlagSupportProber, ProbeState
from cctoolkit.toolchain.resolver import ResolvedTool
from tests.utils.mocks import RecordingRunner, make_tool


def answer(returncode=0, stderr=""):
    """Handler that gives every trial compile the same result."""
    return lambda argv: ProcessResult(returncode, stderr=stderr)


class TestFlagSupportProber:
    """Tests for FlagSupportProber class."""

    def test_accepted_flag(self, tables, probe_cache):
        """Test that exit status 0 with a clean stderr means supported."""
        runner = RecordingRunner(handler=answer(0))
        prober = FlagSupportProber(tables, probe_cache, runner)

        assert prober.is_supported(make_tool(), ToolFamily.GNU, "-fno-plt") is True

        argv = runner.calls[0]
        assert argv[:2] == ["/usr/bin/cc", "-fno-plt"]
        assert argv[2] == "-o"
        assert argv[4] == "-c"
        assert argv[5].endswith("flag_check.c")

    def test_rejected_flag(self, tables, probe_cache):
        """Test that a failing trial compile means unsupported."""
        runner = RecordingRunner(
            handler=answer(1, "cc: error: unrecognized command-line option '-fbogus'")
        )
        prober = FlagSupportProber(tables, probe_cache, runner)

        assert prober.is_supported(make_tool(), ToolFamily.GNU, "-fbogus") is False

    def test_warning_only_rejection(self, tables, probe_cache):
        """Test that exit 0 with an unknown-option warning is unsupported."""
        runner = RecordingRunner(
            handler=answer(0, "warning: unknown warning option '-Wbogus' [-Wunknown-warning-option]")
        )
        prober = FlagSupportProber(tables, probe_cache, runner)

        assert prober.is_supported(make_tool("/usr/bin/clang"), ToolFamily.CLANG, "-Wbogus") is False

    def test_msvc_ignored_option(self, tables, probe_cache):
        """Test MSVC's D9002 warning and its own per-file spelling."""
        runner = RecordingRunner(
            handler=answer(0, "cl : Command line warning D9002 : ignoring unknown option '/bogus'")
        )
        prober = FlagSupportProber(tables, probe_cache, runner)

        assert prober.is_supported(make_tool("C:/VC/cl.exe"), ToolFamily.MSVC, "/bogus") is False
        argv = runner.calls[0]
        assert argv[2].startswith("/Fo")
        assert argv[3] == "/c"

    def test_unrelated_stderr_is_ignored(self, tables, probe_cache):
        """Test that other diagnostics do not make a flag unsupported."""
        runner = RecordingRunner(handler=answer(0, "note: using default sysroot"))
        prober = FlagSupportProber(tables, probe_cache, runner)

        assert prober.is_supported(make_tool(), ToolFamily.GNU, "-pipe") is True

    def test_cpp_trial_uses_cpp_source(self, tables, probe_cache):
        """Test that C++ probes compile a .cpp file."""
        runner = RecordingRunner(handler=answer(0))
        prober = FlagSupportProber(tables, probe_cache, runner)

        prober.is_supported(make_tool("/usr/bin/c++"), ToolFamily.GNU, "-std=c++17", cpp=True)

        assert runner.calls[0][-1].endswith("flag_check.cpp")

    def test_spawn_failure(self, tables, probe_cache):
        """Test that a trial that can't start is an error, not a verdict."""

        def handler(argv):
            raise PermissionError(13, "Permission denied", argv[0])

        prober = FlagSupportProber(tables, probe_cache, RecordingRunner(handler=handler))

        with pytest.raises(ProbeInfrastructureFailed) as exc_info:
            prober.is_supported(make_tool(), ToolFamily.GNU, "-fno-plt")

        assert exc_info.value.flag == "-fno-plt"
        assert "Permission denied" in exc_info.value.os_error
        assert len(probe_cache) == 0

    def test_failure_then_retry(self, tables, probe_cache):
        """Test that a later call after an infrastructure failure runs again."""
        outcomes = [OSError("text file busy"), ProcessResult(0)]

        def handler(argv):
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        runner = RecordingRunner(handler=handler)
        prober = FlagSupportProber(tables, probe_cache, runner)

        with pytest.raises(ProbeInfrastructureFailed):
            prober.is_supported(make_tool(), ToolFamily.GNU, "-g")
        assert prober.is_supported(make_tool(), ToolFamily.GNU, "-g") is True
        assert len(runner.calls) == 2

    def test_timeout_is_infrastructure_failure(self, tables, probe_cache):
        """Test that a hung trial compile is an error, not a verdict."""

        def handler(argv):
            raise TimeoutError(f"{argv[0]} timed out after 5s")

        prober = FlagSupportProber(tables, probe_cache, RecordingRunner(handler=handler))

        with pytest.raises(ProbeInfrastructureFailed, match="timed out"):
            prober.is_supported(make_tool(), ToolFamily.GNU, "-fno-plt")
        assert len(probe_cache) == 0

    def test_trial_runs_with_tool_env(self, tables, probe_cache):
        """Test that the tool's environment overlay reaches the trial compile."""
        runner = RecordingRunner(handler=answer(0))
        tool = ResolvedTool("cc", Path("/usr/bin/cc"), env={"SDK_ROOT": "/opt/sdk"})

        FlagSupportProber(tables, probe_cache, runner).is_supported(
            tool, ToolFamily.GNU, "-fno-plt"
        )

        assert runner.envs == [{"SDK_ROOT": "/opt/sdk"}]


class TestProbeCaching:
    """Tests for memoization of probe answers."""

    def test_answer_is_cached(self, tables, probe_cache):
        """Test that a second question does not run the compiler."""
        runner = RecordingRunner(handler=answer(1))
        prober = FlagSupportProber(tables, probe_cache, runner)
        tool = make_tool()

        assert prober.is_supported(tool, ToolFamily.GNU, "-fbogus") is False
        assert prober.is_supported(tool, ToolFamily.GNU, "-fbogus") is False
        assert len(runner.calls) == 1

    def test_key_includes_language(self, tables, probe_cache):
        """Test that C and C++ answers are stored separately."""
        runner = RecordingRunner(handler=answer(0))
        prober = FlagSupportProber(tables, probe_cache, runner)
        tool = make_tool()

        prober.is_supported(tool, ToolFamily.GNU, "-Wall")
        prober.is_supported(tool, ToolFamily.GNU, "-Wall", cpp=True)

        assert len(runner.calls) == 2
        assert len(probe_cache) == 2

    def test_key_includes_tool(self, tables, probe_cache):
        """Test that different tools are probed separately."""
        runner = RecordingRunner(handler=answer(0))
        prober = FlagSupportProber(tables, probe_cache, runner)

        prober.is_supported(make_tool("/usr/bin/gcc-12"), ToolFamily.GNU, "-Wall")
        prober.is_supported(make_tool("/usr/bin/gcc-13"), ToolFamily.GNU, "-Wall")

        assert len(runner.calls) == 2

    def test_cache_shared_between_probers(self, tables, probe_cache):
        """Test that probers sharing a cache share answers."""
        runner = RecordingRunner(handler=answer(0))
        tool = make_tool()

        FlagSupportProber(tables, probe_cache, runner).is_supported(tool, ToolFamily.GNU, "-g")
        FlagSupportProber(tables, probe_cache, runner).is_supported(tool, ToolFamily.GNU, "-g")

        assert len(runner.calls) == 1

    def test_concurrent_probes_run_once(self, tables, probe_cache):
        """Test that concurrent callers wait for a single trial compile."""
        started = threading.Event()

        def slow(argv):
            started.set()
            time.sleep(0.2)
            return ProcessResult(0)

        runner = RecordingRunner(handler=slow)
        prober = FlagSupportProber(tables, probe_cache, runner)
        tool = make_tool()
        results = []

        def ask():
            results.append(prober.is_supported(tool, ToolFamily.GNU, "-fno-plt"))

        threads = [threading.Thread(target=ask) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert started.is_set()
        assert results == [True] * 8
        assert len(runner.calls) == 1


class TestFlagProbeCache:
    """Tests for FlagProbeCache class."""

    def test_states(self):
        """Test the state of a key before, during and after a probe."""
        cache = FlagProbeCache()
        tool = make_tool()
        key = FlagProbeCache.key(tool, "c", "-g")
        observed = []

        def probe():
            observed.append(cache.state(key))
            return True

        assert cache.state(key) is None
        assert cache.get_or_probe(key, probe) is True
        assert observed == [ProbeState.PENDING]
        assert cache.state(key) is ProbeState.SUPPORTED

    def test_unsupported_state(self):
        """Test that a False answer reads back as UNSUPPORTED."""
        cache = FlagProbeCache()
        key = FlagProbeCache.key(make_tool(), "c++", "-fbogus")

        cache.get_or_probe(key, lambda: False)

        assert cache.state(key) is ProbeState.UNSUPPORTED

    def test_key_shape(self):
        """Test that keys combine tool identity, language and flag."""
        tool = make_tool("/usr/bin/cc")
        assert FlagProbeCache.key(tool, "c", "-g") == (tool.identity, "c", "-g")

    def test_clear(self):
        """Test that clear forgets every answer."""
        cache = FlagProbeCache()
        cache.get_or_probe("k", lambda: True)

        cache.clear()

        assert len(cache) == 0
        assert cache.state("k") is None
