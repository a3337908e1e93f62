"""
Tests for tool family classification.
"""

from pathlib import Path

import pytest

from cctoolkit.core.exceptions import ClassificationFailed
from cctoolkit.core.interfaces import ProcessResult
from cctoolkit.core.locking import SingleFlightCache
from cctoolkit.core.process import SubprocessRunner
from cctoolkit.toolchain.family import (
    CLANG_MARKER,
    GNU_MARKER,
    MSVC_MARKER,
    PROBE_SOURCE,
    ToolFamily,
    ToolFamilyClassifier,
    family_from_output,
)
from cctoolkit.toolchain.resolver import ExecutableResolver, ResolvedTool
from tests.utils.helpers import make_executable, posix_only
from tests.utils.mocks import RecordingRunner, make_tool


class TestToolFamily:
    """Tests for ToolFamily enum."""

    @pytest.mark.parametrize("name", ["gnu", "GNU", " clang ", "Msvc"])
    def test_from_name(self, name):
        """Test case-insensitive lookup."""
        assert ToolFamily.from_name(name).value == name.strip().lower()

    def test_from_name_invalid(self):
        """Test that unknown names list the valid ones."""
        with pytest.raises(ValueError, match="gnu, clang, msvc"):
            ToolFamily.from_name("intel")

    def test_gnu_like(self):
        """Test which families take GNU spellings."""
        assert ToolFamily.GNU.is_gnu_like
        assert ToolFamily.CLANG.is_gnu_like
        assert not ToolFamily.MSVC.is_gnu_like


class TestFamilyFromOutput:
    """Tests for family_from_output function."""

    def test_markers(self):
        """Test each marker maps to its family."""
        assert family_from_output(f"# 1 \"x.c\"\n{GNU_MARKER}\n") is ToolFamily.GNU
        assert family_from_output(CLANG_MARKER) is ToolFamily.CLANG
        assert family_from_output(MSVC_MARKER) is ToolFamily.MSVC

    def test_msvc_takes_precedence(self):
        """Test deterministic precedence when several markers appear."""
        output = f"{GNU_MARKER}\n{CLANG_MARKER}\n{MSVC_MARKER}\n"
        assert family_from_output(output) is ToolFamily.MSVC

    def test_clang_before_gnu(self):
        """Test that Clang wins over GNU."""
        assert family_from_output(f"{GNU_MARKER}\n{CLANG_MARKER}") is ToolFamily.CLANG

    def test_no_marker(self):
        """Test output without markers."""
        assert family_from_output("") is None
        assert family_from_output("int main() {}") is None

    def test_probe_source_guards(self):
        """Test that each marker is behind a vendor guard."""
        assert "defined(__clang__)" in PROBE_SOURCE
        assert "defined(_MSC_VER)" in PROBE_SOURCE
        assert "defined(__GNUC__)" in PROBE_SOURCE


class TestToolFamilyClassifier:
    """Tests for ToolFamilyClassifier class."""

    @pytest.mark.parametrize("family", ["gnu", "clang", "msvc"])
    def test_classify_from_probe(self, family):
        """Test classification from preprocessed probe output."""
        runner = RecordingRunner(family=family)
        classifier = ToolFamilyClassifier(runner)

        result = classifier.classify(make_tool("/usr/bin/cc"))

        assert result is ToolFamily(family)
        call = runner.calls[0]
        assert call[:2] == ["/usr/bin/cc", "-E"]
        assert call[2].endswith("detect_family.c")

    @pytest.mark.parametrize(
        "path", ["/opt/msvc/bin/cl", "C:\\VC\\bin\\CL.EXE", "/usr/bin/clang-cl"]
    )
    def test_msvc_driver_shortcut(self, path):
        """Test that cl-style drivers are classified without spawning."""
        runner = RecordingRunner()
        classifier = ToolFamilyClassifier(runner)

        assert classifier.classify(make_tool(path)) is ToolFamily.MSVC
        assert runner.calls == []

    def test_script_named_cl_is_probed(self):
        """Test that the shortcut does not apply to interpreter-run tools."""
        runner = RecordingRunner(family="clang")
        tool = ResolvedTool("cl.bat", Path("/bin/cl"), args=("/c", "cl.bat"))

        assert ToolFamilyClassifier(runner).classify(tool) is ToolFamily.CLANG
        assert runner.calls[0][:3] == ["/bin/cl", "/c", "cl.bat"]

    def test_no_marker_fails(self):
        """Test that a tool printing nothing useful is not defaulted."""
        runner = RecordingRunner(handler=lambda argv: ProcessResult(1, stderr="error"))
        classifier = ToolFamilyClassifier(runner)

        with pytest.raises(ClassificationFailed) as exc_info:
            classifier.classify(make_tool("/usr/bin/weird-cc"))

        assert exc_info.value.path == "/usr/bin/weird-cc"
        assert "exit status 1" in str(exc_info.value)

    def test_spawn_failure(self):
        """Test that a probe that can't start raises ClassificationFailed."""

        def handler(argv):
            raise FileNotFoundError(2, "No such file or directory", argv[0])

        classifier = ToolFamilyClassifier(RecordingRunner(handler=handler))

        with pytest.raises(ClassificationFailed, match="failed to run probe"):
            classifier.classify(make_tool("/usr/bin/cc"))

    def test_timeout(self):
        """Test that a hung preprocessor run is a classification failure."""

        def handler(argv):
            raise TimeoutError(f"{argv[0]} timed out after 5s")

        classifier = ToolFamilyClassifier(RecordingRunner(handler=handler))

        with pytest.raises(ClassificationFailed, match="timed out"):
            classifier.classify(make_tool("/usr/bin/cc"))

    def test_result_is_memoized(self):
        """Test that one probe serves repeated classification."""
        runner = RecordingRunner(family="gnu")
        classifier = ToolFamilyClassifier(runner)
        tool = make_tool("/usr/bin/cc")

        classifier.classify(tool)
        classifier.classify(tool)

        assert len(runner.calls) == 1

    def test_shared_cache_between_classifiers(self):
        """Test that classifiers sharing a cache share results."""
        cache = SingleFlightCache()
        runner = RecordingRunner(family="clang")
        tool = make_tool("/usr/bin/clang")

        ToolFamilyClassifier(runner, cache).classify(tool)
        ToolFamilyClassifier(runner, cache).classify(tool)

        assert len(runner.calls) == 1

    def test_failures_are_retried(self):
        """Test that a failed classification is not cached."""
        outcomes = [ProcessResult(1), ProcessResult(0, stdout=GNU_MARKER)]
        runner = RecordingRunner(handler=lambda argv: outcomes.pop(0))
        classifier = ToolFamilyClassifier(runner)
        tool = make_tool("/usr/bin/cc")

        with pytest.raises(ClassificationFailed):
            classifier.classify(tool)
        assert classifier.classify(tool) is ToolFamily.GNU


@posix_only
class TestClassifierWithStubCompiler:
    """Classification through a real process."""

    def test_stub_gnu_compiler(self, tmp_path):
        """Test a stub compiler that answers like gcc -E."""
        make_executable(tmp_path, "cc", f'echo "{GNU_MARKER}"\n')
        runner = SubprocessRunner()
        tool = ExecutableResolver(runner).resolve("cc", search_path=[str(tmp_path)])

        assert ToolFamilyClassifier(runner).classify(tool) is ToolFamily.GNU

    def test_env_overlay_reaches_classification(self, tmp_path):
        """Test that a compiler needing its overlay is classified under it."""
        make_executable(
            tmp_path,
            "cc",
            f'if [ "$TOOLCHAIN_READY" = 1 ]; then echo "{GNU_MARKER}"; fi\n',
        )
        runner = SubprocessRunner()
        tool = ExecutableResolver(runner).resolve(
            "cc", env={"PATH": str(tmp_path), "TOOLCHAIN_READY": "1"}
        )

        assert ToolFamilyClassifier(runner).classify(tool) is ToolFamily.GNU
