"""Tests for the Bazel aspect invoker."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from build_graph.errors import BuildToolCancelled, BuildToolInvocationFailed, BuildToolTimeout
from build_graph.labels import BuildLabel
from extract import bazel_invoker
from extract.bazel_invoker import BazelAspectInvoker, artifact_paths
from extract.options import DEFAULT_INFO_SUFFIX, ExtractorOptions

LABELS = (BuildLabel.parse("//sample:Application"), BuildLabel.parse("//sample:XCTest"))

type RunFn = Callable[..., subprocess.CompletedProcess[str]]


def _patch_run(monkeypatch: pytest.MonkeyPatch, fn: RunFn) -> list[dict[str, object]]:
    calls: list[dict[str, object]] = []

    def _run(cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        calls.append({"cmd": cmd, **kwargs})
        return fn(cmd, **kwargs)

    monkeypatch.setattr(bazel_invoker.subprocess, "run", _run)
    return calls


def _completed(returncode: int = 0, stderr: str = "") -> RunFn:
    def _fn(cmd: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(cmd, returncode, stdout="", stderr=stderr)

    return _fn


def test_artifact_paths_keeps_info_files_only() -> None:
    """Only artifact lines with the info suffix are returned, once each."""
    stderr = "\n".join(
        [
            "INFO: Analyzed 2 targets",
            ">>>bazel-bin/sample/Application.aspectgraph.json",
            "  >>> bazel-bin/sample/XCTest.aspectgraph.json",
            ">>>bazel-bin/sample/Application.ipa",
            ">>>bazel-bin/sample/Application.aspectgraph.json",
            "INFO: Build completed successfully",
        ]
    )
    assert artifact_paths(stderr, suffix=DEFAULT_INFO_SUFFIX) == (
        "bazel-bin/sample/Application.aspectgraph.json",
        "bazel-bin/sample/XCTest.aspectgraph.json",
    )


def test_build_command_layout(tmp_path: Path) -> None:
    """Startup options precede the verb and build options follow it."""
    invoker = BazelAspectInvoker(workspace_root=tmp_path, bazel_bin="bazelisk")
    cmd = invoker.build_command(
        LABELS,
        startup_options=["--output_base=/tmp/ob"],
        build_options=["--config=ios"],
    )
    assert cmd == [
        "bazelisk",
        "--output_base=/tmp/ob",
        "build",
        "--config=ios",
        "--aspects=@aspectgraph//:aspect.bzl%rule_info_aspect",
        "--output_groups=aspectgraph-info",
        "--experimental_show_artifacts",
        "--",
        "//sample:Application",
        "//sample:XCTest",
    ]


def test_from_options_copies_tool_settings(tmp_path: Path) -> None:
    """Invoker settings come from extractor options."""
    options = ExtractorOptions(
        bazel_bin="/opt/bazel",
        aspect="//tools:info.bzl%info",
        output_group="info",
        info_suffix=".info.json",
        timeout_s=12.5,
    )
    invoker = BazelAspectInvoker.from_options(tmp_path, options)
    assert invoker.bazel_bin == "/opt/bazel"
    assert invoker.aspect == "//tools:info.bzl%info"
    assert invoker.output_group == "info"
    assert invoker.info_suffix == ".info.json"
    assert invoker.timeout_s == 12.5


def test_invoke_reads_reported_info_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Relative and absolute artifact paths are read in report order."""
    relative = tmp_path / "bazel-bin" / "sample" / "Application.aspectgraph.json"
    relative.parent.mkdir(parents=True)
    relative.write_bytes(b'{"label": "//sample:Application"}')
    absolute = tmp_path / "elsewhere" / "XCTest.aspectgraph.json"
    absolute.parent.mkdir()
    absolute.write_bytes(b'{"label": "//sample:XCTest"}')
    stderr = f">>>bazel-bin/sample/Application.aspectgraph.json\n>>>{absolute}\n"
    calls = _patch_run(monkeypatch, _completed(stderr=stderr))

    invoker = BazelAspectInvoker(workspace_root=tmp_path, timeout_s=30.0)
    units = invoker.invoke(LABELS)

    assert units == [b'{"label": "//sample:Application"}', b'{"label": "//sample:XCTest"}']
    assert calls[0]["cwd"] == str(tmp_path.resolve())
    assert calls[0]["timeout"] == 30.0
    assert calls[0]["capture_output"] is True
    assert calls[0]["encoding"] == "utf-8"
    assert calls[0]["errors"] == "replace"


def test_nonzero_exit_raises_invocation_failed(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A failing build surfaces its exit code and stderr."""
    _patch_run(monkeypatch, _completed(returncode=1, stderr="ERROR: no such target"))
    with pytest.raises(BuildToolInvocationFailed) as excinfo:
        BazelAspectInvoker(workspace_root=tmp_path).invoke(LABELS)
    assert excinfo.value.returncode == 1
    assert "no such target" in excinfo.value.stderr
    assert excinfo.value.cmd[0] == "bazel"
    assert not isinstance(excinfo.value, BuildToolCancelled)


def test_signal_exit_raises_cancelled(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A build killed by a signal is reported as cancelled."""
    _patch_run(monkeypatch, _completed(returncode=-15))
    with pytest.raises(BuildToolCancelled, match="signal 15"):
        BazelAspectInvoker(workspace_root=tmp_path).invoke(LABELS)


def test_timeout_raises_build_tool_timeout(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Exceeding the timeout raises BuildToolTimeout with the limit attached."""

    def _timeout(cmd: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        raise subprocess.TimeoutExpired(cmd, 2.0)

    _patch_run(monkeypatch, _timeout)
    with pytest.raises(BuildToolTimeout) as excinfo:
        BazelAspectInvoker(workspace_root=tmp_path, timeout_s=2.0).invoke(LABELS)
    assert excinfo.value.timeout_s == 2.0


def test_missing_executable_raises_invocation_failed(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A missing Bazel binary is an invocation failure."""

    def _missing(cmd: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    _patch_run(monkeypatch, _missing)
    with pytest.raises(BuildToolInvocationFailed, match="could not start"):
        BazelAspectInvoker(workspace_root=tmp_path).invoke(LABELS)


def test_unreadable_info_file_raises_invocation_failed(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A reported info file that cannot be read fails the whole invocation."""
    _patch_run(monkeypatch, _completed(stderr=">>>bazel-bin/gone.aspectgraph.json\n"))
    with pytest.raises(BuildToolInvocationFailed, match="could not read aspect output"):
        BazelAspectInvoker(workspace_root=tmp_path).invoke(LABELS)


def test_undecodable_stderr_is_replaced(tmp_path: Path) -> None:
    """Invalid UTF-8 on stderr does not prevent reading the reported info files."""
    (tmp_path / "info.aspectgraph.json").write_bytes(b'{"label": "//sample:Library"}')
    script = (
        "import sys; "
        "sys.stderr.buffer.write(b'\\xff\\xfe noise\\n>>>info.aspectgraph.json\\n')"
    )
    invoker = BazelAspectInvoker(workspace_root=tmp_path, bazel_bin=sys.executable)
    units = invoker.invoke(LABELS, startup_options=["-c", script])
    assert units == [b'{"label": "//sample:Library"}']


def test_undecodable_stderr_on_failure_stays_an_invocation_error(tmp_path: Path) -> None:
    """A failing build with invalid UTF-8 output still raises BuildToolInvocationFailed."""
    script = "import sys; sys.stderr.buffer.write(b'ERROR: \\xff\\n'); sys.exit(2)"
    invoker = BazelAspectInvoker(workspace_root=tmp_path, bazel_bin=sys.executable)
    with pytest.raises(BuildToolInvocationFailed) as excinfo:
        invoker.invoke(LABELS, startup_options=["-c", script])
    assert excinfo.value.returncode == 2
    assert "\ufffd" in excinfo.value.stderr
