"""Run the rule-info aspect through Bazel and collect its output files."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from build_graph.errors import BuildToolCancelled, BuildToolInvocationFailed, BuildToolTimeout
from build_graph.labels import BuildLabel
from extract.options import (
    DEFAULT_ASPECT,
    DEFAULT_BAZEL_BIN,
    DEFAULT_INFO_SUFFIX,
    DEFAULT_OUTPUT_GROUP,
    ExtractorOptions,
)

logger = logging.getLogger(__name__)

ARTIFACT_LINE_PREFIX = ">>>"


def artifact_paths(stderr: str, *, suffix: str) -> tuple[str, ...]:
    """Return artifact paths reported by ``--experimental_show_artifacts``.

    Parameters
    ----------
    stderr
        Captured Bazel stderr.
    suffix
        Info file suffix to keep.

    Returns
    -------
    tuple[str, ...]
        Distinct matching paths in report order.
    """
    seen: dict[str, None] = {}
    for line in stderr.splitlines():
        stripped = line.strip()
        if not stripped.startswith(ARTIFACT_LINE_PREFIX):
            continue
        path = stripped[len(ARTIFACT_LINE_PREFIX) :].strip()
        if path.endswith(suffix):
            seen.setdefault(path, None)
    return tuple(seen)


@dataclass(frozen=True)
class BazelAspectInvoker:
    """Invoke ``bazel build`` with the rule-info aspect attached.

    Startup and build options are forwarded verbatim; this class only adds the
    flags needed to request the aspect output group.
    """

    workspace_root: Path
    bazel_bin: str = DEFAULT_BAZEL_BIN
    aspect: str = DEFAULT_ASPECT
    output_group: str = DEFAULT_OUTPUT_GROUP
    info_suffix: str = DEFAULT_INFO_SUFFIX
    timeout_s: float | None = None

    @classmethod
    def from_options(cls, workspace_root: Path, options: ExtractorOptions) -> BazelAspectInvoker:
        """Build an invoker from extractor options.

        Returns
        -------
        BazelAspectInvoker
            Invoker bound to ``workspace_root``.
        """
        return cls(
            workspace_root=workspace_root,
            bazel_bin=options.bazel_bin,
            aspect=options.aspect,
            output_group=options.output_group,
            info_suffix=options.info_suffix,
            timeout_s=options.timeout_s,
        )

    def build_command(
        self,
        labels: Sequence[BuildLabel],
        *,
        startup_options: Sequence[str] = (),
        build_options: Sequence[str] = (),
    ) -> list[str]:
        """Return the full Bazel command line for ``labels``.

        Returns
        -------
        list[str]
            Command arguments, executable first.
        """
        return [
            self.bazel_bin,
            *startup_options,
            "build",
            *build_options,
            f"--aspects={self.aspect}",
            f"--output_groups={self.output_group}",
            "--experimental_show_artifacts",
            "--",
            *(label.canonical_form() for label in labels),
        ]

    def invoke(
        self,
        labels: Sequence[BuildLabel],
        *,
        startup_options: Sequence[str] = (),
        build_options: Sequence[str] = (),
    ) -> list[bytes]:
        """Run the aspect over ``labels`` and return the info file contents.

        All files are read before returning so a failure never yields partial
        output.

        Returns
        -------
        list[bytes]
            One JSON document per visited rule.

        Raises
        ------
        BuildToolTimeout
            Raised when Bazel does not finish within ``timeout_s``.
        BuildToolCancelled
            Raised when Bazel was terminated by a signal.
        BuildToolInvocationFailed
            Raised when Bazel cannot be started, exits non-zero, or an info file
            cannot be read.
        """
        root = self.workspace_root.resolve()
        cmd = self.build_command(
            labels,
            startup_options=startup_options,
            build_options=build_options,
        )
        logger.info("Running %s aspect over %d target(s)", self.bazel_bin, len(labels))
        logger.debug("Bazel command: %s", cmd)
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(root),
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as exc:
            raise BuildToolTimeout(exc.timeout, cmd=cmd) from exc
        except OSError as exc:
            msg = f"could not start {self.bazel_bin}: {exc}"
            raise BuildToolInvocationFailed(msg, cmd=cmd) from exc
        if proc.returncode < 0:
            msg = f"{self.bazel_bin} was terminated by signal {-proc.returncode}"
            raise BuildToolCancelled(
                msg, cmd=cmd, returncode=proc.returncode, stderr=proc.stderr
            )
        if proc.returncode != 0:
            msg = f"{self.bazel_bin} build exited unsuccessfully"
            raise BuildToolInvocationFailed(
                msg, cmd=cmd, returncode=proc.returncode, stderr=proc.stderr
            )

        paths = artifact_paths(proc.stderr, suffix=self.info_suffix)
        logger.debug("Bazel reported %d aspect output file(s)", len(paths))
        return [self._read_artifact(root, path, cmd=cmd) for path in paths]

    @staticmethod
    def _read_artifact(root: Path, path: str, *, cmd: Sequence[str]) -> bytes:
        candidate = Path(path)
        resolved = candidate if candidate.is_absolute() else root / candidate
        try:
            return resolved.read_bytes()
        except OSError as exc:
            msg = f"could not read aspect output {resolved}: {exc}"
            raise BuildToolInvocationFailed(msg, cmd=cmd) from exc


__all__ = ["ARTIFACT_LINE_PREFIX", "BazelAspectInvoker", "artifact_paths"]
