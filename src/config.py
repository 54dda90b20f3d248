"""Load extractor options from TOML files and environment overrides."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path

import msgspec

from core_types import PathLike
from extract.options import ExtractorOptions
from serde_msgspec import convert, loads_toml, validation_error_payload
from utils.env_utils import env_float, env_int, env_name, env_value

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "aspectgraph.toml"
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEY = "aspectgraph"

_ENV_OVERRIDES: dict[str, Callable[[str], object | None]] = {
    "bazel_bin": env_value,
    "timeout_s": env_float,
    "max_batch_size": env_int,
    "parse_workers": env_int,
    "workspace_root": env_value,
}


def load_extractor_options(
    config_file: PathLike | None = None,
    *,
    search_from: Path | None = None,
    apply_env: bool = True,
) -> ExtractorOptions:
    """Load extractor options from aspectgraph.toml / pyproject.toml or an explicit file.

    Parameters
    ----------
    config_file
        Optional explicit TOML file; takes precedence over discovery.
    search_from
        Directory where discovery starts; defaults to the working directory.
    apply_env
        Whether ``ASPECTGRAPH_*`` environment variables override file values.

    Returns
    -------
    ExtractorOptions
        Validated options.

    Raises
    ------
    ValueError
        Raised when the configuration does not validate.
    """
    raw, location = _resolve_payload(config_file, search_from=search_from)
    if apply_env:
        raw = {**raw, **_env_overrides()}
    try:
        return convert(raw, target_type=ExtractorOptions)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Config validation failed for {location}: {details}"
        raise ValueError(msg) from exc


def _resolve_payload(
    config_file: PathLike | None,
    *,
    search_from: Path | None,
) -> tuple[dict[str, object], str]:
    if config_file is not None:
        path = Path(config_file)
        if not path.exists():
            logger.warning("Config file %s does not exist; using defaults", path)
            return {}, str(path)
        return _read_toml(path), str(path)

    start = search_from or Path.cwd()
    config_path = _find_in_parents(CONFIG_FILENAME, start)
    if config_path is not None:
        return _read_toml(config_path), str(config_path)

    pyproject_path = _find_in_parents(PYPROJECT_FILENAME, start)
    if pyproject_path is not None:
        nested = _extract_tool_config(_read_toml(pyproject_path))
        if nested is not None:
            return nested, f"{pyproject_path}:tool.{PYPROJECT_TOOL_KEY}"
    return {}, "<defaults>"


def _find_in_parents(filename: str, start: Path) -> Path | None:
    """Walk parents from ``start`` to find a filename.

    Returns
    -------
    Path | None
        Path to the first matching file in ``start`` or its parents.
    """
    path = start.resolve()
    while True:
        candidate = path / filename
        if candidate.exists():
            return candidate
        if path.parent == path:
            return None
        path = path.parent


def _read_toml(path: Path) -> dict[str, object]:
    try:
        return loads_toml(path.read_text(encoding="utf-8"))
    except msgspec.DecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ValueError(msg) from exc


def _extract_tool_config(pyproject: Mapping[str, object]) -> dict[str, object] | None:
    tool = pyproject.get("tool")
    if not isinstance(tool, Mapping):
        return None
    section = tool.get(PYPROJECT_TOOL_KEY)
    if not isinstance(section, Mapping):
        return None
    return dict(section)


def _env_overrides() -> dict[str, object]:
    overrides: dict[str, object] = {}
    for key, reader in _ENV_OVERRIDES.items():
        value = reader(env_name(key))
        if value is not None:
            logger.debug("Config %s overridden from %s", key, env_name(key))
            overrides[key] = value
    return overrides


__all__ = ["CONFIG_FILENAME", "load_extractor_options"]
