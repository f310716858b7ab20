"""
Locating, reading and writing the settings file.

Settings are optional: with no file anywhere on the lookup path the engine
runs on the dataclass defaults in :mod:`novelti.schemas.config`.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from novelti.infra.paths import DEFAULT_CONFIG_FILE, SETTING_PATH

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "NOVELTI_SETTINGS"
LOCAL_FILENAMES = ("settings.toml", "settings.json")


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e


def _read_toml(path: Path) -> Any:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e


_READERS: dict[str, Callable[[Path], Any]] = {
    ".json": _read_json,
    ".toml": _read_toml,
}


def _load_by_extension(path: Path) -> dict[str, Any]:
    """Parse a settings file, picking the format from its suffix.

    Raises:
        ValueError: If the suffix is not ``.toml``/``.json``, the content does
            not parse, or the root is not a table.
    """
    suffix = path.suffix.lower()
    reader = _READERS.get(suffix)
    if reader is None:
        raise ValueError(f"Unsupported config file extension: {suffix}")

    data = reader(path)
    if not isinstance(data, dict):
        raise ValueError(
            f"Config root must be a table, got {type(data).__name__} in {path}"
        )
    return data


def _implicit_candidates() -> Iterator[Path]:
    env_path = os.environ.get(ENV_CONFIG_PATH)
    if env_path:
        path = Path(env_path).expanduser().resolve()
        if path.is_file():
            yield path
        else:
            logger.warning("%s points to a missing file: %s", ENV_CONFIG_PATH, path)

    cwd = Path.cwd()
    for name in LOCAL_FILENAMES:
        yield (cwd / name).resolve()

    yield SETTING_PATH


def _resolve_file_path(user_path: str | Path | None) -> Path | None:
    """
    Find the settings file to load.

    Lookup order:
        1. Explicit ``user_path``; a missing file here is an error
        2. The path named by the ``NOVELTI_SETTINGS`` environment variable
        3. ``settings.toml`` / ``settings.json`` in the working directory
        4. ``SETTING_PATH`` in the user config directory

    Raises:
        FileNotFoundError: If ``user_path`` is given but is not a file.
    """
    if user_path:
        path = Path(user_path).expanduser().resolve()
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        return path

    return next((p for p in _implicit_candidates() if p.is_file()), None)


def load_config(
    config_path: str | Path | None = None,
    *,
    missing_ok: bool = True,
) -> dict[str, Any]:
    """
    Load settings from TOML or JSON.

    Args:
        config_path: Explicit settings file; skips the implicit lookup.
        missing_ok: Return ``{}`` instead of raising when nothing is found.

    Returns:
        The raw settings mapping, ready for :class:`ConfigAdapter`.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist, or nothing was
            found and ``missing_ok`` is False.
        ValueError: If the file cannot be parsed.
    """
    path = _resolve_file_path(config_path)
    if path is None:
        if not missing_ok:
            raise FileNotFoundError("No settings file found on the lookup path.")
        logger.debug("No settings file found; running on defaults")
        return {}

    logger.debug("Reading settings from %s", path)
    return _load_by_extension(path)


def copy_default_config(target: Path) -> None:
    """Write the bundled ``settings.sample.toml`` to ``target``."""
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(DEFAULT_CONFIG_FILE.read_bytes())


def save_config_file(
    source_path: str | Path, output_path: str | Path = SETTING_PATH
) -> None:
    """
    Validate a TOML/JSON settings file and install it as the user's settings.

    The output is always JSON, whatever the source format.

    Raises:
        FileNotFoundError: If the source file does not exist.
        ValueError: If the source file is invalid.
        OSError: If writing the output fails.
    """
    source = Path(source_path).expanduser().resolve()
    if not source.is_file():
        raise FileNotFoundError(f"Settings file not found: {source}")

    data = _load_by_extension(source)

    output = Path(output_path).expanduser().resolve()
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Settings installed at %s", output)
