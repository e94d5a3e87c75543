import json
from pathlib import Path

from constants import DEFAULT_SETTINGS
from core.exceptions import FileReadError
from core.file_io import FileReader, FileWriter, FilesystemFileReader, FilesystemFileWriter
from models import Settings, TrailerLayout


CONFIG_DIR = Path.home() / ".cscopetree"
CONFIG_FILE = CONFIG_DIR / "settings.json"


def get_config_file(file_reader: FileReader | None = None) -> Settings:
    """
    Read the user settings file.

    Returns:
        Settings: The stored settings, or an empty dict if the file is missing
            or empty.

    Raises:
        FileReadError: If the file can't be read or doesn't hold a JSON object.
    """
    reader = file_reader if file_reader is not None else FilesystemFileReader()
    file_content = reader.read_text(CONFIG_FILE)
    if not file_content.strip():
        return {}

    try:
        data = json.loads(file_content)
    except json.JSONDecodeError as e:
        raise FileReadError(
            message=f"Settings file is not valid JSON: {CONFIG_FILE}",
            file_path=str(CONFIG_FILE),
            original_exception=e,
        ) from e

    if not isinstance(data, dict):
        raise FileReadError(
            message=f"Settings file must hold a JSON object: {CONFIG_FILE}",
            file_path=str(CONFIG_FILE),
        )
    return data


def save_config(
    database: str,
    layout: str,
    encoding: str,
    file_writer: FileWriter | None = None,
) -> None:
    """
    Write the user settings file, creating its directory if needed.

    Raises:
        ValueError: If `layout` is not a TrailerLayout value.
        InvalidFilePathError: If the settings directory is not writable.
        FileWriteError: If the directory or the file can't be written.
    """
    data = json.dumps(
        {"database": database, "layout": TrailerLayout(layout).value, "encoding": encoding},
        indent=2,
    )
    fw = (
        file_writer
        if file_writer is not None
        else FilesystemFileWriter.from_path(CONFIG_FILE, create_parents=True)
    )
    fw.write_text(data)


def resolve_settings(config: Settings, **overrides: str | None) -> Settings:
    """
    Merge built-in defaults, stored settings and command-line overrides.

    Overrides that are None are ignored, so unset CLI options fall back to the
    settings file and then to DEFAULT_SETTINGS.

    Args:
        config: Settings read from the settings file.
        **overrides: Values given on the command line, keyed like Settings.

    Returns:
        Settings: The effective settings.
    """
    settings: Settings = {**DEFAULT_SETTINGS}
    for key in DEFAULT_SETTINGS:
        value = config.get(key)
        if value:
            settings[key] = value  # type: ignore[literal-required]
    for key, value in overrides.items():
        if value is not None and key in DEFAULT_SETTINGS:
            settings[key] = value  # type: ignore[literal-required]
    return settings
