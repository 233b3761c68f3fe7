"""
Project settings persisted in ``.sketchpilot/project.json``.

The project file records which sketch is built for which board, with which
board configuration and on which serial port:

    {
        "sketch": "blink.ino",
        "board": "arduino:avr:nano",
        "configuration": "cpu=atmega328",
        "port": "/dev/ttyUSB0",
        "output": "build",
        "prebuild": "./scripts/gen_version.sh",
        "postbuild": null,
        "programmer": "arduino:avrisp",
        "buildPreferences": [["compiler.cpp.extra_flags", "-DDEBUG"]]
    }

Every field notifies its subscribers when its value actually changes.
Subscribers are called synchronously in subscription order, so whatever a
board-change subscriber does is finished before a configuration-change
subscriber of the same update runs.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

PROJECT_DIR_NAME = ".sketchpilot"
PROJECT_FILE_NAME = "project.json"

STRING_FIELDS = (
    "sketch",
    "port",
    "board",
    "configuration",
    "output",
    "prebuild",
    "postbuild",
    "programmer",
)
BUILD_PREFERENCES = "buildPreferences"
FIELDS = STRING_FIELDS + (BUILD_PREFERENCES,)

# Fields written back on save; hook commands and build preferences are
# user-authored and never rewritten
SAVED_FIELDS = ("sketch", "port", "board", "output", "configuration", "programmer")

Listener = Callable[[Any], None]


class ProjectSettingsError(Exception):
    """Exception raised for unreadable or unwritable project files."""

    pass


def _normalize_string(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip()


def _normalize_build_preferences(value: Any) -> Optional[List[List[str]]]:
    """Accept only a non-empty list of [key, value] string pairs."""
    if not isinstance(value, list) or not value:
        return None
    for pref in value:
        if not isinstance(pref, (list, tuple)) or len(pref) != 2:
            return None
        if not all(isinstance(item, str) for item in pref):
            return None
    return [list(pref) for pref in value]


class ProjectSettings:
    """
    Project-level settings with change notification.

    Example:
        settings = ProjectSettings.for_project(Path("."))
        settings.load()
        settings.subscribe("board", lambda value: print(f"board -> {value}"))
        settings.board = "arduino:avr:uno"
        settings.save()
    """

    def __init__(self, path: Optional[Path] = None, autosave: bool = False):
        """
        Initialize settings.

        Args:
            path: Location of the project file (None keeps settings in memory)
            autosave: Save after every change made through the attribute setters
        """
        self.path = Path(path) if path is not None else None
        self.autosave = autosave
        self._values: Dict[str, Any] = {name: None for name in FIELDS}
        self._modified: Dict[str, bool] = {name: False for name in FIELDS}
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in FIELDS}

    @classmethod
    def for_project(cls, project_dir: Path, autosave: bool = False) -> "ProjectSettings":
        return cls(Path(project_dir) / PROJECT_DIR_NAME / PROJECT_FILE_NAME, autosave=autosave)

    def subscribe(self, field: str, listener: Listener) -> Callable[[], None]:
        """
        Register a callback for changes of one field.

        Args:
            field: Field name (e.g., "board", "configuration")
            listener: Called with the new value after it changed

        Returns:
            Function removing the subscription again
        """
        if field not in self._listeners:
            raise KeyError(f"Unknown project setting: {field}")
        self._listeners[field].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[field]:
                self._listeners[field].remove(listener)

        return unsubscribe

    def get(self, field: str) -> Any:
        return self._values[field]

    def set(self, field: str, value: Any) -> bool:
        """
        Set a field, normalizing the value first.

        Strings are trimmed, anything that is not a string becomes None, and
        malformed build preferences fall back to None.

        Returns:
            True if the stored value changed
        """
        if field == BUILD_PREFERENCES:
            value = _normalize_build_preferences(value)
        elif field in STRING_FIELDS:
            value = _normalize_string(value)
        else:
            raise KeyError(f"Unknown project setting: {field}")

        if value == self._values[field]:
            return False

        self._values[field] = value
        self._modified[field] = True
        for listener in list(self._listeners[field]):
            listener(value)
        return True

    @property
    def modified(self) -> bool:
        return any(self._modified.values())

    def commit(self) -> None:
        """Clear all modified flags."""
        for name in FIELDS:
            self._modified[name] = False

    def reset(self, commit: bool = True) -> None:
        """Return every field to its default (None)."""
        for name in FIELDS:
            self.set(name, None)
        if commit:
            self.commit()

    def load(self, path: Optional[Path] = None) -> bool:
        """
        Load settings from the project file.

        A missing file resets everything to defaults. Changed values notify
        their subscribers.

        Returns:
            True if a file was loaded

        Raises:
            ProjectSettingsError: If the file exists but is not a JSON object
        """
        path = Path(path) if path is not None else self.path
        if path is None or not path.exists():
            self.reset()
            return False

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ProjectSettingsError(f"Failed to parse {path}: {e}") from e

        if not isinstance(data, dict):
            raise ProjectSettingsError(f"Failed to parse {path}: expected a JSON object")

        # Board before configuration: board subscribers pick the board the
        # configuration applies to
        for name in ("port", "board", "sketch", "configuration", "output",
                     "prebuild", "postbuild", "programmer", BUILD_PREFERENCES):
            self.set(name, data.get(name))
        self.commit()
        logger.info(f"Loaded project settings from {path}")
        return True

    def save(self, path: Optional[Path] = None) -> bool:
        """
        Write modified settings back to the project file.

        Unknown keys already present in the file are preserved.

        Returns:
            True if nothing needed saving or the write succeeded
        """
        if not self.modified:
            return True

        path = Path(path) if path is not None else self.path
        if path is None:
            return False

        data: Dict[str, Any] = {}
        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                raise ProjectSettingsError(f"Failed to parse {path}: {e}") from e
            if not isinstance(data, dict):
                raise ProjectSettingsError(f"Failed to parse {path}: expected a JSON object")

        for name in SAVED_FIELDS:
            data[name] = self._values[name]

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=4), encoding="utf-8")
        except OSError as e:
            raise ProjectSettingsError(f"Failed to write {path}: {e}") from e

        self.commit()
        return True

    def _set_and_save(self, field: str, value: Any) -> None:
        if self.set(field, value) and self.autosave:
            self.save()

    sketch = property(lambda self: self._values["sketch"], lambda self, v: self._set_and_save("sketch", v))
    port = property(lambda self: self._values["port"], lambda self, v: self._set_and_save("port", v))
    board = property(lambda self: self._values["board"], lambda self, v: self._set_and_save("board", v))
    configuration = property(
        lambda self: self._values["configuration"],
        lambda self, v: self._set_and_save("configuration", v),
    )
    output = property(lambda self: self._values["output"], lambda self, v: self._set_and_save("output", v))
    programmer = property(
        lambda self: self._values["programmer"],
        lambda self, v: self._set_and_save("programmer", v),
    )
    prebuild = property(lambda self: self._values["prebuild"])
    postbuild = property(lambda self: self._values["postbuild"])
    build_preferences = property(lambda self: self._values[BUILD_PREFERENCES])
