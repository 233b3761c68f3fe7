"""Current board and programmer selection.

The managers connect the project settings (which board key, configuration
string and programmer the project asks for) to the installed registries of
the workspace context.
"""

import logging
from typing import TYPE_CHECKING, Callable, List, Optional

from ..config.board import Board, BoardConfigResult, Programmer, board_equal
from ..config.project_settings import ProjectSettings
from .context import WorkspaceContext

if TYPE_CHECKING:
    from ..ui import IUserInterface

logger = logging.getLogger(__name__)

INVALID_CONFIG_REASONS = {
    BoardConfigResult.INVALID_FORMAT: ': Invalid format must be of the form "key1=value2,key1=value2,..."',
    BoardConfigResult.INVALID_CONFIG_ID: ": Invalid configuration key",
    BoardConfigResult.INVALID_OPTION_ID: ": Invalid configuration value",
}


class BoardManager:
    """
    Tracks the current board and keeps its configuration in sync.

    The manager subscribes to the project's "board" and "configuration"
    settings. An invalid configuration never aborts anything: the board falls
    back to its defaults and the user gets a warning. The stored
    configuration string is left untouched so it can be fixed by hand.
    """

    def __init__(self, context: WorkspaceContext, settings: ProjectSettings, ui: "IUserInterface"):
        self.context = context
        self.settings = settings
        self.ui = ui
        self.current_board: Optional[Board] = None
        self._board_changed_listeners: List[Callable[[Optional[Board]], None]] = []
        self._unsubscribe: List[Callable[[], None]] = []

    def attach(self) -> None:
        """Subscribe to project settings and pick up the current board."""
        self._unsubscribe.append(self.settings.subscribe("board", lambda _: self.on_board_setting_change()))
        self._unsubscribe.append(
            self.settings.subscribe("configuration", lambda _: self.on_configuration_setting_change())
        )
        self.on_board_setting_change()

    def detach(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()

    def on_board_type_changed(self, listener: Callable[[Optional[Board]], None]) -> None:
        self._board_changed_listeners.append(listener)

    def list_boards(self) -> List[Board]:
        return self.context.list_boards()

    def change_board_type(self, target: Board) -> None:
        """
        Select another board.

        The current board is cleared first so that writing the new board's
        configuration doesn't overwrite the old board's selections.
        """
        if self.settings.board == target.key:
            return
        self.current_board = None
        self.settings.configuration = target.custom_config_string()
        self.settings.board = target.key

    def on_board_setting_change(self) -> None:
        new_board = self.context.boards.get(self.settings.board) if self.settings.board else None
        if board_equal(new_board, self.current_board):
            return

        if new_board is not None:
            self.current_board = new_board
            if self.settings.configuration:
                result = new_board.load_config(self.settings.configuration)
                if not result.ok:
                    new_board.reset_config()
                    self.invalid_config_warning(result)
            else:
                new_board.reset_config()
                self.settings.configuration = None
        else:
            self.current_board = None

        logger.info(f"Current board: {self.current_board.key if self.current_board else '<none>'}")
        for listener in list(self._board_changed_listeners):
            listener(self.current_board)

    def on_configuration_setting_change(self) -> None:
        if self.current_board is None:
            return
        result = self.current_board.load_config(self.settings.configuration)
        if not result.ok:
            self.current_board.reset_config()
            self.invalid_config_warning(result)

    def invalid_config_warning(self, result: BoardConfigResult) -> None:
        what = INVALID_CONFIG_REASONS.get(result, "")
        message = f"Invalid board configuration detected in configuration file{what}. Falling back to defaults."
        logger.warning(message)
        self.ui.warning(message)

    def update_config(self, config_id: str, option_id: str) -> BoardConfigResult:
        """Change one option of the current board and store the new configuration."""
        if self.current_board is None:
            return BoardConfigResult.INVALID_CONFIG_ID
        result = self.current_board.update_config(config_id, option_id)
        if result is BoardConfigResult.SUCCESS:
            self.settings.configuration = self.current_board.custom_config_string()
        return result


class ProgrammerManager:
    """Resolves the project's programmer setting against installed programmers."""

    def __init__(self, context: WorkspaceContext, settings: ProjectSettings):
        self.context = context
        self.settings = settings

    @property
    def current_programmer(self) -> Optional[str]:
        """
        Programmer value for the toolchain, None if none is selected.

        The setting may hold a programmer key ("arduino:avrisp"), a bare
        programmer id or a display name; anything unknown is passed through
        unchanged.
        """
        selected = self.settings.programmer
        if not selected:
            return None

        programmer = self.find(selected)
        if programmer is not None:
            return programmer.key
        return selected

    def find(self, selected: str) -> Optional[Programmer]:
        if selected in self.context.programmers:
            return self.context.programmers[selected]
        for programmer in self.context.programmers.values():
            if selected in (programmer.programmer_id, programmer.name):
                return programmer
        return None

    def list_programmers(self) -> List[Programmer]:
        return list(self.context.programmers.values())
