"""Core rules and turn state machine for human-vs-computer Tic-Tac-Toe."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

Player = str  # "X" or "O"

HUMAN: Player = "X"
COMPUTER: Player = "O"
EMPTY = " "

BOARD_SIZE = 3

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Phase(str, Enum):
    HUMAN_TURN = "human_turn"
    COMPUTER_TURN = "computer_turn"
    GAME_OVER = "game_over"


class Result(str, Enum):
    HUMAN_WINS = "human_wins"
    COMPUTER_WINS = "computer_wins"
    DRAW = "draw"


# ---------- Board ----------


@dataclass
class Board:
    # Row-major: index = row * 3 + col; 'X', 'O', or ' ' (space) for empty
    cells: List[str] = field(default_factory=lambda: [EMPTY] * 9)

    @classmethod
    def from_rows(cls, rows: List[str]) -> "Board":
        """Build a board from three 3-char strings, e.g. ``["XO ", " X ", "  O"]``."""
        if len(rows) != BOARD_SIZE or any(len(r) != BOARD_SIZE for r in rows):
            raise ValueError("Expected three rows of three cells")
        return cls(cells=[c for row in rows for c in row])

    @staticmethod
    def in_range(row: int, col: int) -> bool:
        return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE

    def get(self, row: int, col: int) -> str:
        return self.cells[row * BOARD_SIZE + col]

    def set(self, row: int, col: int, mark: str) -> None:
        self.cells[row * BOARD_SIZE + col] = mark

    def is_empty(self, row: int, col: int) -> bool:
        return self.in_range(row, col) and self.get(row, col) == EMPTY

    def is_full(self) -> bool:
        return all(c != EMPTY for c in self.cells)

    def empty_cells(self) -> List[Tuple[int, int]]:
        """Empty (row, col) pairs in row-major order."""
        return [divmod(i, BOARD_SIZE) for i, c in enumerate(self.cells) if c == EMPTY]

    def rows(self) -> List[List[str]]:
        return [
            self.cells[r * BOARD_SIZE : (r + 1) * BOARD_SIZE] for r in range(BOARD_SIZE)
        ]

    def clear(self) -> None:
        self.cells[:] = [EMPTY] * 9


# Picks the computer's (row, col) for a board, e.g. ``ai.select_move``
MoveChooser = Callable[[Board], Tuple[int, int]]


def is_win(board: Board, player: Player) -> bool:
    cells = board.cells
    return any(
        cells[a] == player and cells[b] == player and cells[c] == player
        for a, b, c in WINNING_LINES
    )


def is_draw(board: Board) -> bool:
    # A won board is never a draw, however full it is
    if is_win(board, HUMAN) or is_win(board, COMPUTER):
        return False
    return board.is_full()


def is_empty(board: Board, row: int, col: int) -> bool:
    return board.is_empty(row, col)


# ---------- Game ----------


@dataclass
class GameState:
    board: Board = field(default_factory=Board)
    current_player: Player = HUMAN
    phase: Phase = Phase.HUMAN_TURN
    result: Optional[Result] = None
    # Bumped on every reset so deferred computer moves can detect a new game
    generation: int = field(default=0, compare=False)

    @property
    def is_over(self) -> bool:
        return self.phase is Phase.GAME_OVER

    # ---- transitions ----

    def apply_human_move(self, row: int, col: int) -> bool:
        """Place the human's mark; returns False (and changes nothing) if illegal."""
        if self.phase is not Phase.HUMAN_TURN:
            logger.debug(
                "Rejected human move (%s, %s): phase is %s", row, col, self.phase.value
            )
            return False
        if not self.board.is_empty(row, col):
            logger.debug("Rejected human move (%s, %s): cell unavailable", row, col)
            return False

        self.board.set(row, col, HUMAN)
        self._settle(HUMAN, Result.HUMAN_WINS, next_phase=Phase.COMPUTER_TURN)
        return True

    def apply_computer_move(self, choose: MoveChooser) -> Optional[Tuple[int, int]]:
        """Play the cell ``choose`` picks for the computer; None if it is not its turn."""
        if self.phase is not Phase.COMPUTER_TURN:
            logger.debug("Rejected computer move: phase is %s", self.phase.value)
            return None

        row, col = choose(self.board)
        self.board.set(row, col, COMPUTER)
        self._settle(COMPUTER, Result.COMPUTER_WINS, next_phase=Phase.HUMAN_TURN)
        return row, col

    def reset(self) -> None:
        self.board.clear()
        self.current_player = HUMAN
        self.phase = Phase.HUMAN_TURN
        self.result = None
        self.generation += 1

    # ---- helpers ----

    def _settle(self, mover: Player, win_result: Result, next_phase: Phase) -> None:
        # Win is checked before draw: a winning move that fills the board is a win
        if is_win(self.board, mover):
            self.phase = Phase.GAME_OVER
            self.result = win_result
        elif is_draw(self.board):
            self.phase = Phase.GAME_OVER
            self.result = Result.DRAW
        else:
            self.phase = next_phase
            self.current_player = COMPUTER if mover == HUMAN else HUMAN


# ---------- API used by the UI shell ----------


class MoveResult(NamedTuple):
    accepted: bool
    state: GameState


def new_game() -> GameState:
    return GameState()


def attempt_human_move(state: GameState, row: int, col: int) -> MoveResult:
    return MoveResult(state.apply_human_move(row, col), state)


def compute_and_apply_computer_move(
    state: GameState, choose: MoveChooser
) -> Tuple[Optional[int], Optional[int], GameState]:
    """Apply the computer's reply. Row and col are None when it was not its turn."""
    move = state.apply_computer_move(choose)
    if move is None:
        return None, None, state
    return move[0], move[1], state


def reset(state: GameState) -> GameState:
    state.reset()
    return state
