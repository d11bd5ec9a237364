"""Fixed-priority heuristic opponent for Tic-Tac-Toe."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .game import COMPUTER, EMPTY, HUMAN, Board, Player, is_win

logger = logging.getLogger(__name__)

Move = Tuple[int, int]

CENTER: Move = (1, 1)
CORNERS: Tuple[Move, ...] = ((0, 0), (0, 2), (2, 0), (2, 2))
SIDES: Tuple[Move, ...] = ((0, 1), (1, 0), (1, 2), (2, 1))

# Tier names, in priority order
WIN, BLOCK, TAKE_CENTER, TAKE_CORNER, TAKE_SIDE, FALLBACK = (
    "win",
    "block",
    "center",
    "corner",
    "side",
    "fallback",
)


@dataclass
class HeuristicAI:
    """Computer player that walks a fixed cascade of tiers.

    The first tier producing a cell decides the move; nothing is scored or
    compared across tiers:

      1. complete one of our own lines
      2. block the first human threat found in row-major order
      3. take the center
      4. take a corner
      5. take a side
      6. take any empty cell
    """

    player: Player = COMPUTER
    opponent: Player = HUMAN

    # ---- public API ----

    def choose(self, board: Board) -> Move:
        return self.choose_with_tier(board)[0]

    def choose_with_tier(self, board: Board) -> Tuple[Move, str]:
        if board.is_full():
            raise RuntimeError("No valid moves available")

        move = self._completing_move(board, self.player)
        if move is not None:
            return self._picked(move, WIN)

        # Only the first threat is ever blocked, even when there are two
        move = self._completing_move(board, self.opponent)
        if move is not None:
            return self._picked(move, BLOCK)

        if board.is_empty(*CENTER):
            return self._picked(CENTER, TAKE_CENTER)

        for move in CORNERS:
            if board.is_empty(*move):
                return self._picked(move, TAKE_CORNER)

        for move in SIDES:
            if board.is_empty(*move):
                return self._picked(move, TAKE_SIDE)

        return self._picked(board.empty_cells()[0], FALLBACK)

    # ---- tiers ----

    def _completing_move(self, board: Board, player: Player) -> Optional[Move]:
        """First empty cell (row-major) where ``player`` would win immediately."""
        for row, col in board.empty_cells():
            board.set(row, col, player)
            try:
                if is_win(board, player):
                    return row, col
            finally:
                board.set(row, col, EMPTY)
        return None

    def _picked(self, move: Move, tier: str) -> Tuple[Move, str]:
        logger.debug("%s picks %s via %s tier", self.player, move, tier)
        return move, tier


_DEFAULT_AI = HeuristicAI()


def select_move(board: Board) -> Move:
    """Pick the computer's cell for ``board`` (which must not be full)."""
    return _DEFAULT_AI.choose(board)
