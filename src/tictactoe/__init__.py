"""Tic-Tac-Toe package exposing game rules, the heuristic AI, and the web application."""

from .ai import HeuristicAI, select_move
from .game import (
    GameState,
    MoveResult,
    Phase,
    Result,
    attempt_human_move,
    compute_and_apply_computer_move,
    new_game,
    reset,
)
from .ui import app

__all__ = [
    "GameState",
    "HeuristicAI",
    "MoveResult",
    "Phase",
    "Result",
    "app",
    "attempt_human_move",
    "compute_and_apply_computer_move",
    "new_game",
    "reset",
    "select_move",
]
