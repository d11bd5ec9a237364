"""FastAPI-powered web UI for playing Tic-Tac-Toe against the computer."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from .ai import HeuristicAI
from .game import (
    COMPUTER,
    HUMAN,
    GameState,
    Phase,
    Result,
    attempt_human_move,
    compute_and_apply_computer_move,
    new_game,
    reset,
)

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active game, its computer opponent and pending reply."""

    state: GameState
    ai: HeuristicAI
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    pending: Optional[threading.Timer] = field(default=None, repr=False)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    last_active: float = field(default_factory=lambda: time.time())

    @property
    def computer_pending(self) -> bool:
        return self.pending is not None

    def cancel_pending(self) -> None:
        if self.pending is not None:
            self.pending.cancel()
            self.pending = None


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(
    title="Tic-Tac-Toe", description="Tic-Tac-Toe against a heuristic computer"
)

# Overridden from settings by the entry point
AI_THINK_DELAY: float = 0.5
SESSION_TTL_SECONDS = 60 * 60  # 1 hour

RESULT_MESSAGES = {
    Result.HUMAN_WINS: f"Human ({HUMAN}) wins!",
    Result.COMPUTER_WINS: f"Computer ({COMPUTER}) wins!",
    Result.DRAW: "It's a draw!",
}


class MoveRequest(BaseModel):
    """Request payload for a human move. Range checks are left to the game."""

    row: int
    col: int


def status_text(state: GameState) -> str:
    if state.result is not None:
        return RESULT_MESSAGES[state.result]
    if state.phase is Phase.COMPUTER_TURN:
        return f"Computer's turn ({COMPUTER})"
    return f"Your turn ({HUMAN})"


def _cleanup_sessions() -> None:
    """Forget games nobody has touched for SESSION_TTL_SECONDS."""

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if now - session.last_active >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        session = SESSIONS.pop(game_id, None)
        if session is None:
            continue
        with session.lock:
            session.cancel_pending()
        logger.info("Expired idle game %s", game_id)


def _create_session() -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    _cleanup_sessions()
    session = GameSession(state=new_game(), ai=HeuristicAI())
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Started game %s", session_id)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.last_active = time.time()
    return session


def _log_if_over(game_id: str, state: GameState) -> None:
    if state.is_over and state.result is not None:
        logger.info("Game %s finished: %s", game_id, state.result.value)


def _schedule_ai_turn(game_id: str, session: GameSession) -> None:
    """Queue the computer's reply for the current generation. Caller holds the lock."""

    session.cancel_pending()
    timer = threading.Timer(
        max(0.0, AI_THINK_DELAY),
        _run_ai_turn,
        args=(game_id, session.state.generation),
    )
    timer.daemon = True
    session.pending = timer
    logger.debug(
        "Scheduled computer move for game %s (generation %d) in %.2fs",
        game_id,
        session.state.generation,
        AI_THINK_DELAY,
    )
    timer.start()


def _run_ai_turn(game_id: str, generation: int) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    with session.lock:
        state = session.state
        if state.generation != generation:
            logger.debug(
                "Discarded stale computer move for game %s (generation %d, now %d)",
                game_id,
                generation,
                state.generation,
            )
            return
        try:
            if state.phase is not Phase.COMPUTER_TURN:
                return
            row, col, _ = compute_and_apply_computer_move(state, session.ai.choose)
            if row is not None and col is not None:
                session.move_log.append(
                    {"player": session.ai.player, "row": row, "col": col}
                )
            _log_if_over(game_id, state)
        finally:
            session.pending = None


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        state = session.state
        payload: Dict[str, object] = {
            "id": game_id,
            "board": [
                [c if c in (HUMAN, COMPUTER) else "" for c in row]
                for row in state.board.rows()
            ],
            "phase": state.phase.value,
            "result": state.result.value if state.result is not None else None,
            "currentPlayer": state.current_player,
            "isOver": state.is_over,
            "status": status_text(state),
            "computerPending": session.computer_pending,
            "moveLog": list(session.move_log),
            "generation": state.generation,
        }
        if session.move_log:
            payload["lastMove"] = session.move_log[-1]
        return payload


def _apply_player_move(game_id: str, session: GameSession, row: int, col: int) -> bool:
    with session.lock:
        accepted, state = attempt_human_move(session.state, row, col)
        if not accepted:
            return False

        session.move_log.append({"player": HUMAN, "row": row, "col": col})
        _log_if_over(game_id, state)
        if state.phase is Phase.COMPUTER_TURN:
            _schedule_ai_turn(game_id, session)
        return True


def _reset_session(game_id: str, session: GameSession) -> None:
    with session.lock:
        session.cancel_pending()
        reset(session.state)
        session.move_log.clear()
        logger.info("Reset game %s (generation %d)", game_id, session.state.generation)


@app.post("/api/game")
def create_game() -> Dict[str, object]:
    game_id, session = _create_session()
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(game_id: str, request: MoveRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    accepted = _apply_player_move(game_id, session, request.row, request.col)
    payload = _serialize_session(game_id, session)
    payload["accepted"] = accepted
    return payload


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    _reset_session(game_id, session)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe (Human vs. AI)</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        align-items: flex-start;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: 1.5rem;
        width: 300px;
        display: flex;
        flex-direction: column;
        gap: 10px;
      }
      h1 {
        margin: 0;
        font-size: 1.4rem;
        text-align: center;
        letter-spacing: 0.04em;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 80px);
        grid-template-rows: repeat(3, 80px);
        gap: 5px;
        justify-content: center;
      }
      .cell {
        font-size: 2.2rem;
        font-weight: 600;
        border-radius: 10px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
      }
      .cell.x {
        color: #2a5bd7;
      }
      .cell.o {
        color: #d2453a;
      }
      .cell:disabled {
        cursor: default;
      }
      #status {
        text-align: center;
        min-height: 1.5em;
        font-weight: 500;
      }
      #reset {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: rgba(226, 232, 255, 0.9);
        cursor: pointer;
        font-family: inherit;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic-Tac-Toe</h1>
      <div class=\"board\" id=\"board\"></div>
      <div id=\"status\">Welcome to Tic-Tac-Toe!</div>
      <button id=\"reset\" type=\"button\">Reset Game</button>
    </main>
    <script>
      const POLL_INTERVAL_MS = 150;
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const resetButton = document.getElementById('reset');
      const cells = [];
      let gameState = null;
      let pollTimer = null;

      for (let row = 0; row < 3; row += 1) {
        for (let col = 0; col < 3; col += 1) {
          const button = document.createElement('button');
          button.type = 'button';
          button.className = 'cell';
          button.dataset.row = String(row);
          button.dataset.col = String(col);
          button.addEventListener('click', () => playCell(row, col));
          boardEl.appendChild(button);
          cells.push(button);
        }
      }

      async function request(path, options = {}) {
        const response = await fetch(path, {
          headers: { 'Content-Type': 'application/json' },
          ...options,
        });
        if (!response.ok) {
          const payload = await response.json().catch(() => ({}));
          throw new Error(payload.detail || response.statusText);
        }
        return response.json();
      }

      function render() {
        if (!gameState) {
          return;
        }
        cells.forEach((button) => {
          const mark = gameState.board[Number(button.dataset.row)][Number(button.dataset.col)];
          button.textContent = mark;
          button.classList.toggle('x', mark === 'X');
          button.classList.toggle('o', mark === 'O');
          button.disabled = Boolean(mark) || gameState.phase !== 'human_turn';
        });
        statusEl.textContent = gameState.status;
      }

      function schedulePoll() {
        clearTimeout(pollTimer);
        if (gameState && gameState.computerPending) {
          pollTimer = setTimeout(refresh, POLL_INTERVAL_MS);
        }
      }

      function update(payload) {
        gameState = payload;
        render();
        schedulePoll();
      }

      async function refresh() {
        try {
          update(await request(`/api/game/${gameState.id}`));
        } catch (error) {
          statusEl.textContent = error.message;
        }
      }

      async function playCell(row, col) {
        if (!gameState) {
          return;
        }
        try {
          update(
            await request(`/api/game/${gameState.id}/move`, {
              method: 'POST',
              body: JSON.stringify({ row, col }),
            }),
          );
        } catch (error) {
          statusEl.textContent = error.message;
        }
      }

      async function startGame() {
        try {
          update(await request('/api/game', { method: 'POST' }));
        } catch (error) {
          statusEl.textContent = error.message;
        }
      }

      resetButton.addEventListener('click', async () => {
        if (!gameState) {
          await startGame();
          return;
        }
        try {
          update(await request(`/api/game/${gameState.id}/reset`, { method: 'POST' }));
        } catch (error) {
          statusEl.textContent = error.message;
        }
      });

      startGame();
    </script>
  </body>
</html>
"""
