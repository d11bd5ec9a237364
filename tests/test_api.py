"""Tests for the FastAPI Tic-Tac-Toe interface."""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.game import Board, Phase
from tictactoe.ui import app


client = TestClient(app)


@pytest.fixture(autouse=True)
def no_think_delay(monkeypatch):
    monkeypatch.setattr(ui, "AI_THINK_DELAY", 0.0)


def _wait_for_computer(game_id: str, timeout: float = 2.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        state = client.get(f"/api/game/{game_id}").json()
        if not state["computerPending"] or time.monotonic() >= deadline:
            return state
        time.sleep(0.01)


def test_create_game():
    response = client.post("/api/game")
    assert response.status_code == 200
    payload = response.json()
    assert payload["phase"] == "human_turn"
    assert payload["currentPlayer"] == "X"
    assert payload["status"] == "Your turn (X)"
    assert payload["board"] == [["", "", ""], ["", "", ""], ["", "", ""]]
    assert payload["moveLog"] == []
    assert payload["computerPending"] is False
    assert "lastMove" not in payload


def test_human_move_then_computer_reply():
    game_id = client.post("/api/game").json()["id"]

    move_response = client.post(f"/api/game/{game_id}/move", json={"row": 1, "col": 1})
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["accepted"] is True
    assert state["board"][1][1] == "X"
    assert state["moveLog"][0] == {"player": "X", "row": 1, "col": 1}

    final_state = _wait_for_computer(game_id)
    assert final_state["computerPending"] is False
    assert final_state["phase"] == "human_turn"
    assert final_state["board"][0][0] == "O"
    assert final_state["lastMove"] == {"player": "O", "row": 0, "col": 0}
    assert final_state["status"] == "Your turn (X)"


def test_occupied_cell_rejected_without_error():
    game_id = client.post("/api/game").json()["id"]
    client.post(f"/api/game/{game_id}/move", json={"row": 0, "col": 0})
    before = _wait_for_computer(game_id)

    duplicate = client.post(f"/api/game/{game_id}/move", json={"row": 0, "col": 0})
    assert duplicate.status_code == 200
    payload = duplicate.json()
    assert payload["accepted"] is False
    assert payload["board"] == before["board"]
    assert payload["moveLog"] == before["moveLog"]


def test_out_of_range_move_rejected_without_error():
    game_id = client.post("/api/game").json()["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"row": 3, "col": -1})
    assert response.status_code == 200
    payload = response.json()
    assert payload["accepted"] is False
    assert payload["phase"] == "human_turn"


def test_malformed_move_payload_is_422():
    game_id = client.post("/api/game").json()["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"row": "middle"})
    assert response.status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/INVALID").status_code == 404
    missing_move = client.post("/api/game/INVALID/move", json={"row": 0, "col": 0})
    assert missing_move.status_code == 404
    assert client.post("/api/game/INVALID/reset").status_code == 404


def test_human_win_reported():
    game_id = client.post("/api/game").json()["id"]
    session = ui.SESSIONS[game_id]
    session.state.board = Board.from_rows(["XX ", "OO ", "   "])

    payload = client.post(f"/api/game/{game_id}/move", json={"row": 0, "col": 2}).json()
    assert payload["accepted"] is True
    assert payload["phase"] == "game_over"
    assert payload["result"] == "human_wins"
    assert payload["isOver"] is True
    assert payload["status"] == "Human (X) wins!"
    assert payload["computerPending"] is False


def test_reset_cancels_pending_computer_move(monkeypatch):
    monkeypatch.setattr(ui, "AI_THINK_DELAY", 5.0)
    game_id = client.post("/api/game").json()["id"]

    state = client.post(f"/api/game/{game_id}/move", json={"row": 1, "col": 1}).json()
    assert state["computerPending"] is True
    assert state["status"] == "Computer's turn (O)"
    timer = ui.SESSIONS[game_id].pending

    reset_state = client.post(f"/api/game/{game_id}/reset").json()
    assert reset_state["computerPending"] is False
    assert reset_state["phase"] == "human_turn"
    assert reset_state["board"] == [["", "", ""], ["", "", ""], ["", "", ""]]
    assert reset_state["moveLog"] == []
    assert reset_state["generation"] == state["generation"] + 1
    assert timer.finished.is_set()


def test_stale_computer_move_is_discarded_after_reset(monkeypatch):
    monkeypatch.setattr(ui, "AI_THINK_DELAY", 5.0)
    game_id = client.post("/api/game").json()["id"]
    session = ui.SESSIONS[game_id]

    client.post(f"/api/game/{game_id}/move", json={"row": 1, "col": 1})
    old_generation = session.state.generation
    client.post(f"/api/game/{game_id}/reset")

    # A new game has reached the computer's turn again by the time the old callback fires
    client.post(f"/api/game/{game_id}/move", json={"row": 0, "col": 0})
    assert session.state.phase is Phase.COMPUTER_TURN

    ui._run_ai_turn(game_id, old_generation)
    assert session.state.phase is Phase.COMPUTER_TURN
    assert session.state.board.cells.count("O") == 0
    assert session.computer_pending is True

    ui._run_ai_turn(game_id, session.state.generation)
    assert session.state.phase is Phase.HUMAN_TURN
    assert session.state.board.get(1, 1) == "O"
    assert session.computer_pending is False
    client.post(f"/api/game/{game_id}/reset")


def test_index_serves_board_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "Tic-Tac-Toe (Human vs. AI)" in response.text
    assert "Reset Game" in response.text


def test_idle_sessions_expire_on_next_create():
    idle_id = client.post("/api/game").json()["id"]
    active_id = client.post("/api/game").json()["id"]
    idle = ui.SESSIONS[idle_id]
    idle.last_active -= ui.SESSION_TTL_SECONDS + 1

    client.post("/api/game")

    assert idle_id not in ui.SESSIONS
    assert active_id in ui.SESSIONS
    assert client.get(f"/api/game/{idle_id}").status_code == 404


def test_expiring_session_cancels_pending_computer_move(monkeypatch):
    monkeypatch.setattr(ui, "AI_THINK_DELAY", 5.0)
    game_id = client.post("/api/game").json()["id"]
    client.post(f"/api/game/{game_id}/move", json={"row": 1, "col": 1})
    session = ui.SESSIONS[game_id]
    timer = session.pending
    session.last_active -= ui.SESSION_TTL_SECONDS + 1

    client.post("/api/game")

    assert game_id not in ui.SESSIONS
    assert timer.finished.is_set()
    assert session.computer_pending is False
