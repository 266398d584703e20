from __future__ import annotations

import logging
import math
import os
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from game import (
    GameSession,
    Grid,
    LevelScore,
    Scheduler,
    SessionSnapshot,
    configure_logging,
    db_load_player,
    db_mark_tutorial_played,
    db_record_score,
    db_top_scores,
    db_update_max_level,
)

logger = logging.getLogger(__name__)

DEFAULT_DB = os.getenv("SHIFTSHIFT_DB", os.path.join("data", "shiftshift.db"))
MAX_NAME_LENGTH = 12
# Sessions untouched for this long are dropped on the next request.
SESSION_TTL_SECONDS = 30 * 60

app = Flask(__name__)

# Sessions live in memory; Flask may serve requests on several threads.
_LOCK = threading.RLock()
_SESSIONS: Dict[str, "_Entry"] = {}
# Monkeypatched by tests with a ManualClock.
_clock = time.monotonic


@dataclass
class _Entry:
    session_id: str
    session: GameSession
    name: str
    db_path: str
    final: Optional[Dict[str, Any]] = None
    level_scores: list = field(default_factory=list)
    touched: float = 0.0


class PayloadError(ValueError):
    pass


# ---------- JSON helpers ----------

def _grid_to_json(g: Grid) -> Dict[str, Any]:
    return {"rows": int(g.rows), "cols": int(g.cols), "cells": g.rows_view()}


def _score_to_json(s: Optional[LevelScore]) -> Optional[Dict[str, Any]]:
    if s is None:
        return None
    return {
        "level": s.level,
        "moves": s.moves,
        "seconds": s.seconds,
        "minMoves": s.min_moves,
        "movePenalty": s.move_penalty,
        "timePenalty": s.time_penalty,
        "rawScore": s.raw_score,
        "levelScore": s.level_score,
    }


def _snapshot_to_json(s: SessionSnapshot) -> Dict[str, Any]:
    cap = s.captured_axis
    anim = s.scripted_animation
    overlay = s.tutorial_overlay
    cfg = s.level_config
    return {
        "grid": _grid_to_json(s.grid),
        "targetGrid": _grid_to_json(s.target_grid),
        "phase": s.phase.value,
        "tutorialStep": s.tutorial_step.value if s.tutorial_step is not None else None,
        "currentLevel": s.current_level,
        "movesThisLevel": s.moves_this_level,
        "secondsThisLevel": s.seconds_this_level,
        "sessionScoreTotal": s.session_score_total,
        "capturedAxis": {"axis": cap[0].value, "index": cap[1]} if cap else None,
        "peeking": s.peeking,
        "hiddenCells": sorted([int(r), int(c)] for r, c in s.hidden_cells),
        "dragOffset": s.drag_offset,
        "levelConfig": None if cfg is None else {
            "rows": cfg.rows, "cols": cfg.cols, "scrambleSteps": cfg.scramble_steps, "density": cfg.density,
        },
        "tutorialOverlay": None if overlay is None else {
            "title": overlay.title, "text": overlay.text, "action": overlay.action,
            "skippable": s.tutorial_skippable,
        },
        "scriptedAnimation": None if anim is None else {
            "axis": anim.axis.value, "index": anim.index, "amount": anim.amount,
        },
        "lastLevelScore": _score_to_json(s.last_level_score),
    }


def _body() -> Dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise PayloadError("JSON object expected")
    return body


def _opt_int(body: Dict[str, Any], key: str) -> Optional[int]:
    v = body.get(key)
    if v is None:
        return None
    if isinstance(v, bool):
        raise PayloadError(f"{key} must be an integer")
    try:
        return int(v)
    except (TypeError, ValueError):
        raise PayloadError(f"{key} must be an integer")


def _float(body: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    v = body.get(key, default)
    if v is None:
        raise PayloadError(f"{key} required")
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise PayloadError(f"{key} must be a number")
    if not math.isfinite(f):
        raise PayloadError(f"{key} must be a finite number")
    return f


def _player_name(body: Dict[str, Any]) -> str:
    name = str(body.get("name", "")).strip().upper()
    if not name:
        raise PayloadError("name required")
    return name[:MAX_NAME_LENGTH]


def _error(msg: str, status: int) -> Tuple[Any, int]:
    return jsonify({"ok": False, "error": msg}), status


def _evict_idle() -> int:
    now = _clock()
    stale = [sid for sid, e in _SESSIONS.items() if now - e.touched > SESSION_TTL_SECONDS]
    for sid in stale:
        _SESSIONS.pop(sid).session.dispose()
        logger.info("session %s evicted after %.0fs idle", sid, SESSION_TTL_SECONDS)
    return len(stale)


def _lookup(session_id: str) -> Optional[_Entry]:
    _evict_idle()
    entry = _SESSIONS.get(session_id)
    if entry is not None:
        entry.touched = _clock()
        entry.session.tick()
    return entry


def _state_response(entry: _Entry, **extra: Any) -> Any:
    payload: Dict[str, Any] = {"ok": True, "state": _snapshot_to_json(entry.session.snapshot())}
    if entry.final is not None:
        payload["final"] = entry.final
        # The final result is served once; the finished session is then dropped.
        if _SESSIONS.pop(entry.session_id, None) is not None:
            entry.session.dispose()
    payload.update(extra)
    return jsonify(payload)


def _new_entry(name: str, db_path: str, seed: Optional[int]) -> Tuple[str, _Entry]:
    session_id = uuid.uuid4().hex
    holder: Dict[str, _Entry] = {}

    def on_level_complete(points: int) -> None:
        holder["entry"].level_scores.append(points)

    def on_session_end(total: int, max_level: int) -> None:
        e = holder["entry"]
        stored_level = db_update_max_level(e.db_path, e.name, max_level)
        recorded = db_record_score(e.db_path, e.name, total, max_level)
        e.final = {"score": total, "maxLevel": max_level, "bestLevel": stored_level,
                   "highScore": recorded, "levelScores": list(e.level_scores)}

    def on_tutorial_complete() -> None:
        e = holder["entry"]
        db_mark_tutorial_played(e.db_path, e.name)

    session = GameSession(
        scheduler=Scheduler(_clock),
        seed=seed,
        on_level_complete=on_level_complete,
        on_session_end=on_session_end,
        on_tutorial_complete=on_tutorial_complete,
    )
    entry = _Entry(session_id=session_id, session=session, name=name, db_path=db_path, touched=_clock())
    holder["entry"] = entry
    return session_id, entry


@app.errorhandler(PayloadError)
def _bad_request(e: PayloadError) -> Any:
    return _error(str(e), 400)


# ---------- Session API ----------

@app.post("/api/session")
def api_session_new() -> Any:
    body = _body()
    name = _player_name(body)
    level = _opt_int(body, "level") or 1
    if level < 1:
        raise PayloadError("level must be >= 1")
    seed = _opt_int(body, "seed")
    prior = _opt_int(body, "priorScore") or 0
    force_tutorial = bool(body.get("tutorial", False))
    db_path = DEFAULT_DB
    player = db_load_player(db_path, name)
    with _LOCK:
        _evict_idle()
        session_id, entry = _new_entry(name, db_path, seed)
        entry.session.player_session_start(
            initial_level=level,
            prior_session_score=prior,
            has_played_tutorial=player.has_played,
            force_tutorial=force_tutorial,
        )
        _SESSIONS[session_id] = entry
        logger.info("session %s started for %s", session_id, name)
        return _state_response(entry, sessionId=session_id, personalBest=player.best_score)


@app.get("/api/session/<session_id>")
def api_session_get(session_id: str) -> Any:
    with _LOCK:
        entry = _lookup(session_id)
        if entry is None:
            return _error("unknown session", 404)
        return _state_response(entry)


@app.delete("/api/session/<session_id>")
def api_session_delete(session_id: str) -> Any:
    with _LOCK:
        entry = _SESSIONS.pop(session_id, None)
        if entry is None:
            return _error("unknown session", 404)
        entry.session.dispose()
        return jsonify({"ok": True})


@app.post("/api/session/<session_id>/press")
def api_press(session_id: str) -> Any:
    body = _body()
    row = _opt_int(body, "row")
    col = _opt_int(body, "col")
    if row is None and col is None:
        raise PayloadError("row or col required")
    with _LOCK:
        entry = _lookup(session_id)
        if entry is None:
            return _error("unknown session", 404)
        try:
            accepted = entry.session.press(row=row, col=col)
        except IndexError as e:
            raise PayloadError(str(e))
        return _state_response(entry, accepted=accepted)


@app.post("/api/session/<session_id>/move")
def api_move(session_id: str) -> Any:
    body = _body()
    dx = _float(body, "dx")
    dy = _float(body, "dy")
    vx = _float(body, "vx", 0.0)
    vy = _float(body, "vy", 0.0)
    with _LOCK:
        entry = _lookup(session_id)
        if entry is None:
            return _error("unknown session", 404)
        captured = entry.session.move(dx, dy, vx, vy)
        return _state_response(entry, captured=captured)


@app.post("/api/session/<session_id>/release")
def api_release(session_id: str) -> Any:
    with _LOCK:
        entry = _lookup(session_id)
        if entry is None:
            return _error("unknown session", 404)
        snap = entry.session.release()
        return _state_response(entry, snapTarget=snap)


@app.post("/api/session/<session_id>/settle")
def api_settle(session_id: str) -> Any:
    with _LOCK:
        entry = _lookup(session_id)
        if entry is None:
            return _error("unknown session", 404)
        res = entry.session.settle()
        result = None if res is None else {"axis": res.axis.value, "index": res.index, "shift": res.shift_count}
        return _state_response(entry, result=result)


@app.post("/api/session/<session_id>/peek")
def api_peek(session_id: str) -> Any:
    body = _body()
    held = body.get("held")
    if not isinstance(held, bool):
        raise PayloadError("held must be true or false")
    with _LOCK:
        entry = _lookup(session_id)
        if entry is None:
            return _error("unknown session", 404)
        peeking = entry.session.set_peek(held)
        return _state_response(entry, peeking=peeking)


def _command(session_id: str, name: str) -> Any:
    with _LOCK:
        entry = _lookup(session_id)
        if entry is None:
            return _error("unknown session", 404)
        accepted = getattr(entry.session, name)()
        return _state_response(entry, accepted=accepted)


@app.post("/api/session/<session_id>/reset")
def api_reset(session_id: str) -> Any:
    return _command(session_id, "reset_level")


@app.post("/api/session/<session_id>/end")
def api_end(session_id: str) -> Any:
    return _command(session_id, "end_session")


@app.post("/api/session/<session_id>/tutorial/next")
def api_tutorial_next(session_id: str) -> Any:
    return _command(session_id, "tutorial_next")


@app.post("/api/session/<session_id>/tutorial/skip")
def api_tutorial_skip(session_id: str) -> Any:
    return _command(session_id, "tutorial_skip")


# ---------- Scores & players ----------

@app.get("/api/highscores")
def api_highscores() -> Any:
    scores = db_top_scores(DEFAULT_DB)
    return jsonify({
        "ok": True,
        "highScores": [
            {"name": s.name, "score": s.score, "maxLevel": s.max_level, "achievedAt": s.achieved_at}
            for s in scores
        ],
    })


@app.get("/api/player/<name>")
def api_player(name: str) -> Any:
    rec = db_load_player(DEFAULT_DB, name.strip().upper()[:MAX_NAME_LENGTH])
    return jsonify({
        "ok": True,
        "player": {
            "name": rec.name,
            "hasPlayed": rec.has_played,
            "maxLevel": rec.max_level,
            "personalBest": rec.best_score,
        },
    })


# Entrypoint for "python app.py"
if __name__ == "__main__":
    configure_logging()
    debug = os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0")).lower() in ("1", "true", "yes", "on")
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=debug)
