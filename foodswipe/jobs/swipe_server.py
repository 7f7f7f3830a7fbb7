"""HTTP surface over a single swipe session."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from foodswipe.core.config import ConfigError, get_settings
from foodswipe.core.session import SwipeSession, venue_to_payload

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & session ----------
app = Flask(__name__)
_session: Optional[SwipeSession] = None
# Flask may serve requests on several threads; session mutations must not interleave.
_lock = threading.Lock()


def _get_session() -> SwipeSession:
    global _session
    if _session is None:
        with _lock:
            if _session is None:
                _session = SwipeSession.from_settings(get_settings())
    return _session


def _snapshot_response(session: SwipeSession, status: int = 200, **extra: Any) -> Any:
    data = session.snapshot().to_dict()
    data.update(extra)
    return jsonify({"data": data}), status


# ---------- Routes ----------


@app.errorhandler(ConfigError)
def config_error(exc: ConfigError) -> Any:
    logger.error("Session is not configured: %s", exc)
    return jsonify({"error": str(exc)}), 503


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "port": settings.worker_port,
                "store_backend": settings.store_backend,
            }
        ),
        200,
    )


@app.get("/session")
def session_state() -> Any:
    return _snapshot_response(_get_session())


@app.post("/search")
def start_search() -> Any:
    """Fresh search around the current location. Optional JSON: reset_seen (bool, default true)."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    reset_seen = payload.get("reset_seen", True)
    if not isinstance(reset_seen, bool):
        return jsonify({"error": "reset_seen must be a boolean"}), 400

    session = _get_session()
    with _lock:
        replaced = asyncio.run(session.start_search(reset_seen=reset_seen))
    return _snapshot_response(session, replaced=replaced)


@app.post("/load-more")
def load_more() -> Any:
    session = _get_session()
    with _lock:
        loaded = asyncio.run(session.load_more())
    return _snapshot_response(session, loaded=loaded)


@app.post("/decide")
def decide() -> Any:
    """Required JSON field: direction ("skip" or "like")."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    direction = payload.get("direction")
    if not direction:
        return jsonify({"error": "missing fields: direction"}), 400

    session = _get_session()
    with _lock:
        try:
            record = session.decide(direction)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
    decided = venue_to_payload(record) if record else None
    return _snapshot_response(session, decided=decided)


@app.get("/liked")
def liked() -> Any:
    session = _get_session()
    return jsonify({"data": [venue_to_payload(record) for record in session.liked]}), 200


@app.delete("/liked/<venue_id>")
def remove_liked(venue_id: str) -> Any:
    session = _get_session()
    with _lock:
        removed = session.remove_liked(venue_id)
    if not removed:
        return jsonify({"error": f"venue {venue_id} is not liked"}), 404
    return _snapshot_response(session)


@app.patch("/config")
def update_config() -> Any:
    """Change search settings. Fields: radius_meters, category, sort_mode, open_only, minimum_rating."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not payload:
        return jsonify({"error": "a JSON object with at least one setting is required"}), 400

    session = _get_session()
    with _lock:
        try:
            asyncio.run(session.update_config(**payload))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
    return _snapshot_response(session)


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
