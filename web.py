#!/usr/bin/env python3
"""
Win Log Web — Flask + WebSocket server for browser-based tracking.

All connections share one Tracker. Actions arrive as JSON (WebSocket or
POST) and every reply is a full state snapshot. A lock serializes actions
so the tracker only ever sees one caller at a time.
"""
import argparse
import json
import logging
import threading

from flask import Flask, jsonify, render_template, request
from flask_sock import Sock

from data_store import DataStore, FileSlot, MemorySlot
from frontend_adapter import FrontendAdapter, ReplyPrompt
from record_engine import use_environment_collation
from tracker import Tracker

logger = logging.getLogger(__name__)


def create_app(adapter):
    """Build the Flask app around an adapter."""
    app = Flask(__name__)
    sock = Sock(app)
    lock = threading.Lock()

    def apply(action):
        with lock:
            _handle_action(adapter, action)
            return adapter.get_snapshot()

    @app.route("/")
    def index():
        """Tracker page; talks to the WebSocket for actions and state."""
        return render_template("index.html")

    @app.route("/api/state")
    def state():
        with lock:
            return jsonify(adapter.get_snapshot())

    @app.route("/api/action", methods=["POST"])
    def action():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            logger.warning("Invalid action payload: %r", request.get_data(as_text=True))
            return jsonify({"error": "expected a JSON object"}), 400
        return jsonify(apply(payload))

    @sock.route("/ws")
    def websocket(ws):
        """WebSocket handler: one snapshot out per action in."""
        try:
            with lock:
                ws.send(json.dumps(adapter.get_snapshot()))
            while True:
                data = ws.receive()
                if data is None:
                    break
                try:
                    payload = json.loads(data)
                except json.JSONDecodeError:
                    logger.warning("Invalid JSON from client: %s", data)
                    continue
                if not isinstance(payload, dict):
                    logger.warning("Ignoring non-object action: %s", data)
                    continue
                ws.send(json.dumps(apply(payload)))
        except Exception:
            logger.error("WebSocket receive error", exc_info=True)

    return app


def _text(action, key, default=""):
    """String field of an action; anything else counts as missing."""
    value = action.get(key)
    return value if isinstance(value, str) else default


def _handle_action(adapter, action):
    """Dispatch a client action to the adapter.

    The browser asks for names and confirmations itself and sends the
    answers along, so prompts are replayed from the payload.
    """
    cmd = _text(action, "action")
    adapter.clear_message()
    name = _text(action, "name", None)
    prompts = ReplyPrompt(
        answers=[] if name is None else [name],
        confirm=action.get("confirmed") is True,
    )

    if cmd == "add_player":
        return adapter.add_player(prompts)

    elif cmd == "add_game":
        return adapter.add_game(prompts)

    elif cmd == "delete_player":
        return adapter.delete_item("player", prompts)

    elif cmd == "delete_game_by_name":
        return adapter.delete_item("game", prompts)

    elif cmd == "toggle_player":
        return adapter.toggle_player(name or "")

    elif cmd == "record_win":
        return adapter.record_win(_text(action, "game"), _text(action, "winner"))

    elif cmd == "record_historical":
        return adapter.record_historical(
            _text(action, "game"), _text(action, "winner"), _text(action, "when", None))

    elif cmd == "clear_history":
        return adapter.clear_history(_text(action, "game"), prompts)

    elif cmd == "delete_game":
        return adapter.delete_game(_text(action, "game"), prompts)

    elif cmd == "toggle_setting":
        return adapter.toggle_setting(_text(action, "key"))

    logger.warning("Unknown action: %r", action.get("action"))
    return False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Win Log Web Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=5000, help="Port (default: 5000)")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--data-dir", help="Directory for stored data (default: ~/.win_log)")
    parser.add_argument("--memory", action="store_true", help="Keep data in memory only")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser.parse_args(argv)


def make_store(args):
    """DataStore selected by the --memory / --data-dir options."""
    slot = MemorySlot() if args.memory else FileSlot(args.data_dir)
    return DataStore(slot)


def main(argv=None):
    """Entry point for the web server."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    use_environment_collation()

    tracker = Tracker.open(make_store(args))
    app = create_app(FrontendAdapter(tracker))

    print(f"Starting Win Log web server at http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
