import hmac
import logging
from typing import Optional

from flask import Blueprint, current_app, jsonify, request

from server.services.merge_bot_service import MergeBotService, build_bot_service

logger = logging.getLogger(__name__)

api_blueprint = Blueprint("api", __name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

# Built lazily from app config; tests and create_app may assign it directly.
bot_service: Optional[MergeBotService] = None


def _get_bot_service() -> MergeBotService:
    global bot_service
    if bot_service is None:
        bot_service = build_bot_service(current_app.config)
    return bot_service


def _secret_matches() -> bool:
    expected = current_app.config.get("WEBHOOK_SECRET") or ""
    if not expected:
        return True
    provided = request.headers.get(SECRET_HEADER, "")
    return hmac.compare_digest(provided, expected)


@api_blueprint.get("/health")
def healthcheck():
    """Lightweight health probe for uptime checks."""
    return jsonify({"status": "ok"}), 200


@api_blueprint.post("/telegram/webhook")
def telegram_webhook():
    """
    Receives one Telegram ``Update`` per request:
    {
      "update_id": 1,
      "message": {"from": {"id": 7}, "chat": {"id": 7}, "text": "/start"}
    }
    """
    if not _secret_matches():
        return jsonify({"error": "Forbidden"}), 403

    update = request.get_json(silent=True)
    if not isinstance(update, dict):
        return jsonify({"error": "Invalid update payload"}), 400

    handled = _get_bot_service().handle_update(update)
    return jsonify({"handled": handled}), 200


@api_blueprint.get("/sessions/<int:user_id>")
def get_session(user_id: int):
    return jsonify({"session": _get_bot_service().session_snapshot(user_id)}), 200
