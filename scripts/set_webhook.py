"""Registers ``WEBHOOK_URL`` (plus ``WEBHOOK_SECRET``) as the bot's webhook."""
import logging
import os
import sys
from typing import Mapping

from dotenv import load_dotenv

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from server.config.settings import load_config
from server.services.merge_bot_service import build_bot_service

logger = logging.getLogger("set_webhook")


def register_webhook(config: Mapping[str, object]) -> str:
    url = str(config.get("WEBHOOK_URL") or "")
    if not url:
        raise SystemExit("WEBHOOK_URL is not set")
    client = build_bot_service(config).client
    client.set_webhook(url, secret_token=str(config.get("WEBHOOK_SECRET") or "") or None)
    return url


def main() -> None:
    load_dotenv()
    config = load_config(os.environ.get("APP_ENV", "production"))
    logging.basicConfig(
        level=config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    url = register_webhook(config)
    logger.info("Webhook registered at %s", url)


if __name__ == "__main__":
    main()
