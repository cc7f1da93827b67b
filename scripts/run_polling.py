"""Runs the merge bot with ``getUpdates`` long polling instead of a webhook."""
import logging
import os
import sys
import time

from dotenv import load_dotenv

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from server.config.settings import load_config
from server.services.merge_bot_service import MergeBotService, build_bot_service
from sticker_merge.telegram.bot_api_client import TelegramApiError, TelegramBotClient

logger = logging.getLogger("run_polling")

RETRY_DELAY_SECONDS = 2.0


def poll_forever(service: MergeBotService, client: TelegramBotClient, timeout: int = 50) -> None:
    offset = None
    while True:
        try:
            updates = client.get_updates(offset=offset, timeout=timeout)
        except TelegramApiError as exc:
            logger.warning("getUpdates failed: %s", exc)
            time.sleep(RETRY_DELAY_SECONDS)
            continue
        for update in updates:
            offset = int(update["update_id"]) + 1
            try:
                service.handle_update(update)
            except Exception:
                logger.exception("Failed to handle update %s", update.get("update_id"))


def main() -> None:
    load_dotenv()
    config = load_config(os.environ.get("APP_ENV", "production"))
    logging.basicConfig(
        level=config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    service = build_bot_service(config)
    logger.info("Sticker merge bot started (long polling)")
    poll_forever(service, service.client, timeout=int(config["POLL_TIMEOUT"]))


if __name__ == "__main__":
    main()
