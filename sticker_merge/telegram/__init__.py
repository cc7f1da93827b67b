from .bot_api_client import TelegramApiError, TelegramBotClient

__all__ = ["TelegramApiError", "TelegramBotClient"]
