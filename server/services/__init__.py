from .merge_bot_service import MergeBotService, build_bot_service
from .update_router import RoutedUpdate, route_update

__all__ = [
    "MergeBotService",
    "build_bot_service",
    "RoutedUpdate",
    "route_update",
]
