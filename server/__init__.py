from typing import Optional

from flask import Flask
from flask_cors import CORS

from .config.settings import load_config
from .controllers import api_controller
from .controllers.api_controller import api_blueprint
from .services.merge_bot_service import MergeBotService


def create_app(config_name: str = "development", bot_service: Optional[MergeBotService] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(load_config(config_name))

    if bot_service is not None:
        api_controller.bot_service = bot_service

    app.register_blueprint(api_blueprint, url_prefix="/api")
    CORS(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    return app
