from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from bayplan.logging_config import configure_logging, get_logger

logger = get_logger(__name__)


def create_app(config_class=None):
    # Import config after dotenv is loaded
    from bayplan.config import Config, get_config
    from bayplan.api import api_bp

    # Get the appropriate config class based on environment
    if config_class is None:
        config_class = get_config()

    configure_logging(log_level=config_class.LOG_LEVEL, log_file=config_class.LOG_FILE)

    app = Flask(__name__)
    app.config.from_object(config_class)

    logger.info("Starting application", environment=getattr(config_class, "ENV", "base"),
                shop_timezone=Config.SHOP_TIMEZONE)

    # Get allowed origins from environment variable
    allowed_origins = app.config.get("CORS_ORIGINS", "*")
    if allowed_origins != "*":
        # Parse comma-separated list if provided
        allowed_origins = [origin.strip() for origin in allowed_origins.split(",")]

    CORS(app,
         resources={r"/*": {"origins": allowed_origins}},
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "OPTIONS"])

    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok"}), 200

    app.register_blueprint(api_bp, url_prefix="/api")

    # Global error handler so every failure comes back as JSON
    @app.errorhandler(Exception)
    def handle_exception(e):
        """Handle all exceptions and return a JSON error body"""
        if isinstance(e, HTTPException):
            status_code = e.code
        else:
            status_code = 500
            logger.error("Unhandled exception", error=str(e), exc_info=True)

        response = jsonify({
            "error": str(e),
            "message": "An error occurred processing your request"
        })
        response.status_code = status_code
        return response

    return app
