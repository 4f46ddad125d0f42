"""Flask application factory for the collage backend."""

from __future__ import annotations

import logging
import sys

from flask import Flask
from flask_cors import CORS

from .config import Config
from .routes import analysis_bp, proxy_bp
from .services import AnalysisService

logger = logging.getLogger(__name__)


def create_app(config: Config | None = None, service: AnalysisService | None = None) -> Flask:
    """Create and configure the Flask application."""
    if config is None:
        config = Config.load()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": config.cors_origins}})

    app.config["collage_config"] = config
    app.config["analysis_service"] = service or AnalysisService(config)

    app.register_blueprint(analysis_bp)
    app.register_blueprint(proxy_bp)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    logger.info("Collage backend initialized")
    return app


def main() -> None:
    """Entry point for running the development server."""
    app = create_app()
    app.run(host="0.0.0.0", port=5001, debug=True, use_reloader=False)


if __name__ == "__main__":
    main()
