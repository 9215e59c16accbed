import json
import os
import sys
import logging
from flask import Flask
from dotenv import load_dotenv


def create_app():
    load_dotenv()
    app = Flask(__name__)

    # =========================================================
    # Configure logging so logs show up under gunicorn
    # =========================================================
    gunicorn_error = logging.getLogger("gunicorn.error")
    app.logger.handlers = gunicorn_error.handlers
    app.logger.setLevel(logging.INFO)

    sh = logging.StreamHandler(sys.stdout)
    sh.setLevel(logging.INFO)
    sh.setFormatter(logging.Formatter("[%(asctime)s][%(levelname)s] %(message)s", "%H:%M:%S"))
    app.logger.addHandler(sh)

    from .utils.logger import set_level
    set_level(os.getenv("LOG_LEVEL", "INFO"))

    # =========================================================
    # Blueprints
    # =========================================================
    from .routes.sync import bp as sync_bp
    from .routes.webhooks import bp as webhooks_bp

    app.register_blueprint(sync_bp)
    app.register_blueprint(webhooks_bp, url_prefix="/shopify/webhooks")

    # =========================================================
    # Health check & CLI
    # =========================================================
    @app.get("/health")
    def health():
        return {"ok": True}, 200

    @app.cli.command("sync-all")
    def sync_all():
        """Run one full Shopify -> Webflow pass and print the summary."""
        from .services.sync import PASS_LOCK, build_engine
        with PASS_LOCK:
            summary = build_engine().run_full()
        print(json.dumps(summary.as_dict(), indent=2))

    return app
