"""Development entrypoint that runs the Flask application."""

import logging
import os

from app.app import create_app


def _debug_enabled():
    """Default debug to disabled unless explicitly enabled."""
    return str(os.environ.get("FLASK_DEBUG", "0")).strip().lower() in {"1", "true", "yes", "on"}


if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=_debug_enabled())
