"""Flask app serving the bike match quiz API.

Scores the catalog snapshot written by the pipeline against quiz answers.
Run locally with ``python -m quiz.app``.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask, Response, jsonify

# Load environment variables before reading config
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from .api import api  # noqa: E402
from .config import (  # noqa: E402
    EQUIPPED_THRESHOLD,
    FLASK_DEBUG,
    FLASK_HOST,
    FLASK_PORT,
    MIN_SCORE,
    RESULT_LIMIT,
    SNAPSHOT_PATH,
    TERRAIN_MATCH,
    WIDGET_APP_URL,
    WIDGET_RETAILER,
    WIDGET_THEME,
)
from .scoring import ScoringPolicy  # noqa: E402
from .snapshot_store import get_catalog  # noqa: E402

__all__ = ["app", "create_app"]


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """Create the Flask app.

    Args:
        overrides: Config values to set over the environment defaults
            (e.g. SNAPSHOT_PATH in tests).
    """
    flask_app = Flask(__name__)
    flask_app.config.update(
        SNAPSHOT_PATH=SNAPSHOT_PATH,
        RESULT_LIMIT=RESULT_LIMIT,
        MIN_SCORE=MIN_SCORE,
        EQUIPPED_THRESHOLD=EQUIPPED_THRESHOLD,
        TERRAIN_MATCH=TERRAIN_MATCH,
        WIDGET_APP_URL=WIDGET_APP_URL,
        WIDGET_RETAILER=WIDGET_RETAILER,
        WIDGET_THEME=WIDGET_THEME,
    )
    if overrides:
        flask_app.config.update(overrides)

    # Fails at startup on a bad EQUIPPED_THRESHOLD / TERRAIN_MATCH
    flask_app.config["SCORING_POLICY"] = ScoringPolicy(
        equipped_threshold=flask_app.config["EQUIPPED_THRESHOLD"],
        terrain_match=flask_app.config["TERRAIN_MATCH"],
    )

    flask_app.register_blueprint(api)

    @flask_app.route("/healthz", methods=["GET"])
    def healthz() -> Response:
        snapshot = get_catalog(flask_app.config["SNAPSHOT_PATH"])
        return jsonify(
            {
                "status": "ok",
                "items": len(snapshot.items),
                "generated_at": snapshot.generated_at,
            }
        )

    return flask_app


app = create_app()


if __name__ == "__main__":
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
