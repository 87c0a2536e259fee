"""Centralized configuration for the quiz service."""

import os
from pathlib import Path

# Determine project root (parent of 'quiz' directory)
_THIS_DIR = Path(__file__).parent
_PROJECT_ROOT = _THIS_DIR.parent

# Snapshot written by the catalog pipeline
SNAPSHOT_PATH = os.getenv("SNAPSHOT_PATH", str(_PROJECT_ROOT / "public" / "bikes.json"))

# Flask app settings (allow env overrides; default debug off for safety)
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# Result list
RESULT_LIMIT = int(os.getenv("RESULT_LIMIT", "8"))
MIN_SCORE = int(os.getenv("MIN_SCORE", "0"))

# Scoring policy: 3 of the 5 equipment flags make a bike "equipped";
# EQUIPPED_THRESHOLD=1 reproduces the older "any flag" behaviour.
EQUIPPED_THRESHOLD = int(os.getenv("EQUIPPED_THRESHOLD", "3"))
# "membership" (any surface tag) or "primary" (first surface tag only)
TERRAIN_MATCH = os.getenv("TERRAIN_MATCH", "membership").strip().lower()

# Embeddable widget
WIDGET_APP_URL = os.getenv("WIDGET_APP_URL", "http://localhost:5000/app/index.html")
WIDGET_THEME = os.getenv("WIDGET_THEME", "light")
WIDGET_RETAILER = os.getenv("WIDGET_RETAILER", "")
