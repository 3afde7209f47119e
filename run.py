"""Run the Flask development server."""
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (directory containing run.py)
_env = Path(__file__).resolve().parent / ".env"
load_dotenv(_env)

from leadform import create_app
from leadform.errors import LeadformError

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

try:
    app = create_app()
except LeadformError as e:
    logging.getLogger("leadform").critical("FATAL ERROR: %s", e)
    sys.exit(1)

if __name__ == "__main__":
    app.run(
        host="0.0.0.0",
        port=app.config["PORT"],
        debug=app.config["DEBUG"],
    )
