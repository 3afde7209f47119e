"""Print every stored lead. Run from project root: python3 scripts/leads_report.py"""
import sys
from pathlib import Path

_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from dotenv import load_dotenv

load_dotenv(_root / ".env")

from leadform import create_app
from leadform.errors import LeadformError
from leadform.reports import print_leads_report


def main() -> int:
    try:
        app = create_app()
    except LeadformError as e:
        print(f"FATAL ERROR: {e}", file=sys.stderr)
        return 1
    with app.app_context():
        return print_leads_report(app.extensions["lead_gateway"])


if __name__ == "__main__":
    sys.exit(main())
