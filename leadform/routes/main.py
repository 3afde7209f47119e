"""Main (public) routes."""
from flask import Blueprint, Response, current_app, jsonify, redirect, request, url_for

from leadform.errors import PersistenceError, ValidationError
from leadform.gateway import LeadGateway
from leadform.models import Lead, isoformat_utc, utcnow

# Form field -> label used in the rejection message
FIELD_LABELS = {"name": "Name", "email": "Email", "message": "Message", "tel": "Phone"}


def _plain(text: str, status: int) -> Response:
    return Response(text, status=status, mimetype="text/plain")


def create_blueprint(gateway: LeadGateway, require_tel: bool = False) -> Blueprint:
    """Build the public routes around ``gateway``, which is the only store handle they use."""
    main_bp = Blueprint("main", __name__)

    @main_bp.route("/")
    def index():
        """Landing page with the contact form."""
        return current_app.send_static_file("index.html")

    @main_bp.route("/health")
    def health():
        return jsonify({"ok": True, "time": isoformat_utc(utcnow())})

    @main_bp.route("/submit_contact", methods=["POST"])
    def submit_contact():
        """Store one lead from the contact form, then send the visitor to the thank-you page."""
        try:
            lead = Lead.from_form(request.form, require_tel=require_tel)
        except ValidationError as e:
            current_app.logger.warning("Contact form rejected, missing: %s", ", ".join(e.missing))
            labels = ", ".join(FIELD_LABELS.get(name, name) for name in e.missing)
            return _plain(f"Missing required fields: {labels}. Please go back and fill in all fields.", 400)

        try:
            lead_id = gateway.insert(lead)
        except PersistenceError as e:
            current_app.logger.error("Failed to save lead: %s", e)
            return _plain("Error saving your data. Please try again.", 500)

        current_app.logger.info("A new lead was inserted: %s", lead_id)
        return redirect(url_for("static", filename="thank_you.html"))

    @main_bp.route("/api/leads")
    def api_leads():
        """All leads as JSON, most recent first (consumed by leads.html)."""
        try:
            leads = gateway.find_all_ordered()
        except PersistenceError as e:
            current_app.logger.error("Failed to fetch leads: %s", e)
            return jsonify({"error": "Failed to fetch leads from database"}), 500
        return jsonify([lead.to_public() for lead in leads])

    return main_bp
