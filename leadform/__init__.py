"""leadform Flask application factory."""
import sys

from flask import Flask, current_app

from leadform.gateway import LeadGateway, open_gateway
from leadform.reports import print_leads_report, print_visitor_report
from leadform.routes.main import create_blueprint


def _register_commands(app: Flask) -> None:
    @app.cli.command("leads-report")
    def leads_report_command():
        """Print every stored lead, newest first."""
        code = print_leads_report(current_app.extensions["lead_gateway"])
        if code:
            sys.exit(code)

    @app.cli.command("visitor-report")
    def visitor_report_command():
        """Print visit totals and top visitor countries and cities."""
        code = print_visitor_report(current_app.extensions["lead_gateway"])
        if code:
            sys.exit(code)


def create_app(config_object="leadform.config.Config", gateway: LeadGateway | None = None) -> Flask:
    """Create and configure the Flask application.

    ``gateway`` is opened from the configured connection string unless one is
    passed in. A missing connection string raises ConfigurationError.
    """
    app = Flask(__name__, static_folder="static", static_url_path="")
    app.config.from_object(config_object)

    if gateway is None:
        gateway = open_gateway(app)
    app.extensions["lead_gateway"] = gateway

    app.register_blueprint(create_blueprint(gateway, require_tel=app.config.get("REQUIRE_TEL", False)))
    _register_commands(app)

    @app.errorhandler(404)
    def page_not_found(e):
        return current_app.send_static_file("404.html"), 404

    @app.after_request
    def nosniff(response):
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        return response

    return app
