"""Console reports over the stored leads and visitors."""
from datetime import datetime
from typing import Callable

import click

from leadform.errors import PersistenceError
from leadform.gateway import LeadGateway
from leadform.models import NOT_AVAILABLE, Lead

RULE = "-" * 50
BANNER = "=" * 50
DETAILS_LIMIT = 1000
TOP_N = 5

Echo = Callable[[str], None]


def format_submitted(value: datetime) -> str:
    """e.g. 'Mar 04, 2025, 02:15:09 PM'."""
    return value.strftime("%b %d, %Y, %I:%M:%S %p")


def truncate_details(text: str | None, limit: int = DETAILS_LIMIT) -> str:
    if not text:
        return NOT_AVAILABLE
    return text[:limit] + ("..." if len(text) > limit else "")


def format_lead(index: int, lead: Lead) -> list[str]:
    return [
        f"[#{index}] ID: {lead.id}",
        f"    Name: {lead.full_name}",
        f"    Tel: {lead.phone or NOT_AVAILABLE}",
        f"    Email: {lead.email_address}",
        f"    Submitted: {format_submitted(lead.submission_date)}",
        f"    Details: {truncate_details(lead.project_details)}",
        RULE,
    ]


def _report_failure(echo: Echo, error: PersistenceError) -> int:
    echo("\n--- Store operation failed ---")
    echo(f"Error details: {error}")
    return 1


def print_leads_report(gateway: LeadGateway, echo: Echo = click.echo) -> int:
    """Print every lead, newest first. Returns a process exit code."""
    try:
        leads = gateway.find_all_ordered()
    except PersistenceError as e:
        return _report_failure(echo, e)
    finally:
        gateway.close()

    echo(f"\n--- Found {len(leads)} Leads in the Database ---\n")
    if not leads:
        echo("The leads collection is empty. Submit the contact form to populate data.")
        return 0
    for index, lead in enumerate(leads, start=1):
        for line in format_lead(index, lead):
            echo(line)
    return 0


def _ranking(echo: Echo, title: str, rows: list[tuple[str, int]], empty_label: str) -> None:
    echo(f"\n--- Top {TOP_N} Visitor {title} ---")
    if not rows:
        echo(f"No {empty_label} data available. Visit your site to populate data!")
        return
    for index, (value, count) in enumerate(rows, start=1):
        echo(f"  #{index}: {str(value):<25} ({count} visits)")


def print_visitor_report(gateway: LeadGateway, echo: Echo = click.echo) -> int:
    """Print visit totals and the top countries and cities. Returns a process exit code."""
    try:
        total_visits = gateway.count_visits()
        unique_visitors = gateway.count_unique_visitor_ips()
        countries = gateway.top_visitor_values("country", limit=TOP_N)
        cities = gateway.top_visitor_values("city", limit=TOP_N)
    except PersistenceError as e:
        return _report_failure(echo, e)
    finally:
        gateway.close()

    echo("\n" + BANNER)
    echo("       Visitor Explorer Report")
    echo(BANNER)
    echo("\n--- Summary Statistics ---")
    echo(f"- Total Page Views (All Time): {total_visits}")
    echo(f"- Unique Visitor IPs:          {unique_visitors}")
    echo(RULE)
    _ranking(echo, "Countries", countries, "country")
    echo(RULE)
    _ranking(echo, "Cities", cities, "city")
    echo(BANNER)
    return 0
