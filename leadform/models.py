"""Lead record type plus the SQLAlchemy tables for the relational backend."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leadform.errors import ValidationError

db = SQLAlchemy()

# Shown in place of a phone number the submitter left out
NOT_AVAILABLE = "N/A"


def utcnow() -> datetime:
    """Naive UTC timestamp, the form both pymongo and SQLite hand back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a trailing Z."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


@dataclass
class Lead:
    """One contact-form submission.

    ``full_name`` and ``email_address`` must be non-empty; construction fails
    with ValidationError otherwise, so a Lead that exists is always storable.
    ``id`` stays None until the store assigns one.
    """

    full_name: str
    email_address: str
    phone: str | None = None
    project_details: str | None = None
    submission_date: datetime = field(default_factory=utcnow)
    id: str | None = None

    def __post_init__(self) -> None:
        missing = []
        if not (self.full_name or "").strip():
            missing.append("full_name")
        if not (self.email_address or "").strip():
            missing.append("email_address")
        if missing:
            raise ValidationError(missing)

    @classmethod
    def from_form(cls, form: Mapping[str, Any], require_tel: bool = False) -> "Lead":
        """Build a Lead from the contact form fields name/email/message/tel."""
        name = (form.get("name") or "").strip()
        email = (form.get("email") or "").strip()
        message = (form.get("message") or "").strip()
        tel = (form.get("tel") or "").strip()
        missing = [key for key, value in (("name", name), ("email", email), ("message", message)) if not value]
        if require_tel and not tel:
            missing.append("tel")
        if missing:
            raise ValidationError(missing)
        return cls(
            full_name=name,
            email_address=email,
            phone=tel or None,
            project_details=message,
            submission_date=utcnow(),
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Lead":
        if not isinstance(doc.get("submission_date"), datetime):
            raise ValidationError(["submission_date"])
        return cls(
            id=str(doc["_id"]),
            full_name=doc.get("full_name"),
            email_address=doc.get("email_address"),
            phone=doc.get("tel"),
            project_details=doc.get("project_details"),
            submission_date=doc.get("submission_date"),
        )

    @classmethod
    def from_row(cls, row: "LeadRow") -> "Lead":
        return cls(
            id=str(row.id),
            full_name=row.full_name,
            email_address=row.email_address,
            phone=row.tel,
            project_details=row.project_details,
            submission_date=row.submission_date,
        )

    def to_document(self) -> dict:
        """Document body for the ``leads`` collection (store assigns ``_id``)."""
        return {
            "full_name": self.full_name,
            "tel": self.phone,
            "email_address": self.email_address,
            "project_details": self.project_details,
            "submission_date": self.submission_date,
        }

    def to_public(self) -> dict:
        """Shape served by GET /api/leads."""
        return {
            "id": self.id,
            "full_name": self.full_name,
            "tel": self.phone or NOT_AVAILABLE,
            "email_address": self.email_address,
            "project_details": self.project_details,
            "submission_date": isoformat_utc(self.submission_date),
        }


class LeadRow(db.Model):
    """A lead from the contact form (relational backend)."""

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    tel: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email_address: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    project_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    submission_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<LeadRow {self.id} {self.email_address}>"


class VisitorRow(db.Model):
    """A page view written by the site's visitor tracker. Read-only here."""

    __tablename__ = "visitors"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    visit_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    path: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    country: Mapped[str | None] = mapped_column(String(120), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<VisitorRow {self.ip_address} {self.path}>"
