"""Persistence gateway: the single object that owns the store connection.

Two backends implement the same interface. ``open_gateway`` picks one from the
connection string: ``mongodb://`` and ``mongodb+srv://`` go to MongoDB, anything
else is treated as a SQLAlchemy URL. Store exceptions never leave this module;
they are re-raised as PersistenceError.
"""
from flask import Flask
from pymongo import DESCENDING, MongoClient
from pymongo import errors as mongo_errors
from sqlalchemy import distinct, func
from sqlalchemy.exc import SQLAlchemyError

from leadform.errors import ConfigurationError, PersistenceError, ValidationError
from leadform.models import Lead, LeadRow, VisitorRow, db

MONGO_SCHEMES = ("mongodb://", "mongodb+srv://")
# Raised while turning a stored record into a Lead; documents can be edited by hand
MALFORMED_RECORD_ERRORS = (ValidationError, KeyError, TypeError, AttributeError)
LEADS_COLLECTION = "leads"
VISITORS_COLLECTION = "visitors"
# Fields the visitor report may group by; "Unknown" is what the tracker writes on failed geo lookups
VISITOR_GROUP_FIELDS = ("country", "city")
UNKNOWN = "Unknown"


def is_mongo_uri(uri: str) -> bool:
    return uri.startswith(MONGO_SCHEMES)


def _check_group_field(field: str) -> None:
    if field not in VISITOR_GROUP_FIELDS:
        raise ValueError(f"Cannot group visitors by {field!r}")


class LeadGateway:
    """Interface shared by the backends and by test fakes."""

    def insert(self, lead: Lead) -> str:
        """Persist ``lead``, set ``lead.id`` and return it."""
        raise NotImplementedError

    def find_all_ordered(self) -> list[Lead]:
        """All leads, newest submission_date first."""
        raise NotImplementedError

    def count_visits(self) -> int:
        raise NotImplementedError

    def count_unique_visitor_ips(self) -> int:
        raise NotImplementedError

    def top_visitor_values(self, field: str, limit: int = 5) -> list[tuple[str, int]]:
        """(value, visits) pairs for ``field``, most visits first."""
        raise NotImplementedError

    def close(self) -> None:
        pass


class MongoLeadGateway(LeadGateway):
    """Leads and visitors stored as documents in MongoDB."""

    def __init__(self, database):
        self.database = database
        self.leads = database[LEADS_COLLECTION]
        self.visitors = database[VISITORS_COLLECTION]

    @classmethod
    def connect(cls, uri: str, default_db: str = "leadform", **client_kwargs) -> "MongoLeadGateway":
        # MongoClient connects lazily; a bad URI fails here, an unreachable server on first use
        try:
            client = MongoClient(uri, **client_kwargs)
            database = client.get_default_database(default=default_db)
        except mongo_errors.ConfigurationError as e:
            raise ConfigurationError(f"Invalid MongoDB connection string: {e}") from e
        return cls(database)

    def insert(self, lead: Lead) -> str:
        try:
            result = self.leads.insert_one(lead.to_document())
        except mongo_errors.PyMongoError as e:
            raise PersistenceError(f"MongoDB INSERT error: {e}") from e
        lead.id = str(result.inserted_id)
        return lead.id

    def find_all_ordered(self) -> list[Lead]:
        try:
            cursor = self.leads.find({}).sort([("submission_date", DESCENDING), ("_id", DESCENDING)])
            return [Lead.from_document(doc) for doc in cursor]
        except mongo_errors.PyMongoError as e:
            raise PersistenceError(f"MongoDB SELECT error: {e}") from e
        except MALFORMED_RECORD_ERRORS as e:
            raise PersistenceError(f"Malformed lead document: {e}") from e

    def count_visits(self) -> int:
        try:
            return self.visitors.count_documents({})
        except mongo_errors.PyMongoError as e:
            raise PersistenceError(f"MongoDB COUNT error: {e}") from e

    def count_unique_visitor_ips(self) -> int:
        try:
            return len(self.visitors.distinct("ip_address"))
        except mongo_errors.PyMongoError as e:
            raise PersistenceError(f"MongoDB DISTINCT error: {e}") from e

    def top_visitor_values(self, field: str, limit: int = 5) -> list[tuple[str, int]]:
        _check_group_field(field)
        pipeline = [
            {"$match": {field: {"$exists": True, "$nin": [None, UNKNOWN]}}},
            {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        try:
            return [(item["_id"], item["count"]) for item in self.visitors.aggregate(pipeline)]
        except mongo_errors.PyMongoError as e:
            raise PersistenceError(f"MongoDB AGGREGATE error: {e}") from e

    def close(self) -> None:
        self.database.client.close()


class SqlLeadGateway(LeadGateway):
    """Leads and visitors stored in SQL tables through Flask-SQLAlchemy.

    Needs an application context, which every request and CLI command has.
    """

    def __init__(self, database=db):
        self.db = database

    def insert(self, lead: Lead) -> str:
        row = LeadRow(
            full_name=lead.full_name,
            tel=lead.phone,
            email_address=lead.email_address,
            project_details=lead.project_details,
            submission_date=lead.submission_date,
        )
        try:
            self.db.session.add(row)
            self.db.session.commit()
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise PersistenceError(f"Database INSERT error: {e}") from e
        lead.id = str(row.id)
        return lead.id

    def find_all_ordered(self) -> list[Lead]:
        try:
            rows = LeadRow.query.order_by(LeadRow.submission_date.desc(), LeadRow.id.desc()).all()
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise PersistenceError(f"Database SELECT error: {e}") from e
        try:
            return [Lead.from_row(row) for row in rows]
        except MALFORMED_RECORD_ERRORS as e:
            raise PersistenceError(f"Malformed lead row: {e}") from e

    def count_visits(self) -> int:
        try:
            return VisitorRow.query.count()
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise PersistenceError(f"Database COUNT error: {e}") from e

    def count_unique_visitor_ips(self) -> int:
        try:
            return self.db.session.query(func.count(distinct(VisitorRow.ip_address))).scalar() or 0
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise PersistenceError(f"Database DISTINCT error: {e}") from e

    def top_visitor_values(self, field: str, limit: int = 5) -> list[tuple[str, int]]:
        _check_group_field(field)
        column = getattr(VisitorRow, field)
        visits = func.count(VisitorRow.id)
        try:
            rows = (
                self.db.session.query(column, visits)
                .filter(column.isnot(None), column != UNKNOWN)
                .group_by(column)
                .order_by(visits.desc(), column)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise PersistenceError(f"Database GROUP BY error: {e}") from e
        return [(value, count) for value, count in rows]

    def close(self) -> None:
        self.db.session.remove()


def open_gateway(app: Flask, uri: str | None = None) -> LeadGateway:
    """Open the process-wide gateway for ``app``. Called once from create_app."""
    uri = (uri or app.config.get("DATABASE_URI") or "").strip()
    if not uri:
        raise ConfigurationError("MONGO_URI is not defined! Application cannot connect to database.")

    if is_mongo_uri(uri):
        gateway = MongoLeadGateway.connect(uri, default_db=app.config.get("MONGO_DB_NAME", "leadform"))
        app.logger.info("Using MongoDB database %r", gateway.database.name)
        return gateway

    app.config["SQLALCHEMY_DATABASE_URI"] = uri
    db.init_app(app)
    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not prepare SQL tables: {e}") from e
    app.logger.info("Using SQL database (%s)", uri.split(":", 1)[0])
    return SqlLeadGateway(db)
