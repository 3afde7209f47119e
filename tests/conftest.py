from __future__ import annotations

from collections import Counter

import pytest

from leadform import create_app
from leadform.errors import PersistenceError
from leadform.gateway import UNKNOWN, LeadGateway
from leadform.models import Lead, db


class FakeGateway(LeadGateway):
    """In-memory gateway; set ``fail`` to simulate an unreachable store."""

    def __init__(self) -> None:
        self.leads: list[Lead] = []
        self.visits: list[dict] = []
        self.fail = False
        self.closed = False
        self._next_id = 1

    def _check(self) -> None:
        if self.fail:
            raise PersistenceError("connection refused")

    def insert(self, lead: Lead) -> str:
        self._check()
        lead.id = str(self._next_id)
        self._next_id += 1
        self.leads.append(lead)
        return lead.id

    def find_all_ordered(self) -> list[Lead]:
        self._check()
        return sorted(self.leads, key=lambda lead: (lead.submission_date, int(lead.id)), reverse=True)

    def count_visits(self) -> int:
        self._check()
        return len(self.visits)

    def count_unique_visitor_ips(self) -> int:
        self._check()
        return len({visit["ip_address"] for visit in self.visits})

    def top_visitor_values(self, field: str, limit: int = 5) -> list[tuple[str, int]]:
        self._check()
        counts = Counter(v.get(field) for v in self.visits if v.get(field) not in (None, UNKNOWN))
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def app(fake_gateway):
    return create_app("leadform.config.TestingConfig", gateway=fake_gateway)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sql_app():
    app = create_app("leadform.config.TestingConfig")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def sql_client(sql_app):
    return sql_app.test_client()
