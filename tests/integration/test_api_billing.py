"""Integration tests for tenant billing API."""

from datetime import datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient

from agentdesk_core.database.models import PaymentStatus
from agentdesk_core.database.repositories import PaymentRepository
from agentdesk_core.database.seed import seed_billing_packages


@pytest_asyncio.fixture
async def packages(database):
    async with database.session() as session:
        return [p.name for p in await seed_billing_packages(session)]


class TestBillingAPI:
    """Tests for billing endpoints."""

    @pytest.mark.asyncio
    async def test_packages_ordered_by_price(self, client_a: AsyncClient, packages):
        data = (await client_a.get("/api/v1/billing/packages")).json()["data"]

        assert [p["name"] for p in data] == ["starter", "professional", "enterprise"]
        assert data[0]["monthly_price"] == pytest.approx(49.0)

    @pytest.mark.asyncio
    async def test_payments_are_scoped(self, client_a: AsyncClient, client_b: AsyncClient, database):
        async with database.session() as session:
            await PaymentRepository(session).create(
                organization_id="org-a",
                amount=Decimal("49.00"),
                status=PaymentStatus.COMPLETED.value,
                completed_at=datetime.utcnow(),
            )

        mine = (await client_a.get("/api/v1/billing/payments")).json()
        theirs = (await client_b.get("/api/v1/billing/payments")).json()

        assert mine["pagination"]["total_items"] == 1
        assert mine["data"][0]["amount"] == pytest.approx(49.0)
        assert theirs["data"] == []

    @pytest.mark.asyncio
    async def test_summary_totals_completed_payments(self, client_a: AsyncClient, database):
        async with database.session() as session:
            repo = PaymentRepository(session)
            await repo.create(organization_id="org-a", amount=Decimal("49.00"),
                              status=PaymentStatus.COMPLETED.value)
            await repo.create(organization_id="org-a", amount=Decimal("199.00"),
                              status=PaymentStatus.FAILED.value)

        summary = (await client_a.get("/api/v1/billing/summary")).json()["data"]

        assert summary["billing_package"] == "starter"
        assert summary["total_paid"] == pytest.approx(49.0)
        assert summary["used_credits"] == 0
