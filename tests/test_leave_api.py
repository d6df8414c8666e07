"""Leave API tests — authentication, role checks and problem+json errors."""

from __future__ import annotations

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.constants import UserRole
from tests.conftest import (
    auth_header,
    create_access_token,
    seed_balance,
    seed_employee,
    seed_leave_type,
)

BASE = "/api/v1/leave"

TRIP = {
    "leave_type_id": 2,
    "start_date": "2025-03-10",
    "end_date": "2025-03-12",
    "reason": "trip",
}


async def _seed(db: AsyncSession, balance: int = 10) -> None:
    await seed_employee(db, id=7, first_name="Asha", last_name="Rao")
    await seed_employee(db, id=3, first_name="Vikram", last_name="Shah")
    await seed_employee(db, id=1, first_name="Hema", last_name="Nair")
    await seed_leave_type(db, id=2, name="CL")
    await seed_balance(db, 7, 2, balance=balance)
    await db.commit()


async def _apply(client: AsyncClient) -> int:
    resp = await client.post(f"{BASE}/apply", json=TRIP, headers=auth_header(7))
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def _assert_problem(resp, status: int, error_type: str) -> dict:
    assert resp.status_code == status, resp.text
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    assert body["status"] == status
    assert body["type"].endswith(f"/{error_type}")
    return body


# ═════════════════════════════════════════════════════════════════════
# 1. Authentication
# ═════════════════════════════════════════════════════════════════════


class TestAuth:

    async def test_health_needs_no_token(self, client: AsyncClient):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    async def test_missing_token(self, client: AsyncClient):
        resp = await client.post(f"{BASE}/apply", json=TRIP)
        assert resp.status_code == 401

    async def test_expired_token(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        token = create_access_token(7, expired=True)
        resp = await client.get(
            f"{BASE}/my-balances", headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 401

    async def test_garbage_token(self, client: AsyncClient):
        resp = await client.get(
            f"{BASE}/my-balances", headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert resp.status_code == 401

    async def test_inactive_employee(self, client: AsyncClient, db: AsyncSession):
        await seed_employee(db, id=11, is_active=False)
        await db.commit()
        resp = await client.get(f"{BASE}/my-balances", headers=auth_header(11))
        assert resp.status_code == 401


# ═════════════════════════════════════════════════════════════════════
# 2. Workflow over HTTP
# ═════════════════════════════════════════════════════════════════════


class TestWorkflowEndpoints:

    async def test_apply_approve_and_balances(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        application_id = await _apply(client)

        resp = await client.patch(
            f"{BASE}/{application_id}/status",
            json={"status": "APPROVED"},
            headers=auth_header(3, UserRole.MANAGER),
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["status"] == "APPROVED"
        assert body["approver_id"] == 3
        assert body["balance_after"] == 7

        resp = await client.get(f"{BASE}/my-balances", headers=auth_header(7))
        assert resp.status_code == 200
        assert resp.json() == [
            {"id": 1, "leave_type_id": 2, "leave_type_name": "CL", "balance": 7, "max_days": 12},
        ]

    async def test_insufficient_balance_is_problem_json(
        self, client: AsyncClient, db: AsyncSession,
    ):
        await _seed(db, balance=2)
        resp = await client.post(f"{BASE}/apply", json=TRIP, headers=auth_header(7))
        body = _assert_problem(resp, 422, "insufficient-balance")
        assert "balance" in body["errors"]

    async def test_inverted_dates_rejected_by_schema(
        self, client: AsyncClient, db: AsyncSession,
    ):
        await _seed(db)
        resp = await client.post(
            f"{BASE}/apply",
            json={**TRIP, "start_date": "2025-03-12", "end_date": "2025-03-10"},
            headers=auth_header(7),
        )
        _assert_problem(resp, 422, "validation-error")

    async def test_employee_cannot_approve(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        application_id = await _apply(client)

        resp = await client.patch(
            f"{BASE}/{application_id}/status",
            json={"status": "APPROVED"},
            headers=auth_header(7),
        )
        _assert_problem(resp, 403, "forbidden")

    async def test_status_body_must_be_decision(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        application_id = await _apply(client)

        resp = await client.patch(
            f"{BASE}/{application_id}/status",
            json={"status": "CANCELLED"},
            headers=auth_header(1, UserRole.HR),
        )
        _assert_problem(resp, 422, "validation-error")

    async def test_cancel_twice_conflicts(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        application_id = await _apply(client)

        first = await client.patch(f"{BASE}/{application_id}/cancel", headers=auth_header(7))
        assert first.status_code == 200
        assert first.json()["status"] == "CANCELLED"

        second = await client.patch(f"{BASE}/{application_id}/cancel", headers=auth_header(7))
        _assert_problem(second, 409, "invalid-transition")

    async def test_cancel_by_other_employee_forbidden(
        self, client: AsyncClient, db: AsyncSession,
    ):
        await _seed(db)
        application_id = await _apply(client)

        resp = await client.patch(
            f"{BASE}/{application_id}/cancel", headers=auth_header(3, UserRole.MANAGER),
        )
        _assert_problem(resp, 403, "forbidden")

    async def test_get_by_id(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        application_id = await _apply(client)

        resp = await client.get(f"{BASE}/{application_id}", headers=auth_header(7))
        assert resp.status_code == 200
        assert resp.json()["employee_name"] == "Asha Rao"

        missing = await client.get(f"{BASE}/999", headers=auth_header(7))
        _assert_problem(missing, 404, "not-found")


# ═════════════════════════════════════════════════════════════════════
# 3. Reporting endpoints
# ═════════════════════════════════════════════════════════════════════


class TestReportingEndpoints:

    async def test_list_requires_approver_role(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        resp = await client.get(BASE, headers=auth_header(7))
        _assert_problem(resp, 403, "forbidden")

    async def test_admin_inherits_listing(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        await _apply(client)

        resp = await client.get(
            BASE,
            params={"status": "PENDING", "page_size": 5},
            headers=auth_header(1, UserRole.ADMIN),
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["total_count"] == 1
        assert body["page_count"] == 1
        assert body["page_size"] == 5
        assert body["items"][0]["leave_type_name"] == "CL"

    async def test_unknown_sort_field(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        resp = await client.get(
            BASE, params={"sort_by": "nope"}, headers=auth_header(1, UserRole.HR),
        )
        body = _assert_problem(resp, 422, "validation-error")
        assert "sort_by" in body["errors"]

    async def test_statistics(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        await _apply(client)

        resp = await client.get(f"{BASE}/statistics", headers=auth_header(3, UserRole.MANAGER))
        assert resp.status_code == 200
        assert resp.json()["pending_applications"] == 1

    async def test_upcoming_window_validation(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        resp = await client.get(
            f"{BASE}/upcoming",
            params={"from_date": "2025-03-10", "to_date": "2025-03-10"},
            headers=auth_header(3, UserRole.MANAGER),
        )
        _assert_problem(resp, 422, "validation-error")

    async def test_leave_types_for_any_user(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        resp = await client.get(f"{BASE}/types", headers=auth_header(7))
        assert resp.status_code == 200
        assert [t["name"] for t in resp.json()] == ["CL"]


# ═════════════════════════════════════════════════════════════════════
# 4. Opening balances
# ═════════════════════════════════════════════════════════════════════


class TestOpenBalanceEndpoint:

    async def test_hr_opens_balance(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        await seed_leave_type(db, id=4, name="SL", max_days=8)
        await db.commit()

        resp = await client.post(
            f"{BASE}/balances",
            json={"employee_id": 7, "leave_type_id": 4, "balance": 8},
            headers=auth_header(1, UserRole.HR),
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["leave_type_name"] == "SL"

    async def test_duplicate_conflicts(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        resp = await client.post(
            f"{BASE}/balances",
            json={"employee_id": 7, "leave_type_id": 2, "balance": 5},
            headers=auth_header(1, UserRole.HR),
        )
        _assert_problem(resp, 409, "conflict")

    async def test_manager_cannot_open(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        resp = await client.post(
            f"{BASE}/balances",
            json={"employee_id": 7, "leave_type_id": 2, "balance": 5},
            headers=auth_header(3, UserRole.MANAGER),
        )
        _assert_problem(resp, 403, "forbidden")
