# tests/integration/test_api.py
"""
HTTP tests over the FastAPI app: routing, actor headers and the
exception → status code mapping.
"""

from tests.conftest import ADMIN, CLIENT_USER, OTHER_CLIENT_USER, SUPPORT, headers_for

TEAM = {"implementor_id": 10, "developer_id": 11, "tester_id": 12}


async def _create_ticket(client, product_id, actor=ADMIN, **fields):
    body = {"product_id": product_id, "type": "support", "title": "Login page is blank"}
    body.update(fields)
    response = await client.post("/tickets", json=body, headers=headers_for(actor))
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_correlation_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestActorHeaders:

    async def test_missing_headers(self, client, api_product):
        response = await client.get("/tickets")
        assert response.status_code == 401

    async def test_unknown_role(self, client, api_product):
        response = await client.get("/tickets", headers={"X-User-Id": "1", "X-User-Role": "root"})
        assert response.status_code == 401

    async def test_client_users_cannot_manage_catalog(self, client, as_client_user):
        response = await client.post("/catalog/products", json={"code": "ERP", "name": "ERP"}, headers=as_client_user)
        assert response.status_code == 403


class TestTicketEndpoints:

    async def test_create_and_detail(self, client, api_product, as_client_user):
        ticket = await _create_ticket(client, api_product["id"], CLIENT_USER, client_priority=2)
        assert ticket["issue_key"] == "CRM-S-001"
        assert ticket["status"] == "pending_internal_review"
        assert ticket["priority"] == {"client": 2, "internal": None, "effective": 2}

        response = await client.get(f"/tickets/key/{ticket['issue_key']}", headers=as_client_user)
        assert response.status_code == 200
        detail = response.json()
        assert detail["ticket"]["id"] == ticket["id"]
        assert detail["sla_age"]["display"] == "-"
        assert "cancel" not in detail["available_actions"]
        assert "create_dev_task" in detail["available_actions"]

    async def test_unknown_product_is_404(self, client, api_product, as_admin):
        response = await client.post(
            "/tickets",
            json={"product_id": "1c9d5a40-0000-4000-8000-000000000000", "type": "support", "title": "x"},
            headers=as_admin,
        )
        assert response.status_code == 404
        assert response.json()["error_type"] == "ResourceNotFoundException"

    async def test_other_client_gets_404(self, client, api_product):
        ticket = await _create_ticket(client, api_product["id"], CLIENT_USER)
        response = await client.get(f"/tickets/{ticket['id']}", headers=headers_for(OTHER_CLIENT_USER))
        assert response.status_code == 404

    async def test_cancel_without_reason_is_400(self, client, api_product, as_admin):
        ticket = await _create_ticket(client, api_product["id"])
        response = await client.patch(f"/tickets/{ticket['id']}/status", json={"status": "cancelled"}, headers=as_admin)
        assert response.status_code == 400
        assert response.json()["detail"] == "Please provide a reason for cancellation"

        response = await client.get(f"/tickets/{ticket['id']}", headers=as_admin)
        assert response.json()["status"] == "open"

    async def test_unknown_status_is_400(self, client, api_product, as_admin):
        ticket = await _create_ticket(client, api_product["id"])
        response = await client.patch(f"/tickets/{ticket['id']}/status", json={"status": "archived"}, headers=as_admin)
        assert response.status_code == 400

    async def test_support_cannot_close_resolved_ticket(self, client, api_product):
        ticket = await _create_ticket(client, api_product["id"])
        support = headers_for(SUPPORT)
        await client.patch(f"/tickets/{ticket['id']}/status", json={"status": "resolved"}, headers=support)

        response = await client.patch(f"/tickets/{ticket['id']}/status", json={"status": "closed"}, headers=support)
        assert response.status_code == 403

    async def test_reassign_flow(self, client, api_product, as_admin):
        ticket = await _create_ticket(client, api_product["id"], client_id=42)
        assert "created_by_systech" in ticket["labels"]

        url = f"/tickets/{ticket['id']}/reassign-to-internal"
        response = await client.post(url, json={"comment": "needs client input"}, headers=as_admin)
        assert response.status_code == 200
        assert response.json()["status"] == "pending_internal_review"
        assert response.json()["pushed_to_systech_at"] is not None

        response = await client.post(url, json={"comment": "again"}, headers=as_admin)
        assert response.status_code == 400

    async def test_escalated_filter(self, client, api_product, as_admin):
        escalated = await _create_ticket(client, api_product["id"])
        await _create_ticket(client, api_product["id"])
        response = await client.post(
            f"/tickets/{escalated['id']}/escalate",
            json={"reason": "production_down", "note": "checkout broken"},
            headers=as_admin,
        )
        assert response.status_code == 200
        assert response.json()["is_escalated"] is True

        response = await client.get("/tickets", params={"escalated": "true"}, headers=as_admin)
        assert [t["id"] for t in response.json()] == [escalated["id"]]

    async def test_history(self, client, api_product, as_admin):
        ticket = await _create_ticket(client, api_product["id"])
        await client.patch(
            f"/tickets/{ticket['id']}/status", json={"status": "cancelled", "reason": "duplicate"}, headers=as_admin
        )
        response = await client.get(f"/tickets/{ticket['id']}/history", headers=as_admin)
        events = response.json()
        assert [e["event_type"] for e in events] == ["created", "status_change"]
        assert events[-1]["note"] == "duplicate"


class TestDevTaskEndpoints:

    async def test_convert_ticket(self, client, api_product, as_admin):
        ticket = await _create_ticket(client, api_product["id"], CLIENT_USER)

        response = await client.get(f"/dev-tasks/from-ticket/{ticket['id']}/defaults", headers=as_admin)
        assert response.json() == TEAM

        response = await client.post(f"/dev-tasks/from-ticket/{ticket['id']}", json=TEAM, headers=as_admin)
        assert response.status_code == 201, response.text
        task = response.json()
        assert task["issue_key"] == "CRM-T001"
        assert task["support_ticket_id"] == ticket["id"]

        response = await client.get(f"/tickets/{ticket['id']}", headers=as_admin)
        assert response.json()["status"] == "in_progress"
        assert response.json()["assigned_to"] == 10

    async def test_convert_without_roles_is_400_and_atomic(self, client, api_product, as_admin):
        ticket = await _create_ticket(client, api_product["id"])
        response = await client.post(
            f"/dev-tasks/from-ticket/{ticket['id']}", json={"implementor_id": 10}, headers=as_admin
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Please assign Implementor, Developer, and Tester"

        response = await client.get(f"/tickets/{ticket['id']}", headers=as_admin)
        assert response.json()["status"] == "open"
        response = await client.get("/dev-tasks", headers=as_admin)
        assert response.json() == []

    async def test_client_cannot_convert(self, client, api_product, as_client_user):
        ticket = await _create_ticket(client, api_product["id"], CLIENT_USER)
        response = await client.post(f"/dev-tasks/from-ticket/{ticket['id']}", json=TEAM, headers=as_client_user)
        assert response.status_code == 403

    async def test_status_patch_reports_warning(self, client, api_product, as_admin):
        response = await client.post(
            "/dev-tasks", json={"product_id": api_product["id"], "title": "Rotate keys", **TEAM}, headers=as_admin
        )
        task = response.json()

        response = await client.patch(f"/dev-tasks/{task['id']}/status", json={"status": "blocked"}, headers=as_admin)
        assert response.status_code == 200
        assert response.json()["warnings"] == ["blocked_without_reason"]
        assert response.json()["task"]["status"] == "blocked"

    async def test_unknown_task_is_404(self, client, as_admin):
        response = await client.get("/dev-tasks/3f1c1f57-0000-4000-8000-000000000000", headers=as_admin)
        assert response.status_code == 404


class TestSprintEndpoints:

    async def test_single_active_sprint_is_409(self, client, as_admin):
        first = (await client.post("/sprints", json={"start_date": "2026-02-02"}, headers=as_admin)).json()
        second = (await client.post("/sprints", json={"start_date": "2026-02-16"}, headers=as_admin)).json()
        assert first["name"] == "Feb-I-26"
        assert first["end_date"] == "2026-02-15"

        assert (await client.post(f"/sprints/{first['id']}/start", headers=as_admin)).status_code == 200
        response = await client.post(f"/sprints/{second['id']}/start", headers=as_admin)
        assert response.status_code == 409

        response = await client.post(f"/sprints/{first['id']}/complete", headers=as_admin)
        assert response.status_code == 200
        assert response.json()["sprint"]["status"] == "completed"
        assert response.json()["velocity"] == 0

        assert (await client.post(f"/sprints/{second['id']}/start", headers=as_admin)).status_code == 200
        response = await client.get("/sprints/active", headers=as_admin)
        assert response.json()["sprint"]["id"] == second["id"]

    async def test_no_active_sprint_is_null(self, client, as_admin):
        response = await client.get("/sprints/active", headers=as_admin)
        assert response.status_code == 200
        assert response.json() is None

    async def test_client_users_are_rejected(self, client, as_client_user):
        response = await client.get("/sprints", headers=as_client_user)
        assert response.status_code == 403

    async def test_capacity_default(self, client, as_admin):
        sprint = (await client.post("/sprints", json={"start_date": "2026-02-02"}, headers=as_admin)).json()
        response = await client.put(f"/sprints/{sprint['id']}/capacity", json={"user_id": 11}, headers=as_admin)
        assert response.status_code == 200
        assert response.json()["available_points"] == 20
