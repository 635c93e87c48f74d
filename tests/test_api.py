"""
HTTP API tests: identity, role gates, error mapping and the main flows.
"""

import io

from app.models.enums import TimerState
from app.services.bulk_import_service import CSV_COLUMNS

HEADER = ",".join(CSV_COLUMNS.values())


# ── Helpers ─────────────────────────────────────────────────────────────────


def _create(client, headers, **data):
    data.setdefault("title", "PID-1 Bakery")
    res = client.post("/api/v1/submissions", json=data, headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


# ── Health & identity ───────────────────────────────────────────────────────


def test_health_is_public(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.get_json()["status"] == "ok"
    assert "X-Request-ID" in res.headers


def test_missing_identity_is_401(client):
    res = client.get("/api/v1/submissions")
    assert res.status_code == 401
    assert res.get_json()["code"] == "ERR_UNAUTHENTICATED"


def test_unknown_identity_is_401(client):
    assert client.get("/api/v1/submissions", headers={"X-User-Id": "9999"}).status_code == 401


def test_login_and_me(client, member, auth_headers):
    res = client.post("/api/v1/auth/login", json={"name": "Akshat", "password": "user"})
    assert res.status_code == 200
    assert res.get_json()["user"]["id"] == member.id

    assert client.post("/api/v1/auth/login", json={"name": "Akshat", "password": "bad"}).status_code == 401
    assert client.post("/api/v1/auth/login", json={}).status_code == 400

    me = client.get("/api/v1/auth/me", headers=auth_headers(member))
    assert me.get_json()["user"]["name"] == "Akshat"


def test_admin_only_endpoints_forbid_members(client, member, auth_headers):
    headers = auth_headers(member)
    res = client.post("/api/v1/users", json={"name": "X", "password": "y"}, headers=headers)
    assert res.status_code == 403
    assert res.get_json()["code"] == "ERR_FORBIDDEN"
    assert client.post("/api/v1/submissions/bulk-delete", json={"ids": []}, headers=headers).status_code == 403
    assert client.post("/api/v1/submissions/import", data=HEADER, headers=headers).status_code == 403
    assert client.get("/api/v1/teams", headers=headers).status_code == 403


# ── Submissions & timer ─────────────────────────────────────────────────────


def test_timer_flow(client, admin, member, auth_headers):
    headers = auth_headers(member)
    sub = _create(client, auth_headers(admin), team="High Velocity", developer_id=member.id)
    base = f"/api/v1/submissions/{sub['id']}"

    res = client.post(f"{base}/start", headers=headers)
    assert res.status_code == 200
    assert res.get_json()["timer_state"] == TimerState.RUNNING.value

    res = client.post(f"{base}/start", headers=headers)
    assert res.status_code == 409
    assert res.get_json()["code"] == "ERR_CONFLICT_STATE"

    res = client.post(f"{base}/pause", json={}, headers=headers)
    assert res.status_code == 422

    res = client.post(f"{base}/pause", json={"reason": "Meeting"}, headers=headers)
    assert res.get_json()["timer_state"] == "paused"
    assert res.get_json()["pause_reason"] == "Meeting"

    display = client.get(f"{base}/timer", headers=headers).get_json()
    assert display["label"] == "Paused"

    assert client.post(f"{base}/resume", headers=headers).get_json()["timer_state"] == "running"
    assert client.post(f"{base}/stop", headers=headers).get_json()["timer_state"] == "stopped"


def test_status_endpoint_couples_timer(client, admin, auth_headers):
    headers = auth_headers(admin)
    sub = _create(client, headers)
    base = f"/api/v1/submissions/{sub['id']}"

    res = client.post(f"{base}/status", json={"status": "In Progress"}, headers=headers)
    assert res.get_json()["timer_state"] == "running"
    res = client.post(f"{base}/status", json={"status": "Completed"}, headers=headers)
    assert res.get_json()["timer_state"] == "stopped"
    assert client.post(f"{base}/status", json={"status": "Nope"}, headers=headers).status_code == 422
    assert client.post(f"{base}/status", json={}, headers=headers).status_code == 400


def test_member_cannot_reach_other_team(client, admin, member, auth_headers):
    sub = _create(client, auth_headers(admin), team="Agency")
    res = client.get(f"/api/v1/submissions/{sub['id']}", headers=auth_headers(member))
    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"


def test_validation_error_shape(client, admin, auth_headers):
    res = client.post("/api/v1/submissions", json={"title": ""}, headers=auth_headers(admin))
    assert res.status_code == 422
    body = res.get_json()
    assert body["code"] == "ERR_VALIDATION_RULE"
    assert body["details"] == {"title": "required"}


def test_bulk_delete(client, admin, auth_headers):
    headers = auth_headers(admin)
    a = _create(client, headers, title="A")
    _create(client, headers, title="B")
    res = client.post("/api/v1/submissions/bulk-delete", json={"ids": [a["id"]]}, headers=headers)
    assert res.get_json() == {"deleted": 1}
    assert client.get("/api/v1/submissions", headers=headers).get_json()["total"] == 1


# ── CSV import ──────────────────────────────────────────────────────────────


def test_import_partial_success_is_207(client, admin, auth_headers):
    content = "\n".join([
        "Project Title,Task Status,Team",
        "PID-1,Open,Agency",
        "PID-1,Open,Agency",
        ",Open,Agency",
    ])
    res = client.post(
        "/api/v1/submissions/import",
        data={"file": (io.BytesIO(content.encode("utf-8")), "batch.csv")},
        content_type="multipart/form-data",
        headers=auth_headers(admin),
    )
    assert res.status_code == 207
    body = res.get_json()
    assert body["successCount"] == 1
    assert body["duplicateCount"] == 1
    assert body["errorCount"] == 1
    assert body["errors"] == ["Row 4: 'PROJECT TITLE' is missing."]


def test_import_all_good_is_200(client, admin, auth_headers):
    res = client.post(
        "/api/v1/submissions/import",
        json={"csv_content": "Project Title,Task Status,Team\nPID-2,Pending,Verticals\n"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    assert res.get_json()["successCount"] == 1


def test_import_fatal_is_400(client, admin, auth_headers):
    res = client.post(
        "/api/v1/submissions/import",
        json={"csv_content": "Project Title,Task Status\nPID-3,Open\n"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_IMPORT_FATAL"


def test_import_non_utf8_upload_is_400(client, admin, auth_headers):
    content = (HEADER + "\nPID-4,Open,Agency\n").encode("utf-8") + b"\xff\xfe\x00"
    res = client.post(
        "/api/v1/submissions/import",
        data={"file": (io.BytesIO(content), "batch.csv")},
        content_type="multipart/form-data",
        headers=auth_headers(admin),
    )
    assert res.status_code == 400
    body = res.get_json()
    assert body["code"] == "ERR_IMPORT_FATAL"
    assert body["error"] == "CSV must be UTF-8 encoded."

    raw = client.post("/api/v1/submissions/import", data=b"\xff\xfe\x00bad", headers=auth_headers(admin))
    assert raw.status_code == 400
    assert raw.get_json()["code"] == "ERR_IMPORT_FATAL"


def test_import_without_file_is_400(client, admin, auth_headers):
    assert client.post("/api/v1/submissions/import", headers=auth_headers(admin)).status_code == 400


def test_template_download(client, member, auth_headers):
    res = client.get("/api/v1/submissions/import/template", headers=auth_headers(member))
    assert res.status_code == 200
    assert res.get_data(as_text=True).startswith(HEADER)


# ── Users, metrics, notifications ───────────────────────────────────────────


def test_user_admin_flow(client, admin, auth_headers):
    headers = auth_headers(admin)
    res = client.post("/api/v1/users", json={"name": "Jane", "password": "pw", "team": "Agency"}, headers=headers)
    assert res.status_code == 201
    user_id = res.get_json()["id"]

    dup = client.post("/api/v1/users", json={"name": "jane", "password": "pw"}, headers=headers)
    assert dup.status_code == 409

    res = client.put(f"/api/v1/users/{user_id}", json={"role": "admin"}, headers=headers)
    assert res.get_json()["role"] == "admin"

    assert client.delete(f"/api/v1/users/{admin.id}", headers=headers).status_code == 400
    assert client.delete(f"/api/v1/users/{user_id}", headers=headers).status_code == 200
    assert client.put(f"/api/v1/users/{user_id}", json={}, headers=headers).status_code == 404


def test_metrics_endpoints(client, admin, member, other_member, auth_headers):
    res = client.post("/api/v1/metrics", json={"user_id": member.id, "hours": 6, "day": "2024-05-06"},
                      headers=auth_headers(admin))
    assert res.status_code == 201

    rows = client.get("/api/v1/metrics?start=2024-05-01", headers=auth_headers(admin)).get_json()["items"]
    assert {r["user"]["name"] for r in rows} == {member.name, other_member.name}

    member_rows = client.get("/api/v1/metrics", headers=auth_headers(member)).get_json()["items"]
    assert [r["user"]["id"] for r in member_rows] == [member.id]

    assert client.get("/api/v1/metrics?start=junk", headers=auth_headers(admin)).status_code == 422

    daily = client.get(f"/api/v1/metrics/users/{member.id}/daily", headers=auth_headers(member)).get_json()
    assert daily["items"][0]["hours"] == 6
    other = client.get(f"/api/v1/metrics/users/{other_member.id}/daily", headers=auth_headers(member))
    assert other.status_code == 404

    stats = client.get("/api/v1/dashboard/stats", headers=auth_headers(member)).get_json()
    assert "avg_utilization" in stats


def test_assignment_notification_endpoint(client, admin, member, auth_headers):
    sub = _create(client, auth_headers(admin), team="High Velocity")
    client.put(f"/api/v1/submissions/{sub['id']}", json={"developer_id": member.id}, headers=auth_headers(admin))

    body = client.get("/api/v1/notifications", headers=auth_headers(member)).get_json()
    assert body["unread_count"] == 1
    notif_id = body["items"][0]["id"]

    res = client.post(f"/api/v1/notifications/{notif_id}/read", headers=auth_headers(member))
    assert res.status_code == 200
    assert client.post(f"/api/v1/notifications/{notif_id}/read", headers=auth_headers(admin)).status_code == 404


def test_unknown_route_is_json_404(client, admin, auth_headers):
    res = client.get("/api/v1/nope", headers=auth_headers(admin))
    assert res.status_code == 404
    assert res.get_json()["error"] == "Not found"
