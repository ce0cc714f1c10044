from datetime import date, timedelta

from forkcheck.auth.security import get_passcode_hash, verify_passcode


def _submit(client, unit, questions, statuses, comments=None):
    comments = comments or {}
    return client.post(
        "/checklist/submissions",
        json={
            "badge_number": "4455",
            "forklift_id": str(unit.id),
            "responses": [
                {"question_id": str(q.id), "status": s, "comment": comments.get(i)}
                for i, (q, s) in enumerate(zip(questions, statuses))
            ],
        },
    )


# ---------- AUTH ----------
def test_admin_routes_require_token(client):
    assert client.get("/forklifts").status_code == 401
    assert client.get("/forklifts", headers={"Authorization": "Bearer nonsense"}).status_code == 401


def test_wrong_passcode_rejected(client):
    assert client.post("/auth/admin/login", json={"passcode": "0000"}).status_code == 401


def test_login_returns_bearer_token(client):
    r = client.post("/auth/admin/login", json={"passcode": "4155"})

    assert r.status_code == 200
    assert r.json()["token_type"] == "bearer"
    assert r.json()["expires_in"] > 0


def test_passcode_may_be_stored_hashed():
    hashed = get_passcode_hash("2468")

    assert verify_passcode("2468", hashed)
    assert not verify_passcode("4155", hashed)
    assert verify_passcode("4155", "4155")
    assert not verify_passcode("", "4155")


# ---------- FORKLIFTS ----------
def test_forklift_crud_and_unit_number_conflict(client, admin_headers):
    r = client.post("/forklifts", json={"name": "Reach Truck", "unit_number": "FL-7", "is_default": True}, headers=admin_headers)
    assert r.status_code == 201
    first = r.json()
    assert first["is_default"] is True

    dup = client.post("/forklifts", json={"name": "Other", "unit_number": "FL-7"}, headers=admin_headers)
    assert dup.status_code == 409
    assert dup.json() == {"detail": "Unit number already exists", "code": "conflict"}

    blank = client.post("/forklifts", json={"name": "  ", "unit_number": "FL-8"}, headers=admin_headers)
    assert blank.status_code == 422

    second = client.post("/forklifts", json={"name": "Counterbalance", "unit_number": "FL-8"}, headers=admin_headers).json()
    clash = client.put(f"/forklifts/{second['id']}", json={"unit_number": "FL-7"}, headers=admin_headers)
    assert clash.status_code == 409

    renamed = client.put(f"/forklifts/{second['id']}", json={"name": "Counterbalance 2"}, headers=admin_headers)
    assert renamed.json()["name"] == "Counterbalance 2"


def test_set_default_endpoint(client, admin_headers, make_unit):
    e1 = make_unit(name="E1", unit_number="E1", is_default=True)
    e2 = make_unit(name="E2", unit_number="E2")

    r = client.post(f"/forklifts/{e2.id}/default", headers=admin_headers)

    assert r.status_code == 200
    listing = client.get("/forklifts", headers=admin_headers).json()
    assert {f["unit_number"]: f["is_default"] for f in listing} == {"E1": False, "E2": True}
    assert client.post(f"/forklifts/{e1.id}/default", headers=admin_headers).json()["is_default"] is True


def test_delete_forklift_with_history_deactivates(client, admin_headers, checklist):
    unit, questions, _ = checklist
    assert _submit(client, unit, questions, ["pass"] * 3).status_code == 201

    r = client.delete(f"/forklifts/{unit.id}", headers=admin_headers)

    assert r.json()["deleted"] is False
    assert client.get("/checklist/forklifts").json() == []
    assert client.get(f"/forklifts/{unit.id}", headers=admin_headers).json()["is_active"] is False


def test_question_assignment_endpoints(client, admin_headers, checklist):
    unit, questions, _ = checklist
    url = f"/forklifts/{unit.id}/questions"

    assert client.get(url, headers=admin_headers).json()["question_ids"] == []
    client.put(f"{url}/{questions[0].id}", headers=admin_headers)
    r = client.put(f"{url}/{questions[0].id}", headers=admin_headers)
    assert r.json()["question_ids"] == [str(questions[0].id)]

    r = client.delete(f"{url}/{questions[0].id}", headers=admin_headers)
    assert r.json()["question_ids"] == []


# ---------- QUESTIONS ----------
def test_new_question_appended_with_default_label(client, admin_headers, checklist):
    r = client.post("/questions", json={"question_text": "Seat belt - operational"}, headers=admin_headers)

    assert r.status_code == 201
    q = r.json()
    assert q["sort_order"] == 4
    assert q["label"] == "Q4"
    assert q["category"] == "General"


def test_question_deactivation_hides_it_from_operators(client, admin_headers, checklist):
    _, questions, _ = checklist

    r = client.put(f"/questions/{questions[0].id}/active", json={"is_active": False}, headers=admin_headers)
    assert r.json()["is_active"] is False
    assert len(client.get("/checklist/questions").json()) == 2

    client.delete(f"/questions/{questions[1].id}", headers=admin_headers)
    assert len(client.get("/checklist/questions").json()) == 1
    assert len(client.get("/questions", headers=admin_headers).json()) == 3


# ---------- DRIVERS ----------
def test_driver_badge_unique_among_active(client, admin_headers):
    body = {"badge_number": "5150", "driver_name": "A. Operator"}
    first = client.post("/drivers", json=body, headers=admin_headers)
    assert first.status_code == 201

    dup = client.post("/drivers", json={**body, "driver_name": "B. Operator"}, headers=admin_headers)
    assert dup.status_code == 409
    assert dup.json()["detail"] == "Badge number already exists"

    client.delete(f"/drivers/{first.json()['id']}", headers=admin_headers)
    again = client.post("/drivers", json={**body, "driver_name": "B. Operator"}, headers=admin_headers)
    assert again.status_code == 201

    reactivate = client.post(f"/drivers/{first.json()['id']}/reactivate", headers=admin_headers)
    assert reactivate.status_code == 409


def test_overlong_badge_is_a_validation_error(client, admin_headers, checklist):
    unit, questions, _ = checklist
    badge = "9" * 51

    created = client.post("/drivers", json={"badge_number": badge, "driver_name": "Long Badge"}, headers=admin_headers)
    assert created.status_code == 422

    r = client.post(
        "/checklist/submissions",
        json={
            "badge_number": badge,
            "forklift_id": str(unit.id),
            "responses": [{"question_id": str(q.id), "status": "pass"} for q in questions],
        },
    )
    assert r.status_code == 422
    assert client.post("/checklist/badge/validate", json={"badge_number": badge}).status_code == 422


def test_deactivated_driver_badge_stops_validating(client, admin_headers, make_driver):
    d = make_driver("4455", "J. Smith")
    assert client.post("/checklist/badge/validate", json={"badge_number": "4455"}).json()["authorized"] is True

    client.delete(f"/drivers/{d.id}", headers=admin_headers)

    assert client.post("/checklist/badge/validate", json={"badge_number": "4455"}).json()["authorized"] is False
    assert client.get("/drivers", headers=admin_headers).json() == []
    assert len(client.get("/drivers", params={"include_inactive": True}, headers=admin_headers).json()) == 1


# ---------- SUBMISSIONS / NOTIFICATIONS / MAINTENANCE ----------
def test_review_flow(client, admin_headers, checklist):
    unit, questions, _ = checklist
    r = _submit(client, unit, questions, ["pass", "fail", "na"], comments={1: "Horn silent"})
    submission_id = r.json()["submission"]["id"]

    listing = client.get("/submissions", params={"has_failures": True}, headers=admin_headers).json()
    assert [s["id"] for s in listing] == [submission_id]
    assert listing[0]["unit_number"] == "E1"

    detail = client.get(f"/submissions/{submission_id}", headers=admin_headers).json()
    assert [x["status"] for x in detail["responses"]] == ["pass", "fail", "na"]
    failed = detail["responses"][1]
    assert failed["comment"] == "Horn silent"

    notes = client.put(f"/submissions/responses/{failed['id']}/notes", json={"admin_notes": "Replaced fuse"}, headers=admin_headers)
    assert notes.json()["admin_notes"] == "Replaced fuse"

    notifications = client.get("/notifications", headers=admin_headers).json()
    assert len(notifications) == 1
    nid = notifications[0]["id"]

    m1 = client.post(f"/notifications/{nid}/maintenance", json={"priority": "critical"}, headers=admin_headers).json()
    m2 = client.post(f"/notifications/{nid}/maintenance", headers=admin_headers).json()
    assert m1["id"] == m2["id"]
    assert m1["fail_notification_id"] == nid

    first_read = client.post(f"/notifications/{nid}/read", headers=admin_headers).json()
    second_read = client.post(f"/notifications/{nid}/read", headers=admin_headers).json()
    assert first_read["read_at"] == second_read["read_at"]
    assert client.get("/notifications", headers=admin_headers).json() == []
    assert client.post("/notifications/00000000-0000-0000-0000-000000000000/read", headers=admin_headers).status_code == 404

    progressed = client.put(f"/maintenance/{m1['id']}", json={"status": "in_progress"}, headers=admin_headers).json()
    assert progressed["started_at"] is not None
    done = client.put(f"/maintenance/{m1['id']}", json={"status": "completed", "work_performed": "New horn relay"}, headers=admin_headers).json()
    assert done["completed_at"] is not None
    assert done["started_at"] == progressed["started_at"]

    assert client.delete(f"/submissions/{submission_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/submissions/{submission_id}", headers=admin_headers).status_code == 404
    assert client.get("/notifications", params={"unread_only": False}, headers=admin_headers).json() == []


def test_manual_maintenance_crud(client, admin_headers, make_unit):
    unit = make_unit()

    created = client.post(
        "/maintenance",
        json={"forklift_id": str(unit.id), "issue_description": "Chain slack", "estimated_cost": 80},
        headers=admin_headers,
    )
    assert created.status_code == 201
    record = created.json()
    assert record["status"] == "open"
    assert record["is_from_checklist"] is False

    assert len(client.get("/maintenance", params={"status": "open"}, headers=admin_headers).json()) == 1
    assert client.get("/maintenance", params={"status": "completed"}, headers=admin_headers).json() == []

    assert client.delete(f"/maintenance/{record['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/maintenance/{record['id']}", headers=admin_headers).status_code == 404


def test_summary_counts_and_recertification(client, admin_headers, checklist, make_driver):
    unit, questions, _ = checklist
    make_driver("6000", "Due Soon", recertify_date=date.today() + timedelta(days=5))
    make_driver("6001", "Far Off", recertify_date=date.today() + timedelta(days=300))
    _submit(client, unit, questions, ["pass", "pass", "fail"], comments={2: "Brakes soft"})
    _submit(client, unit, questions, ["pass", "pass", "pass"])

    summary = client.get("/admin/summary", headers=admin_headers).json()

    assert summary["active_forklifts"] == 1
    assert summary["active_questions"] == 3
    assert summary["active_drivers"] == 3
    assert summary["unread_notifications"] == 1
    assert summary["submissions_today"] == 2
    assert summary["submissions_with_failures_today"] == 1
    assert [d["driver_name"] for d in summary["recertification_due"]] == ["Due Soon"]


def test_health_and_request_id(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"] == "abc-123"
