import re

import pytest
from httpx import AsyncClient

from rewards.models import Student, TaskSubmission, UserRole

from .conftest import PASSWORD

ANSWER = "Digital automation and solar energy improve campus efficiency and impact"


@pytest.mark.asyncio
async def test_healthcheck(client: AsyncClient):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client: AsyncClient):
    response = await client.get("/api/v1/vouchers")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_sign_in_and_read_profile(client: AsyncClient, make_user):
    make_user(email="omar@actvet.gov.ae", points=120)

    response = await client.post("/api/v1/auth/sign-in", json={"email": "omar@actvet.gov.ae", "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    profile = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert profile.status_code == 200
    body = profile.json()
    assert body["role"] == "Student"
    assert body["points"] == 120
    assert "subject" not in body


@pytest.mark.asyncio
async def test_sign_in_outside_domain_is_forbidden(client: AsyncClient):
    response = await client.post("/api/v1/auth/sign-in", json={"email": "someone@gmail.com", "password": "x"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_provisions_accounts_by_role(client: AsyncClient, make_user, make_class, headers):
    admin = make_user(UserRole.ADMIN)
    make_class(10, "A")

    teacher = await client.post(
        "/api/v1/users",
        json={
            "role": "Teacher",
            "name": "Ms Noor",
            "email": "noor@actvet.gov.ae",
            "password": "long-enough-pw",
            "subject": "Chemistry",
            "assigned_classes": ["10-A"],
        },
        headers=headers(admin),
    )
    assert teacher.status_code == 201
    assert teacher.json()["assigned_classes"] == ["10-A"]

    bad_role = await client.post(
        "/api/v1/users",
        json={"role": "Janitor", "name": "X", "email": "x@actvet.gov.ae", "password": "long-enough-pw"},
        headers=headers(admin),
    )
    assert bad_role.status_code == 422

    student = make_user()
    forbidden = await client.post(
        "/api/v1/users",
        json={"role": "Staff", "name": "Y", "email": "y@actvet.gov.ae", "password": "long-enough-pw"},
        headers=headers(student),
    )
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_redeem_and_fulfil_voucher(client: AsyncClient, session, make_user, make_voucher, headers):
    student = make_user(points=300)
    staff = make_user(UserRole.STAFF)
    voucher = make_voucher(point_cost=250)

    response = await client.post(
        "/api/v1/redemptions", json={"voucher_id": str(voucher.voucher_id)}, headers=headers(student)
    )
    assert response.status_code == 201
    receipt = response.json()
    assert receipt["available_balance"] == 50
    assert receipt["redemption"]["status"] == "Pending"
    code = receipt["redemption"]["code"]
    assert re.fullmatch(r"[A-Z0-9]{6}", code)

    again = await client.post(
        "/api/v1/redemptions", json={"voucher_id": str(voucher.voucher_id)}, headers=headers(student)
    )
    assert again.status_code == 400

    found = await client.get(f"/api/v1/redemptions/lookup/{code.lower()}", headers=headers(staff))
    assert found.status_code == 200
    redemption_id = found.json()["redemption_id"]

    denied = await client.post(
        f"/api/v1/redemptions/{redemption_id}/process", json={"status": "Used"}, headers=headers(student)
    )
    assert denied.status_code == 403

    used = await client.post(
        f"/api/v1/redemptions/{redemption_id}/process", json={"status": "Used"}, headers=headers(staff)
    )
    assert used.status_code == 200
    assert used.json()["status"] == "Used"

    twice = await client.post(
        f"/api/v1/redemptions/{redemption_id}/process", json={"status": "Rejected"}, headers=headers(staff)
    )
    assert twice.status_code == 409

    mine = await client.get("/api/v1/redemptions", headers=headers(student))
    assert [r["code"] for r in mine.json()] == [code]


@pytest.mark.asyncio
async def test_assessment_flow_verifies_and_ranks(client: AsyncClient, session, make_user, headers):
    student = make_user(points=0)
    auth = headers(student)

    ranks = await client.get("/api/v1/students/me/ranks", headers=auth)
    assert ranks.json() == {"campus_rank": "?", "class_rank": "?"}

    first = await client.post("/api/v1/assessment/start", headers=auth)
    assert first.status_code == 200
    assert first.json()["step"] == 0

    short = await client.post("/api/v1/assessment/answers", json={"answer": "too short"}, headers=auth)
    assert short.status_code == 422

    result = None
    for _ in range(3):
        result = await client.post("/api/v1/assessment/answers", json={"answer": ANSWER}, headers=auth)
        assert result.status_code == 200
    body = result.json()
    assert body["completed"] is True
    assert body["next_question"] is None

    student = session.get(Student, student.id)
    assert student.is_innovator_verified
    assert student.points == body["total_points"]

    ranks = await client.get("/api/v1/students/me/ranks", headers=auth)
    assert ranks.json()["campus_rank"] == 1

    retake = await client.post("/api/v1/assessment/start", headers=auth)
    assert retake.status_code == 409


@pytest.mark.asyncio
async def test_focus_loss_during_quiz_locks_until_unlocked(client: AsyncClient, make_user, headers):
    student = make_user()
    teacher = make_user(UserRole.TEACHER)

    await client.post("/api/v1/assessment/start", headers=headers(student))
    locked = await client.post("/api/v1/assessment/focus-lost", json={"surface": "quiz"}, headers=headers(student))
    assert locked.json() == {"state": "Locked", "locked_now": True}

    blocked = await client.post("/api/v1/assessment/start", headers=headers(student))
    assert blocked.status_code == 403

    inbox = await client.get("/api/v1/notifications", headers=headers(teacher))
    assert [n["kind"] for n in inbox.json()] == ["QUIZ_VIOLATION"]

    lockouts = await client.get("/api/v1/assessment/lockouts", headers=headers(teacher))
    assert [entry["student_id"] for entry in lockouts.json()] == [str(student.id)]

    unlocked = await client.post(f"/api/v1/assessment/lockouts/{student.id}/unlock", headers=headers(teacher))
    assert unlocked.status_code == 200
    assert unlocked.json()["is_quiz_locked"] is False

    restart = await client.post("/api/v1/assessment/start", headers=headers(student))
    assert restart.status_code == 200


@pytest.mark.asyncio
async def test_task_submission_and_grading(client: AsyncClient, session, make_user, headers):
    teacher = make_user(UserRole.TEACHER)
    student = make_user(grade=10, points=0)

    created = await client.post(
        "/api/v1/tasks",
        json={"title": "Wind turbine", "subject": "Physics", "grade": 10, "points": 25, "max_score": 10},
        headers=headers(teacher),
    )
    assert created.status_code == 201
    task_id = created.json()["task_id"]

    mine = await client.get("/api/v1/tasks/mine", headers=headers(student))
    assert [t["task_id"] for t in mine.json()] == [task_id]

    submitted = await client.post(
        f"/api/v1/tasks/{task_id}/submissions", json={"answer_text": "Blade pitch notes"}, headers=headers(student)
    )
    assert submitted.status_code == 201
    submission_id = submitted.json()["submission_id"]

    duplicate = await client.post(
        f"/api/v1/tasks/{task_id}/submissions", json={"answer_text": "Again"}, headers=headers(student)
    )
    assert duplicate.status_code == 409

    frozen = await client.patch(f"/api/v1/tasks/{task_id}", json={"points": 50}, headers=headers(teacher))
    assert frozen.status_code == 409

    approved = await client.post(
        f"/api/v1/submissions/{submission_id}/approve", json={"score": 7}, headers=headers(teacher)
    )
    assert approved.status_code == 200
    assert approved.json()["awarded_points"] == 18

    regrade = await client.post(
        f"/api/v1/submissions/{submission_id}/approve", json={"score": 10}, headers=headers(teacher)
    )
    assert regrade.status_code == 409
    assert session.get(Student, student.id).points == 18
    assert session.query(TaskSubmission).count() == 1

    history = await client.get("/api/v1/points/history", headers=headers(student))
    assert [h["amount"] for h in history.json()] == [18]


@pytest.mark.asyncio
async def test_admin_adjusts_and_reconciles(client: AsyncClient, make_user, headers):
    admin = make_user(UserRole.ADMIN)
    student = make_user(points=100)

    negative = await client.post(
        "/api/v1/points/adjustments",
        json={"student_id": str(student.id), "delta": -500, "reason": "Too much"},
        headers=headers(admin),
    )
    assert negative.status_code == 400

    bonus = await client.post(
        "/api/v1/points/adjustments",
        json={"student_id": str(student.id), "delta": 40, "reason": "Science fair"},
        headers=headers(admin),
    )
    assert bonus.status_code == 201
    assert bonus.json()["event_type"] == "Awarded"

    report = await client.get(f"/api/v1/points/reconcile/{student.id}", headers=headers(admin))
    assert report.json() == {"balance": 140, "initial_points": 100, "history_total": 40, "drift": 0}


@pytest.mark.asyncio
async def test_leaderboard_lists_verified_students_only(client: AsyncClient, make_user, headers):
    viewer = make_user()
    make_user(name="Verified", points=700, is_innovator_verified=True)
    make_user(name="Unverified", points=9000)

    response = await client.get("/api/v1/leaderboard", headers=headers(viewer))

    assert [(e["rank"], e["name"], e["points"]) for e in response.json()] == [(1, "Verified", 700)]


@pytest.mark.asyncio
async def test_password_change_requires_matching_confirmation(client: AsyncClient, make_user, headers):
    student = make_user(email="huda@actvet.gov.ae")

    mismatch = await client.post(
        "/api/v1/auth/password",
        json={"current_password": PASSWORD, "new_password": "solar-panel-2025", "confirm_password": "other-value-1"},
        headers=headers(student),
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["detail"] == "Passwords do not match."

    changed = await client.post(
        "/api/v1/auth/password",
        json={
            "current_password": PASSWORD,
            "new_password": "solar-panel-2025",
            "confirm_password": "solar-panel-2025",
        },
        headers=headers(student),
    )
    assert changed.status_code == 204

    old = await client.post("/api/v1/auth/sign-in", json={"email": "huda@actvet.gov.ae", "password": PASSWORD})
    assert old.status_code == 401
    new = await client.post(
        "/api/v1/auth/sign-in", json={"email": "huda@actvet.gov.ae", "password": "solar-panel-2025"}
    )
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_admin_edits_accounts_and_classes(client: AsyncClient, make_user, make_class, headers):
    admin = make_user(UserRole.ADMIN)
    make_class(10, "A")
    student = make_user(grade=10, class_id="10-A")

    edited = await client.patch(
        f"/api/v1/users/{student.id}",
        json={"role": "Student", "name": "Layla Hassan"},
        headers=headers(admin),
    )
    assert edited.status_code == 200
    assert edited.json()["name"] == "Layla Hassan"
    assert edited.json()["class_id"] == "10-A"

    wrong_role = await client.patch(
        f"/api/v1/users/{student.id}", json={"role": "Staff", "name": "Layla"}, headers=headers(admin)
    )
    assert wrong_role.status_code == 409

    renamed = await client.patch("/api/v1/classes/10-A", json={"name": "D"}, headers=headers(admin))
    assert renamed.status_code == 200
    assert renamed.json()["id"] == "10-D"

    profile = await client.get("/api/v1/auth/me", headers=headers(student))
    assert profile.json()["class_id"] == "10-D"

    forbidden = await client.patch("/api/v1/classes/10-D", json={"name": "E"}, headers=headers(student))
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_timed_task_must_be_started(client: AsyncClient, make_user, make_task, headers):
    teacher = make_user(UserRole.TEACHER)
    student = make_user(grade=10)
    task = make_task(teacher, time_limit_minutes=20)

    unstarted = await client.post(
        f"/api/v1/tasks/{task.task_id}/submissions", json={"answer_text": "Notes"}, headers=headers(student)
    )
    assert unstarted.status_code == 400

    started = await client.post(f"/api/v1/tasks/{task.task_id}/start", headers=headers(student))
    assert started.status_code == 200
    assert started.json()["expires_at"] is not None

    submitted = await client.post(
        f"/api/v1/tasks/{task.task_id}/submissions", json={"answer_text": "Notes"}, headers=headers(student)
    )
    assert submitted.status_code == 201
