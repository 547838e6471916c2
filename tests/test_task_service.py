import base64
from datetime import timedelta

import pytest

from rewards.core.config import get_settings
from rewards.models import UserRole
from rewards.services import task_service
from rewards.services.task_service import TaskRuleViolation
from rewards.utils.datetime import utcnow


@pytest.fixture
def teacher(make_user):
    return make_user(UserRole.TEACHER, subject="Physics")


@pytest.fixture
def student(make_user, make_class):
    make_class(10, "A")
    return make_user(grade=10, class_id="10-A")


def test_submission_is_accepted_once(session, teacher, student, make_task):
    task = make_task(teacher)

    submission = task_service.submit_task(session, student=student, task_id=task.task_id, answer_text="Prototype notes")
    session.commit()
    assert submission.max_score == 10
    assert not submission.ai_flagged

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.submit_task(session, student=student, task_id=task.task_id, answer_text="Second try")
    assert excinfo.value.status_code == 409


def test_generated_phrases_flag_the_submission(session, teacher, student, make_task):
    task = make_task(teacher)

    submission = task_service.submit_task(
        session, student=student, task_id=task.task_id, answer_text="In conclusion, solar power is great."
    )
    assert submission.ai_flagged


def test_deadline_is_enforced(session, teacher, student, make_task):
    task = make_task(teacher, deadline=utcnow() - timedelta(hours=1))

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.submit_task(session, student=student, task_id=task.task_id, answer_text="Late work")
    assert excinfo.value.status_code == 400


def test_locked_student_cannot_submit(session, teacher, student, make_task):
    task = make_task(teacher)
    student.is_quiz_locked = True
    session.commit()

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.submit_task(session, student=student, task_id=task.task_id, answer_text="Hand-in")
    assert excinfo.value.status_code == 403


def test_task_for_other_class_is_refused(session, teacher, student, make_task, make_class):
    make_class(10, "B")
    task = make_task(teacher, class_id="10-B")

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.submit_task(session, student=student, task_id=task.task_id, answer_text="Hand-in")
    assert excinfo.value.status_code == 403


def test_empty_submission_is_refused(session, teacher, student, make_task):
    task = make_task(teacher)

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.submit_task(session, student=student, task_id=task.task_id, answer_text="   ")
    assert excinfo.value.status_code == 422


def test_attachment_is_decoded_and_capped(monkeypatch, session, teacher, student, make_task):
    monkeypatch.setattr(get_settings(), "attachment_max_bytes", 8)
    task = make_task(teacher)

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.submit_task(
            session, student=student, task_id=task.task_id, attachment=base64.b64encode(b"123456789").decode()
        )
    assert excinfo.value.status_code == 413

    submission = task_service.submit_task(
        session,
        student=student,
        task_id=task.task_id,
        attachment_name="sketch.png",
        attachment=base64.b64encode(b"12345678").decode(),
    )
    assert submission.attachment_data == b"12345678"
    assert submission.attachment_name == "sketch.png"


def test_invalid_base64_is_refused():
    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.decode_attachment("not base64!")
    assert excinfo.value.status_code == 422


def test_tasks_for_student_match_grade_and_class(session, teacher, student, make_task, make_class):
    make_class(10, "B")
    open_task = make_task(teacher, title="Everyone in grade 10")
    own_class = make_task(teacher, title="10-A only", class_id="10-A")
    make_task(teacher, title="10-B only", class_id="10-B")
    make_task(teacher, title="Grade 11", grade=11)

    titles = {t.title for t in task_service.tasks_for_student(session, student)}
    assert titles == {open_task.title, own_class.title}


def test_task_is_frozen_once_submitted(session, teacher, student, make_task):
    task = make_task(teacher)
    task_service.update_task(session, task_id=task.task_id, actor=teacher, changes={"points": 150})
    task_service.submit_task(session, student=student, task_id=task.task_id, answer_text="Prototype notes")
    session.commit()

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.update_task(session, task_id=task.task_id, actor=teacher, changes={"points": 10})
    assert excinfo.value.status_code == 409
    assert task.points == 150


def test_only_owner_or_admin_manages_task(session, teacher, make_user, make_task):
    other = make_user(UserRole.TEACHER)
    admin = make_user(UserRole.ADMIN)
    task = make_task(teacher)

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.delete_task(session, task_id=task.task_id, actor=other)
    assert excinfo.value.status_code == 403

    task_service.delete_task(session, task_id=task.task_id, actor=admin)
    session.commit()
    with pytest.raises(TaskRuleViolation):
        task_service.get_task(session, task.task_id)


def test_timed_task_refuses_submission_after_limit(session, teacher, student, make_task):
    task = make_task(teacher, time_limit_minutes=30)
    started = utcnow() - timedelta(hours=1)

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.submit_task(session, student=student, task_id=task.task_id, answer_text="Rushed notes")
    assert "Start this timed task" in excinfo.value.detail

    attempt = task_service.start_task(session, student=student, task_id=task.task_id, now=started)
    session.commit()
    assert attempt.expires_at == started + timedelta(minutes=30)

    on_time = started + timedelta(minutes=30)
    late = on_time + timedelta(seconds=1)
    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.submit_task(
            session, student=student, task_id=task.task_id, answer_text="Late notes", now=late
        )
    assert excinfo.value.status_code == 400
    assert "time limit" in excinfo.value.detail

    submission = task_service.submit_task(
        session, student=student, task_id=task.task_id, answer_text="Final notes", now=on_time
    )
    assert submission.submitted_at == on_time


def test_restarting_keeps_the_original_countdown(session, teacher, student, make_task):
    task = make_task(teacher, time_limit_minutes=10)
    first_start = utcnow() - timedelta(minutes=5)

    first = task_service.start_task(session, student=student, task_id=task.task_id, now=first_start)
    again = task_service.start_task(session, student=student, task_id=task.task_id)

    assert again is first
    assert again.started_at == first_start


def test_untimed_task_needs_no_start(session, teacher, student, make_task):
    opened = make_task(teacher, title="Reading log")
    assert task_service.start_task(session, student=student, task_id=opened.task_id).expires_at is None

    task = make_task(teacher)
    task_service.submit_task(session, student=student, task_id=task.task_id, answer_text="Prototype notes")
    session.commit()

    with pytest.raises(TaskRuleViolation):
        task_service.start_task(session, student=student, task_id=task.task_id)


def test_locked_student_cannot_start_task(session, teacher, make_user, make_task):
    locked = make_user(grade=10, is_quiz_locked=True)
    task = make_task(teacher, time_limit_minutes=10)

    with pytest.raises(TaskRuleViolation) as excinfo:
        task_service.start_task(session, student=locked, task_id=task.task_id)
    assert excinfo.value.status_code == 403
