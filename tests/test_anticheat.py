import uuid

import pytest

from rewards.assessment import AssessmentRegistry, AssessmentSession, FocusGuard, FocusSurface, GuardState
from rewards.assessment.questions import QUESTION_POOL


def test_unguarded_focus_loss_is_only_suspected():
    guard = FocusGuard()

    assert guard.focus_lost(FocusSurface.OTHER) is False
    assert guard.state is GuardState.SUSPECTED

    guard.focus_regained()
    assert guard.state is GuardState.ACTIVE


@pytest.mark.parametrize("surface", [FocusSurface.QUIZ, FocusSurface.TASKS])
def test_guarded_focus_loss_locks_once(surface):
    calls = []
    guard = FocusGuard(on_lock=calls.append)

    assert guard.focus_lost(surface) is True
    assert guard.locked
    assert guard.focus_lost(surface) is False
    assert guard.focus_lost(FocusSurface.OTHER) is False
    assert calls == [surface]


def test_suspected_student_locks_on_guarded_surface():
    guard = FocusGuard()
    guard.focus_lost(FocusSurface.OTHER)

    assert guard.focus_lost(FocusSurface.TASKS) is True
    assert guard.state is GuardState.LOCKED


def test_lock_survives_focus_regained_until_reset():
    guard = FocusGuard(locked=True)

    guard.focus_regained()
    assert guard.locked

    guard.reset()
    assert guard.state is GuardState.ACTIVE


def test_failed_lock_side_effects_leave_guard_unlocked():
    def explode(surface):
        raise RuntimeError("store unavailable")

    guard = FocusGuard(on_lock=explode)
    with pytest.raises(RuntimeError):
        guard.focus_lost(FocusSurface.QUIZ)
    assert not guard.locked


def test_registry_tracks_and_aborts_assessments(clock):
    registry = AssessmentRegistry(clock=clock)
    student_id = uuid.uuid4()
    assessment = AssessmentSession(QUESTION_POOL[:3], clock=clock)

    registry.begin(student_id, assessment)
    assert registry.active_assessment(student_id) is assessment
    assert len(registry) == 1

    assert registry.abort(student_id) is True
    assert assessment.aborted
    assert registry.active_assessment(student_id) is None
    assert registry.abort(student_id) is False


def test_begin_replaces_previous_attempt(clock):
    registry = AssessmentRegistry(clock=clock)
    student_id = uuid.uuid4()
    first = AssessmentSession(QUESTION_POOL[:3], clock=clock)
    second = AssessmentSession(QUESTION_POOL[1:4], clock=clock)

    registry.begin(student_id, first)
    registry.begin(student_id, second)

    assert first.aborted
    assert registry.active_assessment(student_id) is second


def test_context_follows_stored_lock_flag(clock):
    registry = AssessmentRegistry(clock=clock)
    student_id = uuid.uuid4()

    assert registry.context_for(student_id, locked=True).guard.locked
    assert not registry.context_for(student_id, locked=False).guard.locked


def test_purge_discards_only_stale_assessments(clock):
    registry = AssessmentRegistry(clock=clock)
    stale, fresh = uuid.uuid4(), uuid.uuid4()
    registry.begin(stale, AssessmentSession(QUESTION_POOL[:3], clock=clock))
    clock.advance(1500)
    registry.begin(fresh, AssessmentSession(QUESTION_POOL[:3], clock=clock))
    clock.advance(301)

    assert registry.purge_abandoned(1800) == 1
    assert registry.active_assessment(stale) is None
    assert registry.active_assessment(fresh) is not None
