from __future__ import annotations

from threading import Barrier, Thread

import pytest

from conftest import ALL_CORRECT, AUTHOR, PARTICIPANT
from quiz_engine.core.errors import AccessError, NotFoundError, PreconditionError, StateError, ValidationError
from quiz_engine.core.models import AttemptState, Quiz
from quiz_engine.core.services.attempt_lifecycle import AttemptLifecycle
from quiz_engine.core.services.attempt_store import AttemptStore


@pytest.fixture
def store() -> AttemptStore:
    return AttemptStore()


@pytest.fixture
def lifecycle(repository, store, clock) -> AttemptLifecycle:
    return AttemptLifecycle(repository, store, clock=clock)


def test_start_creates_in_progress_attempt(lifecycle, store, clock):
    attempt_id = lifecycle.start("sample", PARTICIPANT)

    attempt = store.get(attempt_id)
    assert attempt.state is AttemptState.IN_PROGRESS
    assert attempt.started_at == clock.now
    assert attempt.answers == {}
    assert attempt.quiz_id == "sample"
    assert attempt.user_id == PARTICIPANT


def test_each_start_is_a_new_attempt(lifecycle, store):
    first = lifecycle.start("sample", PARTICIPANT)
    second = lifecycle.start("sample", PARTICIPANT)

    assert first != second
    assert store.count() == 2


def test_start_requires_an_existing_published_visible_quiz(repository, lifecycle, quiz):
    with pytest.raises(NotFoundError):
        lifecycle.start("missing", PARTICIPANT)

    draft = Quiz(id="draft", title="Draft", questions=list(quiz.questions), visibility="public")
    repository.create(AUTHOR, draft)
    with pytest.raises(AccessError):
        lifecycle.start("draft", PARTICIPANT)

    private = Quiz(id="private", title="Private", questions=list(quiz.questions))
    repository.create(AUTHOR, private)
    repository.publish("private", AUTHOR)
    with pytest.raises(AccessError):
        lifecycle.start("private", PARTICIPANT)
    assert lifecycle.start("private", AUTHOR)


def test_recording_answers_is_last_write_wins(lifecycle, store):
    attempt_id = lifecycle.start("sample", PARTICIPANT)

    lifecycle.record_answer(attempt_id, "q1", "B")
    lifecycle.record_answer(attempt_id, "q1", "A")

    attempt = store.get(attempt_id)
    assert list(attempt.answers) == ["q1"]
    assert attempt.answers["q1"].value == "A"
    assert attempt.state is AttemptState.IN_PROGRESS


def test_recording_rejects_unknown_questions_and_bad_values(lifecycle, store):
    attempt_id = lifecycle.start("sample", PARTICIPANT)

    with pytest.raises(NotFoundError):
        lifecycle.record_answer(attempt_id, "nope", "A")
    with pytest.raises(ValidationError):
        lifecycle.record_answers(attempt_id, {"q1": "A", "q2": 5})

    assert store.get(attempt_id).answers == {}


def test_voluntary_submit_requires_required_answers(lifecycle, store):
    attempt_id = lifecycle.start("sample", PARTICIPANT)

    with pytest.raises(PreconditionError) as excinfo:
        lifecycle.submit(attempt_id, {"q1": "A", "q2": True, "q3": []})

    assert excinfo.value.missing_question_ids == ["q3", "q4"]
    attempt = store.get(attempt_id)
    assert attempt.state is AttemptState.IN_PROGRESS
    assert attempt.answers == {}


def test_forced_submit_grades_whatever_exists(lifecycle, store):
    attempt_id = lifecycle.start("sample", PARTICIPANT)
    lifecycle.record_answer(attempt_id, "q1", "A")

    result = lifecycle.submit(attempt_id, forced=True)

    assert result.total_score == 1
    assert result.percentage == 25
    attempt = store.get(attempt_id)
    assert attempt.state is AttemptState.SUBMITTED
    assert attempt.forced is True
    assert attempt.answers["q4"].value is None
    assert attempt.answers["q4"].is_correct is False
    assert attempt.answers["q4"].earned_points == 0


def test_submit_merges_recorded_answers_and_records_outcomes(lifecycle, store, clock):
    attempt_id = lifecycle.start("sample", PARTICIPANT)
    lifecycle.record_answer(attempt_id, "q1", "A")
    lifecycle.record_answer(attempt_id, "q4", "wrong")
    clock.advance(42.6)

    result = lifecycle.submit(attempt_id, {"q2": True, "q3": ["B", "A"], "q4": "Hello"})

    assert result.total_score == 4
    attempt = store.get(attempt_id)
    assert attempt.time_taken_seconds == 43
    assert attempt.submitted_at == clock.now
    assert attempt.score == 4
    assert attempt.percentage == 100
    assert attempt.passed is True
    assert attempt.forced is False
    assert attempt.answers["q4"].value == "Hello"
    assert all(entry.is_correct for entry in attempt.answers.values())


def test_second_submit_is_a_state_error(lifecycle, store):
    attempt_id = lifecycle.start("sample", PARTICIPANT)
    lifecycle.submit(attempt_id, ALL_CORRECT)
    before = store.get(attempt_id).answers.copy()

    with pytest.raises(StateError):
        lifecycle.submit(attempt_id, {}, forced=True)

    attempt = store.get(attempt_id)
    assert attempt.score == 4
    assert attempt.forced is False
    assert attempt.answers == before


def test_answer_after_submit_is_a_state_error(lifecycle):
    attempt_id = lifecycle.start("sample", PARTICIPANT)
    lifecycle.submit(attempt_id, ALL_CORRECT)

    with pytest.raises(StateError):
        lifecycle.record_answer(attempt_id, "q1", "B")


def test_required_answers_not_enforced_when_disabled(repository, lifecycle):
    repository.get("sample").quiz.enforce_required_before_submit = False
    attempt_id = lifecycle.start("sample", PARTICIPANT)

    result = lifecycle.submit(attempt_id, {"q1": "A"})

    assert result.total_score == 1


def test_only_the_participant_may_write(lifecycle):
    attempt_id = lifecycle.start("sample", PARTICIPANT)

    with pytest.raises(NotFoundError):
        lifecycle.record_answer(attempt_id, "q1", "A", user_id="someone-else")
    with pytest.raises(NotFoundError):
        lifecycle.submit(attempt_id, ALL_CORRECT, user_id="someone-else")
    with pytest.raises(NotFoundError):
        lifecycle.submit("missing", ALL_CORRECT)


def test_attempt_is_readable_by_participant_and_quiz_owner(lifecycle):
    attempt_id = lifecycle.start("sample", PARTICIPANT)

    snapshot = lifecycle.get_attempt(attempt_id, PARTICIPANT)
    assert lifecycle.get_attempt(attempt_id, AUTHOR).id == attempt_id
    with pytest.raises(AccessError):
        lifecycle.get_attempt(attempt_id, "stranger")

    snapshot.answers["q1"] = None
    assert lifecycle.get_attempt(attempt_id, PARTICIPANT).answers == {}


def test_concurrent_submits_grade_exactly_once(lifecycle, store):
    attempt_id = lifecycle.start("sample", PARTICIPANT)
    barrier = Barrier(2)
    outcomes: list[object] = []

    def submit() -> None:
        barrier.wait()
        try:
            outcomes.append(lifecycle.submit(attempt_id, ALL_CORRECT))
        except StateError as exc:
            outcomes.append(exc)

    threads = [Thread(target=submit) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(outcomes) == 2
    assert sum(isinstance(outcome, StateError) for outcome in outcomes) == 1
    assert store.get(attempt_id).state is AttemptState.SUBMITTED


def test_quiz_summary_uses_submitted_attempts_only(lifecycle, clock):
    first = lifecycle.start("sample", PARTICIPANT)
    second = lifecycle.start("sample", "participant-2")
    lifecycle.start("sample", "participant-3")
    clock.advance(30)
    lifecycle.submit(first, ALL_CORRECT)
    clock.advance(30)
    lifecycle.submit(second, {"q1": "A"}, forced=True)

    attempts, summary = lifecycle.summarize_quiz("sample", AUTHOR)

    assert [attempt.id for attempt in attempts] == [second, first]
    assert summary.attempts == 2
    assert summary.average_score == 3
    assert summary.median_score == 3
    assert summary.pass_rate == 100
    assert summary.average_time == 45

    with pytest.raises(AccessError):
        lifecycle.summarize_quiz("sample", PARTICIPANT)


def test_user_attempt_listing(lifecycle, clock):
    first = lifecycle.start("sample", PARTICIPANT)
    clock.advance(5)
    second = lifecycle.start("sample", PARTICIPANT)
    lifecycle.start("sample", "other")

    assert [attempt.id for attempt in lifecycle.list_attempts_for_user(PARTICIPANT)] == [second, first]


def test_store_removes_every_attempt_of_a_quiz(lifecycle, store):
    first = lifecycle.start("sample", PARTICIPANT)
    second = lifecycle.start("sample", "participant-2")

    assert sorted(store.remove_for_quiz("sample")) == sorted([first, second])
    assert store.count() == 0
    assert store.remove_for_quiz("sample") == []
    with pytest.raises(NotFoundError):
        store.lock_for(first)
