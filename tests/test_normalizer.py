from __future__ import annotations

from collections import Counter
from dataclasses import replace
import random

from conftest import ALL_CORRECT
from quiz_engine.core.models import CHOICE_QUESTION_CLASSES
from quiz_engine.core.normalizer import normalize_quiz, shuffle_items
from quiz_engine.core.scoring import score_quiz


def _by_question(result):
    return sorted(
        ((item.question_id, item.is_correct, item.score, item.max_score) for item in result.per_question)
    )


def test_no_shuffle_flags_keeps_order(quiz):
    normalized = normalize_quiz(quiz, random.Random(1))

    assert normalized == quiz
    assert normalized is not quiz


def test_question_shuffle_keeps_the_same_ids(quiz):
    shuffling = replace(quiz, shuffle_questions=True)
    original_ids = [q.id for q in quiz.questions]

    orders = set()
    for seed in range(20):
        normalized = normalize_quiz(shuffling, random.Random(seed))
        ids = [q.id for q in normalized.questions]
        assert sorted(ids) == sorted(original_ids)
        orders.add(tuple(ids))

    assert len(orders) > 1
    assert [q.id for q in shuffling.questions] == original_ids


def test_option_shuffle_keeps_option_text(quiz):
    shuffling = replace(quiz, shuffle_options=True)
    before = {q.id: list(q.options) for q in quiz.questions if isinstance(q, CHOICE_QUESTION_CLASSES)}

    for seed in range(10):
        normalized = normalize_quiz(shuffling, random.Random(seed))
        assert [q.id for q in normalized.questions] == [q.id for q in quiz.questions]
        for question in normalized.questions:
            if isinstance(question, CHOICE_QUESTION_CLASSES):
                assert Counter(question.options) == Counter(before[question.id])

    after = {q.id: list(q.options) for q in quiz.questions if isinstance(q, CHOICE_QUESTION_CLASSES)}
    assert after == before


def test_normalizing_never_changes_the_score(quiz):
    shuffling = replace(quiz, shuffle_questions=True, shuffle_options=True)
    partial = {"q1": "B", "q3": ["A", "B"], "q4": " HELLO "}

    for answers in (ALL_CORRECT, partial, {}):
        expected = score_quiz(shuffling, answers)
        for seed in range(10):
            actual = score_quiz(normalize_quiz(shuffling, random.Random(seed)), answers)
            assert actual.total_score == expected.total_score
            assert actual.max_score == expected.max_score
            assert actual.percentage == expected.percentage
            assert actual.passed == expected.passed
            assert _by_question(actual) == _by_question(expected)


def test_shuffle_items_returns_a_copy():
    items = [1, 2, 3, 4]

    shuffled = shuffle_items(items, random.Random(3))

    assert sorted(shuffled) == items
    assert items == [1, 2, 3, 4]


def test_shuffle_items_is_roughly_uniform():
    rng = random.Random(1234)
    counts = Counter(tuple(shuffle_items([0, 1, 2], rng)) for _ in range(6000))

    assert len(counts) == 6
    assert all(800 < count < 1200 for count in counts.values())
