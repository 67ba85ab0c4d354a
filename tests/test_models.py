"""
Model Tests
"""
from datetime import datetime, timezone

import pytest

from conftest import OPTIONS, make_questions
from smartquiz.errors import InvalidQuestionShape, InvalidRequest
from smartquiz.models import NewQuiz, Quiz, QuizQuestion, questions_from_list


def save_payload(**overrides):
    payload = {
        "userId": "user-1",
        "title": "Biology",
        "sourceFile": "Biology.pptx",
        "questions": make_questions(2),
        "questionCount": 2,
    }
    payload.update(overrides)
    return payload


class TestQuizQuestion:
    """Question records built from untrusted data"""

    def test_from_dict(self):
        q = QuizQuestion.from_dict({"question": "Q?", "options": OPTIONS, "answer": "Rome"})
        assert q.question == "Q?"
        assert q.options == OPTIONS
        assert q.answer == "Rome"
        assert q.to_dict() == {"question": "Q?", "options": OPTIONS, "answer": "Rome"}

    def test_options_are_copied(self):
        options = list(OPTIONS)
        q = QuizQuestion.from_dict({"question": "Q?", "options": options, "answer": "Rome"})
        options.append("Madrid")
        assert len(q.options) == 4

    def test_non_string_options_rejected(self):
        with pytest.raises(InvalidQuestionShape):
            QuizQuestion.from_dict({"question": "Q?", "options": [1, 2, 3, 4], "answer": "1"})

    def test_strict_answers(self):
        item = {"question": "Q?", "options": OPTIONS, "answer": "Madrid"}
        assert QuizQuestion.from_dict(item).answer == "Madrid"
        with pytest.raises(InvalidQuestionShape):
            QuizQuestion.from_dict(item, strict_answers=True)

    def test_questions_from_list_requires_list(self):
        with pytest.raises(InvalidQuestionShape):
            questions_from_list({"question": "Q?"})
        assert questions_from_list([]) == []


class TestNewQuiz:
    """Save request validation"""

    def test_valid_payload(self):
        quiz = NewQuiz.from_dict(save_payload())
        assert quiz.user_id == "user-1"
        assert quiz.source_file == "Biology.pptx"
        assert quiz.question_count == 2
        assert len(quiz.questions) == 2

    @pytest.mark.parametrize("key", ["userId", "title", "sourceFile"])
    def test_missing_required_field(self, key):
        payload = save_payload()
        del payload[key]
        with pytest.raises(InvalidRequest) as exc:
            NewQuiz.from_dict(payload)
        assert key in exc.value.message

    @pytest.mark.parametrize("count", ["2", 2.5, None, True])
    def test_question_count_must_be_int(self, count):
        with pytest.raises(InvalidRequest):
            NewQuiz.from_dict(save_payload(questionCount=count))

    def test_bad_question_shape(self):
        questions = make_questions(2)
        questions[1]["options"] = OPTIONS[:2]
        with pytest.raises(InvalidRequest):
            NewQuiz.from_dict(save_payload(questions=questions))

    def test_not_an_object(self):
        with pytest.raises(InvalidRequest):
            NewQuiz.from_dict(["not", "a", "dict"])


class TestQuiz:
    """Stored quiz serialization"""

    def test_to_dict_uses_api_keys(self):
        created = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        quiz = Quiz.from_new("quiz-1", NewQuiz.from_dict(save_payload()), created_at=created)
        data = quiz.to_dict()
        assert data == {
            "id": "quiz-1",
            "userId": "user-1",
            "title": "Biology",
            "sourceFile": "Biology.pptx",
            "questions": make_questions(2),
            "questionCount": 2,
            "createdAt": "2026-01-02T03:04:05+00:00",
        }

    def test_from_new_stamps_time(self):
        quiz = Quiz.from_new("quiz-1", NewQuiz.from_dict(save_payload()))
        assert quiz.created_at.tzinfo is not None
