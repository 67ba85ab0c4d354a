"""
Quiz Models

Domain records:
- QuizQuestion: one multiple-choice item (exactly 4 options)
- NewQuiz: a quiz as submitted for saving (no id, no timestamp yet)
- Quiz: a stored quiz, immutable after creation
- User: owner record (authentication lives with the identity provider)

SQL tables backing the durable store:
- UserRecord, QuizRecord
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from werkzeug.security import generate_password_hash, check_password_hash

from smartquiz import db
from smartquiz.errors import InvalidQuestionShape, InvalidRequest

OPTION_COUNT = 4


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: List[str]
    answer: str

    @classmethod
    def from_dict(cls, obj: Any, strict_answers: bool = False) -> "QuizQuestion":
        """
        Build a question from an untrusted payload.

        Raises InvalidQuestionShape when a required field is missing or
        options is not a list of exactly four strings. With strict_answers
        the answer must also be one of the options.
        """
        if not isinstance(obj, dict):
            raise InvalidQuestionShape("Question entry is not an object")
        question = obj.get("question")
        options = obj.get("options")
        answer = obj.get("answer")
        if not question or not isinstance(question, str):
            raise InvalidQuestionShape("Question is missing its text")
        if not isinstance(options, list) or len(options) != OPTION_COUNT:
            raise InvalidQuestionShape(f"Question must have exactly {OPTION_COUNT} options")
        if not all(isinstance(o, str) for o in options):
            raise InvalidQuestionShape("Question options must be strings")
        if not answer or not isinstance(answer, str):
            raise InvalidQuestionShape("Question is missing its answer")
        if strict_answers and answer not in options:
            raise InvalidQuestionShape(f"Answer {answer!r} is not one of the options")
        return cls(question=question, options=list(options), answer=answer)

    def to_dict(self) -> Dict[str, Any]:
        return {"question": self.question, "options": list(self.options), "answer": self.answer}


def questions_from_list(items: Any, strict_answers: bool = False) -> List[QuizQuestion]:
    if not isinstance(items, list):
        raise InvalidQuestionShape("Questions must be a list")
    return [QuizQuestion.from_dict(item, strict_answers=strict_answers) for item in items]


@dataclass(frozen=True)
class NewQuiz:
    user_id: str
    title: str
    source_file: str
    questions: List[QuizQuestion] = field(default_factory=list)
    question_count: int = 0

    @classmethod
    def from_dict(cls, payload: Any) -> "NewQuiz":
        """Validate a save request body (camelCase keys, as the UI sends them)."""
        if not isinstance(payload, dict):
            raise InvalidRequest("Request body must be a JSON object")
        for key in ("userId", "title", "sourceFile"):
            value = payload.get(key)
            if not isinstance(value, str) or not value.strip():
                raise InvalidRequest(f"{key} is required")
        count = payload.get("questionCount")
        if isinstance(count, bool) or not isinstance(count, int):
            raise InvalidRequest("questionCount must be an integer")
        try:
            questions = questions_from_list(payload.get("questions"))
        except InvalidQuestionShape as e:
            raise InvalidRequest(e.message)
        return cls(
            user_id=payload["userId"],
            title=payload["title"],
            source_file=payload["sourceFile"],
            questions=questions,
            question_count=count,
        )


@dataclass(frozen=True)
class Quiz:
    id: str
    user_id: str
    title: str
    source_file: str
    questions: List[QuizQuestion]
    question_count: int
    created_at: datetime

    @classmethod
    def from_new(cls, quiz_id: str, new_quiz: NewQuiz, created_at: Optional[datetime] = None) -> "Quiz":
        return cls(
            id=quiz_id,
            user_id=new_quiz.user_id,
            title=new_quiz.title,
            source_file=new_quiz.source_file,
            questions=list(new_quiz.questions),
            question_count=new_quiz.question_count,
            created_at=created_at or datetime.now(timezone.utc),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert quiz to dictionary for API responses"""
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "sourceFile": self.source_file,
            "questions": [q.to_dict() for q in self.questions],
            "questionCount": self.question_count,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class User:
    id: str
    username: str
    password_hash: str

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


class UserRecord(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)

    def to_user(self) -> User:
        return User(id=self.id, username=self.username, password_hash=self.password)


class QuizRecord(db.Model):
    __tablename__ = 'quizzes'

    id = db.Column(db.String(36), primary_key=True)
    # No foreign key: orphaned quizzes are allowed
    user_id = db.Column(db.String(100), nullable=False, index=True)
    title = db.Column(db.Text, nullable=False)
    source_file = db.Column(db.Text, nullable=False)
    questions = db.Column(db.JSON, nullable=False)
    question_count = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False,
                           default=lambda: datetime.now(timezone.utc))

    def to_quiz(self) -> Quiz:
        created = self.created_at
        # SQLite drops tzinfo on the way back
        if created is not None and created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return Quiz(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            source_file=self.source_file,
            questions=[QuizQuestion(**q) for q in (self.questions or [])],
            question_count=self.question_count,
            created_at=created,
        )
