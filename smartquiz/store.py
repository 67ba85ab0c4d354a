"""
Quiz Store

A keyed store for quizzes (and their owners). Handlers only see the
QuizStore interface; create_app picks the backing implementation.

- MemoryQuizStore: process-local dicts behind one lock
- SqlQuizStore: Flask-SQLAlchemy tables, needs an app context
"""
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from smartquiz import db
from smartquiz.errors import InvalidRequest, NotFound
from smartquiz.models import NewQuiz, Quiz, QuizRecord, User, UserRecord, hash_password


def new_id() -> str:
    return str(uuid.uuid4())


class QuizStore:
    """Interface shared by every quiz store."""

    def create(self, new_quiz: NewQuiz) -> Quiz:
        raise NotImplementedError

    def get(self, quiz_id: str) -> Optional[Quiz]:
        raise NotImplementedError

    def list_by_user(self, user_id: str) -> List[Quiz]:
        raise NotImplementedError

    def delete(self, quiz_id: str) -> bool:
        raise NotImplementedError

    def create_user(self, username: str, password: str) -> User:
        raise NotImplementedError

    def get_user(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_user_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def require(self, quiz_id: str) -> Quiz:
        quiz = self.get(quiz_id)
        if quiz is None:
            raise NotFound()
        return quiz


class MemoryQuizStore(QuizStore):
    """Volatile store; contents are lost when the process exits."""

    def __init__(self):
        self._lock = threading.Lock()
        self._quizzes: Dict[str, Quiz] = {}
        self._users: Dict[str, User] = {}

    def create(self, new_quiz: NewQuiz) -> Quiz:
        quiz = Quiz.from_new(new_id(), new_quiz)
        with self._lock:
            self._quizzes[quiz.id] = quiz
        return quiz

    def get(self, quiz_id: str) -> Optional[Quiz]:
        with self._lock:
            return self._quizzes.get(quiz_id)

    def list_by_user(self, user_id: str) -> List[Quiz]:
        with self._lock:
            return [q for q in self._quizzes.values() if q.user_id == user_id]

    def delete(self, quiz_id: str) -> bool:
        with self._lock:
            return self._quizzes.pop(quiz_id, None) is not None

    def create_user(self, username: str, password: str) -> User:
        user = User(id=new_id(), username=username, password_hash=hash_password(password))
        with self._lock:
            if any(u.username == username for u in self._users.values()):
                raise InvalidRequest(f"Username {username!r} is taken")
            self._users[user.id] = user
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return user
        return None


class SqlQuizStore(QuizStore):
    """Durable store over the quizzes/users tables."""

    def create(self, new_quiz: NewQuiz) -> Quiz:
        record = QuizRecord(
            id=new_id(),
            user_id=new_quiz.user_id,
            title=new_quiz.title,
            source_file=new_quiz.source_file,
            questions=[q.to_dict() for q in new_quiz.questions],
            question_count=new_quiz.question_count,
            created_at=datetime.now(timezone.utc),
        )
        db.session.add(record)
        db.session.commit()
        return record.to_quiz()

    def get(self, quiz_id: str) -> Optional[Quiz]:
        record = db.session.get(QuizRecord, quiz_id)
        return record.to_quiz() if record else None

    def list_by_user(self, user_id: str) -> List[Quiz]:
        records = QuizRecord.query.filter_by(user_id=user_id).all()
        return [r.to_quiz() for r in records]

    def delete(self, quiz_id: str) -> bool:
        record = db.session.get(QuizRecord, quiz_id)
        if record is None:
            return False
        db.session.delete(record)
        db.session.commit()
        return True

    def create_user(self, username: str, password: str) -> User:
        if UserRecord.query.filter_by(username=username).first():
            raise InvalidRequest(f"Username {username!r} is taken")
        record = UserRecord(id=new_id(), username=username, password=hash_password(password))
        db.session.add(record)
        db.session.commit()
        return record.to_user()

    def get_user(self, user_id: str) -> Optional[User]:
        record = db.session.get(UserRecord, user_id)
        return record.to_user() if record else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        record = UserRecord.query.filter_by(username=username).first()
        return record.to_user() if record else None


STORES = {
    'memory': MemoryQuizStore,
    'sql': SqlQuizStore,
}


def build_store(kind: str) -> QuizStore:
    try:
        return STORES[(kind or 'memory').strip().lower()]()
    except KeyError:
        raise ValueError(f"Unknown QUIZ_STORE {kind!r}; expected one of {sorted(STORES)}")
