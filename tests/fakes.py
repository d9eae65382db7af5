"""
In-memory fakes of the engine store interfaces.

Used by unit tests in place of the SQL stores.
"""
import copy

from src.db.utils import utcnow
from src.engine.models import DEFAULT_MU, Question, Session, SessionMode, StreakState


class InMemoryQuestionStore:
    """Question pool held in a list; records every query it receives."""

    def __init__(self, questions=None):
        self.questions = list(questions or [])
        self.queries = []

    def find_questions(self, lang, category, min_difficulty, max_difficulty, limit):
        self.queries.append((lang, category, min_difficulty, max_difficulty, limit))
        matches = [
            q
            for q in self.questions
            if q.lang == lang and q.category == category and min_difficulty <= q.difficulty <= max_difficulty
        ]
        return matches[:limit]

    def get_question(self, question_id, lang):
        for q in self.questions:
            if q.id == question_id and q.lang == lang:
                return q
        return None

    def count_by_category(self, lang=None):
        counts = {}
        for q in self.questions:
            if lang is None or q.lang == lang:
                counts[q.category] = counts.get(q.category, 0) + 1
        return counts


class InMemorySeenStore:
    def __init__(self):
        self.seen = {}
        self.ttls = []

    def get(self, user_id):
        return set(self.seen.get(user_id, set()))

    def add_all(self, user_id, question_ids, ttl_seconds):
        self.seen.setdefault(user_id, set()).update(question_ids)
        self.ttls.append(ttl_seconds)

    def purge_expired(self):
        return 0


class InMemoryState:
    """Committed relational state shared by every unit of work."""

    def __init__(self, users=()):
        self.users = set(users)
        self.mu = {}
        self.streaks = {}
        self.prefs = {}
        self.sessions = {}
        self.answers = {}

    def snapshot(self):
        return copy.deepcopy(
            {
                "mu": self.mu,
                "streaks": self.streaks,
                "prefs": self.prefs,
                "sessions": self.sessions,
                "answers": self.answers,
            }
        )


class _UserStore:
    def __init__(self, users):
        self.users = users

    def exists(self, user_id):
        return user_id in self.users


class _ProficiencyStore:
    def __init__(self, data):
        self.data = data

    def get(self, user_id):
        return self.data["mu"].get(user_id, DEFAULT_MU)

    def set(self, user_id, mu):
        self.data["mu"][user_id] = mu


class _StreakStore:
    def __init__(self, data):
        self.data = data

    def get(self, user_id):
        current, best = self.data["streaks"].get(user_id, (0, 0))
        return StreakState(current=current, best=best)

    def set(self, user_id, current, best):
        self.data["streaks"][user_id] = (current, best)


class _PreferenceStore:
    def __init__(self, data):
        self.data = data

    def get_many(self, user_id, categories):
        return {
            c: self.data["prefs"][(user_id, c)] for c in categories if (user_id, c) in self.data["prefs"]
        }

    def upsert(self, user_id, category, weight):
        self.data["prefs"][(user_id, category)] = weight


class _SessionStore:
    def __init__(self, data):
        self.data = data

    def create(self, user_id, mode):
        session_id = f"session-{len(self.data['sessions']) + 1}"
        self.data["sessions"][session_id] = Session(id=session_id, user_id=user_id, mode=SessionMode(mode))
        return session_id

    def get(self, session_id):
        return copy.deepcopy(self.data["sessions"].get(session_id))

    def finish(self, session_id, user_id, score, max_streak):
        session = self.data["sessions"].get(session_id)
        if session is None or session.user_id != user_id or session.ended_at is not None:
            return False
        session.ended_at = utcnow()
        session.score = score
        session.max_streak = max_streak
        return True

    def list_for_user(self, user_id, limit=10):
        return [s for s in self.data["sessions"].values() if s.user_id == user_id][:limit]


class _AnswerStore:
    def __init__(self, data):
        self.data = data

    def upsert(self, user_id, question_id, correct):
        self.data["answers"][(user_id, question_id)] = correct

    def list_for_user(self, user_id, limit=None):
        return []

    def has_answered(self, user_id, question_id):
        return (user_id, question_id) in self.data["answers"]


class InMemoryUnitOfWork:
    """
    Works on a copy of the shared state; commit() publishes it.

    Leaving the block without committing discards every write, like a
    database transaction.
    """

    def __init__(self, state, questions, fail_on=None):
        self.state = state
        self.questions = questions
        self.fail_on = fail_on
        self.committed = False

    def __enter__(self):
        self.working = self.state.snapshot()
        self.users = _UserStore(self.state.users)
        self.proficiency = _ProficiencyStore(self.working)
        self.streaks = _StreakStore(self.working)
        self.preferences = _PreferenceStore(self.working)
        self.sessions = _SessionStore(self.working)
        self.answers = _AnswerStore(self.working)
        if self.fail_on:
            store = getattr(self, self.fail_on[0])
            method = self.fail_on[1]

            def fail(*args, **kwargs):
                raise RuntimeError(f"simulated failure in {self.fail_on[0]}.{method}")

            setattr(store, method, fail)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.working = None

    def commit(self):
        for key, value in self.working.items():
            setattr(self.state, key, value)
        self.committed = True

    def rollback(self):
        self.working = self.state.snapshot()


def make_question(qid, difficulty, category="general", lang="en", prompt=None):
    return Question(
        id=qid,
        prompt=prompt or f"Question {qid}?",
        options=("A", "B", "C", "D"),
        correct_index=0,
        difficulty=difficulty,
        category=category,
        lang=lang,
    )

