"""
Unit tests for SessionOrchestrator.

Tests:
- Session start, mode validation and unknown users
- Finishing applies mu, streak, preferences, history and seen-set
- Error taxonomy (not found / foreign / already finished / malformed)
- A failure inside the transaction leaves no partial writes
"""

import pytest

from src.engine.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from src.engine.session_orchestrator import SessionOrchestrator
from tests.fakes import InMemorySeenStore, InMemoryUnitOfWork


class BrokenSeenStore(InMemorySeenStore):
    def add_all(self, user_id, question_ids, ttl_seconds):
        raise ConnectionError("seen-set backend unavailable")


class TestStartSession:
    def test_returns_active_session(self, orchestrator, state):
        session_id = orchestrator.start_session("u1", "run")

        assert state.sessions[session_id].user_id == "u1"
        assert not state.sessions[session_id].is_finished

    def test_unknown_mode_rejected(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.start_session("u1", "marathon")

    def test_unregistered_user_rejected(self, orchestrator, state):
        with pytest.raises(NotFoundError):
            orchestrator.start_session("ghost", "run")
        assert state.sessions == {}


class TestFinishSession:
    def test_applies_all_outcomes(self, orchestrator, state, seen_store, sample_results):
        session_id = orchestrator.start_session("u1", "run")

        result = orchestrator.finish_session(session_id, "u1", sample_results)

        # 3.0 +0.3 +0.2 -0.1 +0.3 +0.2
        assert result.new_mu == pytest.approx(3.9)
        assert result.score == 1585
        assert result.max_streak == 2
        assert result.best_streak == 2
        assert result.topic_weights == pytest.approx({"general": 0.0, "science": 0.2})

        assert state.mu["u1"] == pytest.approx(3.9)
        assert state.streaks["u1"] == (0, 2)
        assert state.answers[("u1", "gen-4-0")] is False
        assert state.sessions[session_id].is_finished
        assert state.sessions[session_id].score == 1585
        assert seen_store.get("u1") == {q["questionId"] for q in sample_results}

    def test_five_fast_correct_answers(self, orchestrator, state):
        session_id = orchestrator.start_session("u1", "run")
        results = [
            {"questionId": f"q{i}", "correct": True, "category": "general", "timeMs": 1000}
            for i in range(5)
        ]

        result = orchestrator.finish_session(session_id, "u1", results)

        assert result.new_mu == pytest.approx(4.5)
        assert state.streaks["u1"] == (0, 5)

    def test_client_totals_are_stored(self, orchestrator, state, sample_results):
        session_id = orchestrator.start_session("u1", "endless")

        result = orchestrator.finish_session(session_id, "u1", sample_results, final_score=1200, max_streak=4)

        assert result.score == 1200
        assert result.best_streak == 4
        assert state.sessions[session_id].max_streak == 4

    def test_best_streak_survives_worse_session(self, orchestrator, state, sample_results):
        state.streaks["u1"] = (0, 9)
        session_id = orchestrator.start_session("u1", "run")

        result = orchestrator.finish_session(session_id, "u1", sample_results)

        assert result.best_streak == 9
        assert state.streaks["u1"] == (0, 9)

    def test_empty_session(self, orchestrator, state, seen_store):
        session_id = orchestrator.start_session("u1", "daily")

        result = orchestrator.finish_session(session_id, "u1", [])

        assert result.new_mu == pytest.approx(3.0)
        assert result.score == 0
        assert state.sessions[session_id].is_finished
        assert seen_store.get("u1") == set()

    def test_seen_set_is_unioned_across_sessions(self, orchestrator, seen_store, sample_results):
        first = orchestrator.start_session("u1", "run")
        orchestrator.finish_session(first, "u1", sample_results[:2])
        second = orchestrator.start_session("u1", "run")
        orchestrator.finish_session(second, "u1", sample_results[2:])

        assert seen_store.get("u1") == {q["questionId"] for q in sample_results}

    def test_seen_store_failure_does_not_undo_finish(self, state, question_store, sample_results):
        orchestrator = SessionOrchestrator(lambda: InMemoryUnitOfWork(state, question_store), BrokenSeenStore())
        session_id = orchestrator.start_session("u1", "run")

        result = orchestrator.finish_session(session_id, "u1", sample_results)

        assert result.new_mu == pytest.approx(3.9)
        assert state.sessions[session_id].is_finished
        assert state.mu["u1"] == pytest.approx(3.9)


class TestFinishSessionErrors:
    def test_unknown_session(self, orchestrator, sample_results):
        with pytest.raises(NotFoundError):
            orchestrator.finish_session("missing", "u1", sample_results)

    def test_foreign_session(self, orchestrator, state, sample_results):
        session_id = orchestrator.start_session("u1", "run")

        with pytest.raises(UnauthorizedError):
            orchestrator.finish_session(session_id, "intruder", sample_results)
        assert "intruder" not in state.mu
        assert not state.sessions[session_id].is_finished

    def test_user_removed_after_start(self, orchestrator, state, sample_results):
        session_id = orchestrator.start_session("u2", "run")
        state.users.discard("u2")

        with pytest.raises(NotFoundError):
            orchestrator.finish_session(session_id, "u2", sample_results)
        assert not state.sessions[session_id].is_finished
        assert "u2" not in state.mu

    def test_double_finish(self, orchestrator, state, seen_store, sample_results):
        session_id = orchestrator.start_session("u1", "run")
        orchestrator.finish_session(session_id, "u1", sample_results)
        mu_after_first = state.mu["u1"]

        with pytest.raises(ConflictError):
            orchestrator.finish_session(session_id, "u1", sample_results)
        assert state.mu["u1"] == mu_after_first

    def test_malformed_result(self, orchestrator, state, sample_results):
        session_id = orchestrator.start_session("u1", "run")
        broken = sample_results + [{"questionId": "x", "correct": "yes", "category": "general"}]

        with pytest.raises(ValidationError):
            orchestrator.finish_session(session_id, "u1", broken)
        assert not state.sessions[session_id].is_finished

    def test_failure_mid_transaction_rolls_back(self, state, question_store, seen_store, sample_results):
        setup = SessionOrchestrator(lambda: InMemoryUnitOfWork(state, question_store), seen_store)
        session_id = setup.start_session("u1", "run")

        failing = SessionOrchestrator(
            lambda: InMemoryUnitOfWork(state, question_store, fail_on=("sessions", "finish")),
            seen_store,
        )
        with pytest.raises(RuntimeError):
            failing.finish_session(session_id, "u1", sample_results)

        assert state.mu == {}
        assert state.streaks == {}
        assert state.prefs == {}
        assert state.answers == {}
        assert not state.sessions[session_id].is_finished
        assert seen_store.get("u1") == set()


class TestNextQuestions:
    def test_uses_stored_mu(self, orchestrator, state):
        state.mu["u1"] = 5.0

        batch = orchestrator.get_next_questions("u1", "en", "general", 3, 0.5)

        assert all(4 <= q.difficulty <= 6 for q in batch)

    def test_default_mu_for_new_user(self, orchestrator):
        batch = orchestrator.get_next_questions("new", "en", "general", 3, 0.5)
        assert all(2 <= q.difficulty <= 4 for q in batch)

    def test_finished_questions_not_repeated(self, orchestrator, sample_results):
        session_id = orchestrator.start_session("u1", "run")
        orchestrator.finish_session(session_id, "u1", sample_results)

        batch = orchestrator.get_next_questions("u1", "en", "general", 3, 0.5)

        served = {q.id for q in batch}
        assert served.isdisjoint({"gen-3-0", "gen-3-1", "gen-4-0"})

    def test_history(self, orchestrator):
        orchestrator.start_session("u1", "run")
        orchestrator.start_session("u1", "daily")
        orchestrator.start_session("u2", "run")

        assert len(orchestrator.get_session_history("u1")) == 2
