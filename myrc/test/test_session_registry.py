"""
Tests for Session and SessionRegistry.
"""

import threading

from myrc.core.message.protocol import DEFAULT_COLOR_LABEL, RESET
from myrc.core.server.session import Profile, Session, SessionRegistry

from .conftest import FakeTransport


def new_session() -> Session:
    return Session(FakeTransport())


class TestSession:
    """Tests for Session state."""

    def test_defaults(self):
        session = new_session()
        assert session.identity is None
        assert session.is_named is False
        assert session.color_label == DEFAULT_COLOR_LABEL
        assert session.color_tag == RESET

    def test_set_color_replaces_profile(self):
        session = new_session()
        before = session.profile

        session.set_color("red", "\033[31m")

        assert before == Profile()
        assert session.profile is not before
        assert session.color_label == "red"
        assert session.color_tag == "\033[31m"

    def test_unique_ids(self):
        assert new_session().session_id != new_session().session_id


class TestSessionRegistry:
    """Tests for SessionRegistry."""

    def setup_method(self):
        self.registry = SessionRegistry()

    def test_add_and_contains(self):
        session = new_session()
        self.registry.add(session)

        assert session in self.registry
        assert len(self.registry) == 1

    def test_remove_is_idempotent(self):
        session = new_session()
        self.registry.add(session)

        assert self.registry.remove(session) is True
        assert self.registry.remove(session) is False
        assert session not in self.registry

    def test_remove_unknown_session(self):
        assert self.registry.remove(new_session()) is False

    def test_snapshot_is_a_copy(self):
        first, second = new_session(), new_session()
        self.registry.add(first)
        self.registry.add(second)

        snapshot = self.registry.snapshot()
        for session in snapshot:
            self.registry.remove(session)
        self.registry.add(new_session())

        assert snapshot == [first, second]
        assert len(self.registry) == 1

    def test_find_by_identity_exact_match(self):
        session = new_session()
        self.registry.add(session)
        self.registry.claim_identity(session, "alice")

        assert self.registry.find_by_identity("alice") is session
        assert self.registry.find_by_identity("Alice") is None
        assert self.registry.find_by_identity("bob") is None

    def test_claim_rejects_name_held_by_other(self):
        alice, other = new_session(), new_session()
        self.registry.add(alice)
        self.registry.add(other)

        assert self.registry.claim_identity(alice, "alice") is True
        assert self.registry.claim_identity(other, "alice") is False
        assert other.identity is None
        assert self.registry.find_by_identity("alice") is alice

    def test_claim_own_name_again(self):
        session = new_session()
        self.registry.add(session)

        assert self.registry.claim_identity(session, "alice")
        assert self.registry.claim_identity(session, "alice")
        assert session.identity == "alice"

    def test_rename_releases_previous_name(self):
        first, second = new_session(), new_session()
        self.registry.add(first)
        self.registry.add(second)
        self.registry.claim_identity(first, "alice")

        assert self.registry.claim_identity(first, "alicia")
        assert self.registry.find_by_identity("alice") is None
        assert self.registry.claim_identity(second, "alice")
        assert self.registry.identities() == ["alicia", "alice"]

    def test_remove_releases_name_but_session_keeps_it(self):
        first, second = new_session(), new_session()
        self.registry.add(first)
        self.registry.add(second)
        self.registry.claim_identity(first, "carol")

        self.registry.remove(first)

        assert first.identity == "carol"
        assert self.registry.find_by_identity("carol") is None
        assert self.registry.claim_identity(second, "carol")

    def test_unregistered_session_cannot_claim(self):
        session = new_session()
        assert self.registry.claim_identity(session, "ghost") is False
        assert session.identity is None

    def test_concurrent_claims_have_one_winner(self):
        sessions = [new_session() for _ in range(16)]
        for session in sessions:
            self.registry.add(session)

        barrier = threading.Barrier(len(sessions))
        results = []
        results_lock = threading.Lock()

        def claim(session):
            barrier.wait()
            won = self.registry.claim_identity(session, "dave")
            with results_lock:
                results.append(won)

        threads = [threading.Thread(target=claim, args=(s,)) for s in sessions]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert sum(1 for s in sessions if s.identity == "dave") == 1

    def test_snapshot_during_concurrent_mutation(self):
        stop = threading.Event()
        errors = []

        def churn():
            while not stop.is_set():
                session = new_session()
                self.registry.add(session)
                self.registry.remove(session)

        worker = threading.Thread(target=churn)
        worker.start()
        try:
            for _ in range(2000):
                try:
                    for _session in self.registry.snapshot():
                        pass
                except RuntimeError as e:
                    errors.append(e)
        finally:
            stop.set()
            worker.join()

        assert errors == []
