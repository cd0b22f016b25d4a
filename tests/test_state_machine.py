"""Tests for the swap request state machine."""

import random
import tempfile
from pathlib import Path

import pytest

from skillswap.auth.models import Actor, Role
from skillswap.errors import Conflict, InvalidTransition, NotFound, SkillSwapError, Unauthorized, ValidationError
from skillswap.events import EventBus
from skillswap.profiles import ProfileStore
from skillswap.swaps import CancelReason, SwapAction, SwapStateMachine, SwapStatus, SwapStore
from skillswap.swaps.state_machine import valid_actions


def _setup(tmpdir: str, swaps: SwapStore | None = None):
    profiles = ProfileStore(Path(tmpdir) / "profiles")
    swaps = swaps or SwapStore(Path(tmpdir) / "swaps")
    bus = EventBus()
    machine = SwapStateMachine(swaps, profiles, bus=bus)
    alice = profiles.create("Alice", skills_offered=["Python"], skills_wanted=["Design"])
    bob = profiles.create("Bob", skills_offered=["Design"], skills_wanted=["Python"])
    admin = profiles.create("Admin", role=Role.admin)
    return {
        "profiles": profiles,
        "swaps": swaps,
        "bus": bus,
        "machine": machine,
        "alice": Actor(alice.id),
        "bob": Actor(bob.id),
        "admin": Actor(admin.id, Role.admin),
    }


def _request(env):
    return env["machine"].create(env["alice"], env["bob"].member_id, "python", "DESIGN", "Swap?")


def test_create_stores_pending_request_with_canonical_skills():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        req = _request(env)

        assert req.status == SwapStatus.pending
        assert req.skill_offered == "Python"
        assert req.skill_wanted == "Design"
        assert req.message == "Swap?"
        assert env["swaps"].get(req.id).version == 1


def test_create_validations():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        machine, alice, bob = env["machine"], env["alice"], env["bob"]

        with pytest.raises(ValidationError):
            machine.create(alice, alice.member_id, "Python", "Python")
        with pytest.raises(ValidationError):
            machine.create(alice, bob.member_id, "Cooking", "Design")
        with pytest.raises(ValidationError):
            machine.create(alice, bob.member_id, "Python", "Juggling")
        with pytest.raises(NotFound):
            machine.create(alice, "nobody", "Python", "Design")


def test_create_with_banned_parties():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        env["profiles"].set_banned(env["bob"].member_id, True)
        with pytest.raises(ValidationError):
            _request(env)
        with pytest.raises(Unauthorized):
            env["machine"].create(env["bob"], env["alice"].member_id, "Design", "Python")


def test_accept_then_complete():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        req = _request(env)

        accepted = env["machine"].accept(env["bob"], req.id)
        assert accepted.status == SwapStatus.accepted
        done = env["machine"].complete(env["alice"], req.id)
        assert done.status == SwapStatus.completed


def test_accept_is_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        req = _request(env)

        first = env["machine"].accept(env["bob"], req.id)
        second = env["machine"].accept(env["bob"], req.id)

        assert second.status == SwapStatus.accepted
        assert second.version == first.version


def test_reject_after_accept_is_invalid():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        req = _request(env)
        env["machine"].accept(env["bob"], req.id)

        with pytest.raises(InvalidTransition):
            env["machine"].reject(env["bob"], req.id)
        assert env["swaps"].get(req.id).status == SwapStatus.accepted


def test_only_the_right_party_may_act():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        machine, alice, bob, admin = env["machine"], env["alice"], env["bob"], env["admin"]
        req = _request(env)

        with pytest.raises(Unauthorized):
            machine.accept(alice, req.id)
        with pytest.raises(Unauthorized):
            machine.reject(alice, req.id)
        with pytest.raises(Unauthorized):
            machine.cancel(bob, req.id)
        with pytest.raises(Unauthorized):
            machine.force_cancel(bob, req.id)
        with pytest.raises(Unauthorized):
            machine.complete(admin, req.id)


def test_cancel_records_reason():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        req = _request(env)

        cancelled = env["machine"].cancel(env["alice"], req.id)
        assert cancelled.status == SwapStatus.cancelled
        assert cancelled.cancel_reason == CancelReason.withdrawn


def test_cancel_after_accept_is_invalid():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        req = _request(env)
        env["machine"].accept(env["bob"], req.id)
        with pytest.raises(InvalidTransition):
            env["machine"].cancel(env["alice"], req.id)


def test_force_cancel_accepted_request():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        req = _request(env)
        env["machine"].accept(env["bob"], req.id)

        cancelled = env["machine"].force_cancel(env["admin"], req.id)
        assert cancelled.status == SwapStatus.cancelled
        assert cancelled.cancel_reason == CancelReason.moderation


def test_banned_recipient_cannot_accept():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        req = _request(env)
        env["profiles"].set_banned(env["bob"].member_id, True)
        with pytest.raises(Unauthorized):
            env["machine"].accept(env["bob"], req.id)


def test_transitions_emit_events():
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        seen = []
        env["bus"].subscribe(seen.append)

        req = _request(env)
        env["machine"].accept(env["bob"], req.id)
        env["machine"].accept(env["bob"], req.id)

        assert [e.type for e in seen] == ["request.created", "request.accepted"]
        assert set(seen[1].subject_ids) == {env["alice"].member_id, env["bob"].member_id}
        assert seen[1].payload["previous_status"] == "pending"


def test_valid_actions_table():
    assert valid_actions(SwapStatus.pending) == {
        SwapAction.accept, SwapAction.reject, SwapAction.cancel, SwapAction.force_cancel,
    }
    assert valid_actions(SwapStatus.accepted) == {SwapAction.complete, SwapAction.force_cancel}
    for status in (SwapStatus.rejected, SwapStatus.completed, SwapStatus.cancelled):
        assert valid_actions(status) == set()
        assert status.is_terminal


class _RacingSwapStore(SwapStore):
    """Runs a competing write just before the next compare-and-set."""

    def __init__(self, base_dir, race=None):
        super().__init__(base_dir)
        self.race = race

    def compare_and_set(self, request, expected_status):
        race, self.race = self.race, None
        if race is not None:
            race()
        return super().compare_and_set(request, expected_status)


def test_concurrent_transition_raises_conflict():
    with tempfile.TemporaryDirectory() as tmpdir:
        racing = _RacingSwapStore(Path(tmpdir) / "swaps")
        env = _setup(tmpdir, swaps=racing)
        other = SwapStateMachine(SwapStore(Path(tmpdir) / "swaps"), env["profiles"])
        req = _request(env)

        racing.race = lambda: other.cancel(env["alice"], req.id)
        with pytest.raises(Conflict):
            env["machine"].accept(env["bob"], req.id)

        assert env["swaps"].get(req.id).status == SwapStatus.cancelled


def test_terminal_states_never_change_under_random_actions():
    rng = random.Random(1234)
    actions = list(SwapAction)
    with tempfile.TemporaryDirectory() as tmpdir:
        env = _setup(tmpdir)
        actors = [env["alice"], env["bob"], env["admin"]]
        requests = [_request(env) for _ in range(5)]
        terminal: dict[str, SwapStatus] = {}

        for _ in range(200):
            req = rng.choice(requests)
            try:
                env["machine"].transition(rng.choice(actors), req.id, rng.choice(actions))
            except SkillSwapError:
                pass
            status = env["swaps"].get(req.id).status
            if req.id in terminal:
                assert status == terminal[req.id]
            elif status.is_terminal:
                terminal[req.id] = status

        assert terminal
