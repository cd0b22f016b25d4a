"""Tests for the matching engine and browse search."""

import tempfile

import pytest

from skillswap.errors import ValidationError
from skillswap.matching import MatchEngine, MatchKind, SearchField, rank_matches, search_profiles
from skillswap.matching.engine import evaluate_candidate, skills_overlap
from skillswap.profiles import Member, ProfileStore


def _member(mid: str, offered=(), wanted=(), **kwargs) -> Member:
    return Member(id=mid, display_name=mid.title(), skills_offered=list(offered), skills_wanted=list(wanted), **kwargs)


def test_skills_overlap_is_bidirectional_substring():
    assert skills_overlap("Python", "python programming")
    assert skills_overlap("Web Design", "design")
    assert not skills_overlap("Python", "Guitar")


def test_mutual_match_suggests_offered_skill():
    alice = _member("alice", offered=["Python"], wanted=["Design"])
    bob = _member("bob", offered=["Design"], wanted=["Python"])

    match = evaluate_candidate(alice, bob)

    assert match.kind == MatchKind.mutual
    assert match.suggested_skill == "Python"
    assert match.learnable_skill == "Design"


def test_one_sided_matches():
    alice = _member("alice", offered=["Python"], wanted=["Design"])
    student = _member("student", offered=["Knitting"], wanted=["Python"])
    mentor = _member("mentor", offered=["Design"], wanted=["Chess"])

    assert evaluate_candidate(alice, student).kind == MatchKind.can_help
    learn = evaluate_candidate(alice, mentor)
    assert learn.kind == MatchKind.can_learn
    assert learn.suggested_skill == "Python"
    assert learn.learnable_skill == "Design"


def test_no_overlap_is_not_a_match():
    alice = _member("alice", offered=["Python"], wanted=["Design"])
    carol = _member("carol", offered=["Cooking"], wanted=["Chess"])
    assert evaluate_candidate(alice, carol) is None


def test_rank_matches_skips_self_banned_and_private():
    alice = _member("alice", offered=["Python"], wanted=["Design"])
    catalog = [
        alice,
        _member("banned", offered=["Design"], wanted=["Python"], banned=True),
        _member("hidden", offered=["Design"], wanted=["Python"], is_public=False),
        _member("bob", offered=["Design"], wanted=["Python"]),
    ]
    assert [m.candidate.id for m in rank_matches(alice, catalog)] == ["bob"]


def test_rank_matches_orders_mutual_then_rating_then_id():
    alice = _member("alice", offered=["Python"], wanted=["Design"])
    catalog = [
        _member("d-helper", offered=["Chess"], wanted=["Python"], rating=5.0),
        _member("c-mutual", offered=["Design"], wanted=["Python"], rating=3.0),
        _member("b-mutual", offered=["Design"], wanted=["Python"], rating=4.5),
        _member("a-mutual", offered=["Design"], wanted=["Python"], rating=4.5),
    ]

    ranked = rank_matches(alice, catalog)

    assert [m.candidate.id for m in ranked] == ["a-mutual", "b-mutual", "c-mutual", "d-helper"]
    assert [m.candidate.id for m in rank_matches(alice, catalog, limit=2)] == ["a-mutual", "b-mutual"]


def test_match_engine_uses_public_catalog():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        alice = store.create("Alice", skills_offered=["Python"], skills_wanted=["Design"])
        bob = store.create("Bob", skills_offered=["Design"], skills_wanted=["Python"])
        store.create("Carol", skills_offered=["Design"], skills_wanted=["Python"], is_public=False)

        matches = MatchEngine(store).find_matches(alice)

        assert [m.candidate.id for m in matches] == [bob.id]
        assert matches[0].suggested_skill == "Python"


def _catalog():
    return [
        _member("ana", offered=["Python"], wanted=["Spanish"], location="Lisbon"),
        _member("ben", offered=["Guitar"], wanted=["Python"], location="Berlin"),
        _member("cy", offered=["Photography"], wanted=["Guitar"], location="Lisbon", is_public=False),
    ]


def test_search_empty_term_lists_public_profiles():
    assert [m.id for m in search_profiles(_catalog())] == ["ana", "ben"]


def test_search_by_field():
    catalog = _catalog()
    assert [m.id for m in search_profiles(catalog, "python")] == ["ana", "ben"]
    assert [m.id for m in search_profiles(catalog, "python", SearchField.skills_offered)] == ["ana"]
    assert [m.id for m in search_profiles(catalog, "PYTHON", "skills-wanted")] == ["ben"]
    assert [m.id for m in search_profiles(catalog, "lisbon", "location")] == ["ana"]


def test_search_matches_display_name():
    assert [m.id for m in search_profiles(_catalog(), "Ben")] == ["ben"]


def test_search_unknown_field():
    with pytest.raises(ValidationError):
        search_profiles(_catalog(), "x", "email")
