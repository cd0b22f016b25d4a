"""Tests for skill sets, members and the profile store."""

import tempfile

import pytest

from skillswap.auth.models import Role
from skillswap.errors import NotFound, ValidationError
from skillswap.profiles import AvailabilitySlot, ProfileStore, SkillDirection, SkillSet


def test_skillset_case_insensitive_membership():
    skills = SkillSet(["Python", " Guitar "])
    assert "python" in skills
    assert "GUITAR" in skills
    assert "Cooking" not in skills
    assert skills.to_list() == ["Python", "Guitar"]


def test_skillset_keeps_first_spelling():
    skills = SkillSet(["Python"])
    assert skills.add("PYTHON") is False
    assert skills.get("python") == "Python"
    assert len(skills) == 1


def test_skillset_equality_ignores_case_and_order():
    assert SkillSet(["a", "B"]) == SkillSet(["b", "A"])
    assert SkillSet(["a"]) != SkillSet(["a", "b"])


def test_skillset_rejects_empty_names():
    with pytest.raises(ValidationError):
        SkillSet(["Python", "   "])


def test_skillset_discard():
    skills = SkillSet(["Python", "Design"])
    skills.discard("PYTHON")
    assert skills.to_list() == ["Design"]


def test_availability_parse_accepts_labels():
    assert AvailabilitySlot.parse("Weekdays 9-5") == AvailabilitySlot.weekdays_9_5
    assert AvailabilitySlot.parse("weekend mornings") == AvailabilitySlot.weekend_mornings
    with pytest.raises(ValidationError):
        AvailabilitySlot.parse("whenever")


def test_create_member_defaults():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        m = store.create("Alice", skills_offered=["Python"], skills_wanted=["Design"])

        assert m.rating == 5.0
        assert m.completed_swaps == 0
        assert m.is_public is True
        assert m.banned is False
        assert m.role == Role.member
        assert m.version == 1
        assert store.get(m.id).skills_offered == SkillSet(["python"])


def test_create_uses_configured_default_rating():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir, default_rating=0.0)
        assert store.create("Bob").rating == 0.0


def test_create_rejects_blank_name():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(ValidationError):
            ProfileStore(tmpdir).create("  ")


def test_get_unknown_member():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(NotFound):
            ProfileStore(tmpdir).get("missing")


def test_list_public_excludes_private_and_banned():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        visible = store.create("Visible")
        store.create("Hidden", is_public=False)
        banned = store.create("Banned")
        store.set_banned(banned.id, True)

        assert [m.id for m in store.list_public()] == [visible.id]
        assert len(store.list_all()) == 3


def test_upsert_skills_replaces_both_sets():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        m = store.create("Alice", skills_offered=["Python"], skills_wanted=["Design"])

        updated = store.upsert_skills(m.id, ["Cooking", "cooking"], ["Guitar"])
        assert updated.skills_offered.to_list() == ["Cooking"]
        assert updated.skills_wanted.to_list() == ["Guitar"]
        assert updated.version == 2


def test_add_skill_is_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        m = store.create("Alice", skills_offered=["Python"])

        store.add_skill(m.id, "python", SkillDirection.offered)
        updated = store.add_skill(m.id, "Rust", SkillDirection.wanted)
        assert updated.skills_offered.to_list() == ["Python"]
        assert updated.skills_wanted.to_list() == ["Rust"]


def test_update_profile_leaves_unset_fields():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        m = store.create("Alice", location="Lisbon", availability=["weekends"])

        updated = store.update_profile(m.id, availability=["Weekdays evenings"])
        assert updated.location == "Lisbon"
        assert updated.availability == {AvailabilitySlot.weekdays_evenings}

        renamed = store.update_profile(m.id, display_name="Ally")
        assert renamed.display_name == "Ally"
        assert renamed.availability == {AvailabilitySlot.weekdays_evenings}


def test_set_visibility():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        m = store.create("Alice")
        assert store.set_visibility(m.id, False).is_public is False


def test_set_banned_same_value_is_noop():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        m = store.create("Alice")
        banned = store.set_banned(m.id, True)
        again = store.set_banned(m.id, True)
        assert banned.banned and again.banned
        assert again.version == banned.version


def test_change_ban_reports_whether_the_flag_moved():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        m = store.create("Alice")
        other = ProfileStore(tmpdir)

        banned, changed = store.change_ban(m.id, True)
        assert banned.banned and changed

        again, changed = other.change_ban(m.id, True)
        assert again.banned and not changed
        assert again.version == banned.version

        lifted, changed = other.change_ban(m.id, False)
        assert not lifted.banned and changed


def test_apply_rating_running_mean():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        m = store.create("Alice")

        store.apply_rating(m.id, 4)
        store.apply_rating(m.id, 4)
        result = store.apply_rating(m.id, 5)

        assert result.completed_swaps == 3
        assert result.rating == pytest.approx(13 / 3)


def test_fields_survive_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProfileStore(tmpdir)
        m = store.create(
            "Alice",
            email="alice@example.com",
            location="Porto",
            skills_offered=["Python"],
            skills_wanted=["Design"],
            availability=["weekends", "flexible_schedule"],
            role=Role.admin,
        )
        loaded = ProfileStore(tmpdir).get(m.id)
        assert loaded.email == "alice@example.com"
        assert loaded.is_admin
        assert loaded.availability == {AvailabilitySlot.weekends, AvailabilitySlot.flexible_schedule}
