"""Tests for the command line interface."""

import json
import logging
import tempfile
from pathlib import Path

from click.testing import CliRunner

from skillswap.cli import main
from skillswap.config import Settings
from skillswap.service import SkillSwapService
from skillswap.swaps import SwapStatus


def _invoke(tmpdir: str, *args: str):
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["--data-dir", tmpdir, "--log-level", "WARNING", *args],
        env={"SKILLSWAP_HOME": tmpdir, "SKILLSWAP_CONFIG": ""},
    )
    # Drop the handler bound to the runner's captured stream
    pkg_logger = logging.getLogger("skillswap")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.propagate = True
    return result


def _member_ids(tmpdir: str) -> dict[str, str]:
    svc = SkillSwapService(Settings(data_dir=tmpdir))
    return {m.display_name: m.id for m in svc.profiles.list_all()}


def _register_pair(tmpdir: str) -> dict[str, str]:
    _invoke(tmpdir, "member", "register", "Alice", "--offer", "Python", "--want", "Design", "-a", "weekends")
    _invoke(tmpdir, "member", "register", "Bob", "--offer", "Design", "--want", "Python")
    _invoke(tmpdir, "member", "register", "Root", "--admin")
    return _member_ids(tmpdir)


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_register_and_show():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "member", "register", "Alice", "--offer", "Python", "--location", "Lisbon")
        assert result.exit_code == 0, result.output
        assert "Registered" in result.output

        member_id = _member_ids(tmpdir)["Alice"]
        shown = _invoke(tmpdir, "member", "show", member_id)
        assert shown.exit_code == 0
        assert "Python" in shown.output
        assert "Lisbon" in shown.output


def test_matches_and_search():
    with tempfile.TemporaryDirectory() as tmpdir:
        ids = _register_pair(tmpdir)

        result = _invoke(tmpdir, "matches", "--as", ids["Alice"])
        assert result.exit_code == 0, result.output
        assert "Matches (1)" in result.output
        assert "mutual" in result.output

        found = _invoke(tmpdir, "search", "design", "--field", "skills-offered")
        assert "Search results (1)" in found.output

        missing = _invoke(tmpdir, "search", "underwater basket weaving")
        assert "No matching members found." in missing.output


def test_swap_lifecycle():
    with tempfile.TemporaryDirectory() as tmpdir:
        ids = _register_pair(tmpdir)
        alice, bob = ids["Alice"], ids["Bob"]

        sent = _invoke(tmpdir, "swap", "request", "--as", alice, bob, "--offer", "python", "--want", "design")
        assert sent.exit_code == 0, sent.output
        svc = SkillSwapService(Settings(data_dir=tmpdir))
        request_id = svc.swaps.outgoing(alice)[0].id

        assert _invoke(tmpdir, "swap", "accept", "--as", bob, request_id).exit_code == 0
        assert _invoke(tmpdir, "swap", "complete", "--as", alice, request_id).exit_code == 0
        rated = _invoke(tmpdir, "swap", "rate", "--as", alice, request_id, "4", "-f", "Thanks")
        assert rated.exit_code == 0, rated.output

        assert svc.swaps.get(request_id).status == SwapStatus.completed
        assert svc.profiles.get(bob).completed_swaps == 1

        listing = _invoke(tmpdir, "swap", "list", "--as", bob, "--view", "completed")
        assert "Completed (1)" in listing.output


def test_core_errors_exit_with_status_one():
    with tempfile.TemporaryDirectory() as tmpdir:
        ids = _register_pair(tmpdir)
        alice, bob = ids["Alice"], ids["Bob"]
        _invoke(tmpdir, "swap", "request", "--as", alice, bob, "--offer", "Python", "--want", "Design")
        request_id = SkillSwapService(Settings(data_dir=tmpdir)).swaps.outgoing(alice)[0].id

        result = _invoke(tmpdir, "swap", "accept", "--as", alice, request_id)
        assert result.exit_code == 1
        assert "unauthorized" in result.output

        unknown = _invoke(tmpdir, "member", "show", "nobody")
        assert unknown.exit_code == 1
        assert "not_found" in unknown.output


def test_admin_commands_check_role():
    with tempfile.TemporaryDirectory() as tmpdir:
        ids = _register_pair(tmpdir)

        denied = _invoke(tmpdir, "admin", "stats", "--as", ids["Alice"])
        assert denied.exit_code == 1

        stats = _invoke(tmpdir, "admin", "stats", "--as", ids["Root"])
        assert stats.exit_code == 0, stats.output
        assert "Platform statistics" in stats.output


def test_admin_ban_and_report_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        ids = _register_pair(tmpdir)
        alice, bob, root = ids["Alice"], ids["Bob"], ids["Root"]
        _invoke(tmpdir, "swap", "request", "--as", alice, bob, "--offer", "Python", "--want", "Design")

        banned = _invoke(tmpdir, "admin", "ban", "--as", root, bob)
        assert banned.exit_code == 0, banned.output
        assert "1 open requests processed" in banned.output

        out = Path(tmpdir) / "activity.json"
        report = _invoke(tmpdir, "admin", "report", "--as", root, "user_activity", "--output", str(out))
        assert report.exit_code == 0, report.output
        rows = {row["member_id"]: row for row in json.loads(out.read_text())}
        assert rows[bob]["banned"] is True
        assert rows[alice]["requests_sent"] == 1


def test_skill_submission_review():
    with tempfile.TemporaryDirectory() as tmpdir:
        ids = _register_pair(tmpdir)
        _invoke(tmpdir, "member", "submit-skill", "--as", ids["Alice"], "Rust")
        svc = SkillSwapService(Settings(data_dir=tmpdir))
        submission = svc.moderation_store.list_submissions()[0]

        approved = _invoke(tmpdir, "admin", "approve", "--as", ids["Root"], submission.id)
        assert approved.exit_code == 0, approved.output
        assert "Rust" in svc.profiles.get(ids["Alice"]).skills_offered

        again = _invoke(tmpdir, "admin", "approve", "--as", ids["Root"], submission.id)
        assert again.exit_code == 1
        assert "already_processed" in again.output
