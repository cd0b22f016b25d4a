"""SkillSwap CLI — operate a skill-exchange marketplace from the terminal."""

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from skillswap import __version__
from skillswap.errors import SkillSwapError

console = Console()

AVAILABILITY_CHOICES = [
    "weekdays_9_5",
    "weekdays_evenings",
    "weekends",
    "weekend_mornings",
    "weekend_evenings",
    "flexible_schedule",
]


class SkillSwapGroup(click.Group):
    """Click group that turns core errors into a red message and exit status 1."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except SkillSwapError as e:
            console.print(f"[red]Error ({e.code}):[/] {escape(str(e))}")
            ctx.exit(1)


def _service(ctx):
    return ctx.find_root().obj


def _actor(ctx, member_id: str):
    return _service(ctx).actor_for(member_id)


def _status_style(status: str) -> str:
    return {
        "pending": "yellow",
        "accepted": "cyan",
        "completed": "green",
        "rejected": "red",
        "cancelled": "dim",
    }.get(status, "white")


def _requests_table(title: str, requests) -> Table:
    table = Table(title=f"{title} ({len(requests)})")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("From", no_wrap=True)
    table.add_column("To", no_wrap=True)
    table.add_column("Offers", style="cyan")
    table.add_column("Wants", style="cyan")
    table.add_column("Status")
    for r in requests:
        style = _status_style(r.status.value)
        table.add_row(r.id, r.requester_id, r.recipient_id, r.skill_offered, r.skill_wanted, f"[{style}]{r.status.value}[/]")
    return table


def _members_table(title: str, members) -> Table:
    table = Table(title=f"{title} ({len(members)})")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Location")
    table.add_column("Offers")
    table.add_column("Wants")
    table.add_column("Rating", justify="right", style="green")
    for m in members:
        table.add_row(
            m.id,
            m.display_name,
            m.location,
            ", ".join(m.skills_offered),
            ", ".join(m.skills_wanted),
            f"{m.rating:.1f} ({m.completed_swaps})",
        )
    return table


actor_option = click.option("--as", "actor_id", required=True, metavar="MEMBER_ID", help="Member performing the action")


@click.group(cls=SkillSwapGroup)
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False), help="Settings file (YAML)")
@click.option("--data-dir", default=None, type=click.Path(file_okay=False), help="Data directory (overrides config)")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")
@click.pass_context
def main(ctx, config_path, data_dir, log_level):
    """SkillSwap — match members and run skill swap requests.

    Every command that acts on behalf of someone takes --as MEMBER_ID;
    admin commands check that member's stored role.
    """
    import dataclasses
    from pathlib import Path

    from skillswap.config import load_settings
    from skillswap.service import SkillSwapService
    from skillswap.utils.log import configure_logging

    settings = load_settings(config_path)
    if data_dir:
        settings = dataclasses.replace(settings, data_dir=Path(data_dir))
    if log_level:
        settings = dataclasses.replace(settings, log_level=log_level)
    configure_logging(settings.log_level)
    ctx.obj = SkillSwapService.from_settings(settings)


# ── Members ──────────────────────────────────────────────────────────


@main.group()
def member():
    """Register members and manage profiles."""


@member.command()
@click.argument("display_name")
@click.option("--email", default="", help="Contact email")
@click.option("--location", default="", help="City or region")
@click.option("--offer", "offered", multiple=True, help="Skill you can teach (repeatable)")
@click.option("--want", "wanted", multiple=True, help="Skill you want to learn (repeatable)")
@click.option("--availability", "-a", multiple=True, type=click.Choice(AVAILABILITY_CHOICES))
@click.option("--private", is_flag=True, help="Hide the profile from browse and matching")
@click.option("--admin", is_flag=True, help="Register with the admin role")
@click.pass_context
def register(ctx, display_name, email, location, offered, wanted, availability, private, admin):
    """Register a new member."""
    from skillswap.auth.models import Role

    m = _service(ctx).register(
        display_name,
        email=email,
        location=location,
        skills_offered=offered,
        skills_wanted=wanted,
        availability=availability,
        is_public=not private,
        role=Role.admin if admin else Role.member,
    )
    console.print(f"[green]Registered[/] {escape(m.display_name)} as [cyan]{m.id}[/]")


@member.command()
@click.argument("member_id")
@click.pass_context
def show(ctx, member_id):
    """Show a member's profile."""
    m = _service(ctx).get_member(member_id)
    console.print(f"\n[bold blue]{escape(m.display_name)}[/] ({m.id})")
    console.print(f"  Role:         {m.role.value}{'  [red]BANNED[/]' if m.banned else ''}")
    console.print(f"  Visibility:   {'public' if m.is_public else 'private'}")
    console.print(f"  Location:     {escape(m.location) or '-'}")
    console.print(f"  Offers:       {escape(', '.join(m.skills_offered)) or '-'}")
    console.print(f"  Wants:        {escape(', '.join(m.skills_wanted)) or '-'}")
    console.print(f"  Availability: {', '.join(sorted(a.value for a in m.availability)) or '-'}")
    console.print(f"  Rating:       {m.rating:.2f} over {m.completed_swaps} swaps")


@member.command(name="list")
@click.pass_context
def list_members(ctx):
    """List every member."""
    members = _service(ctx).profiles.list_all()
    if not members:
        console.print("[yellow]No members registered.[/]")
        return
    console.print(_members_table("Members", members))


@member.command()
@actor_option
@click.option("--name", "display_name", default=None)
@click.option("--location", default=None)
@click.option("--availability", "-a", multiple=True, type=click.Choice(AVAILABILITY_CHOICES))
@click.pass_context
def update(ctx, actor_id, display_name, location, availability):
    """Update your display name, location or availability."""
    svc = _service(ctx)
    m = svc.update_profile(
        _actor(ctx, actor_id),
        actor_id,
        display_name=display_name,
        location=location,
        availability=availability or None,
    )
    console.print(f"[green]Updated[/] profile {m.id}")


@member.command()
@actor_option
@click.option("--offer", "offered", multiple=True, help="Skill you can teach (repeatable)")
@click.option("--want", "wanted", multiple=True, help="Skill you want to learn (repeatable)")
@click.pass_context
def skills(ctx, actor_id, offered, wanted):
    """Replace your offered and wanted skills."""
    m = _service(ctx).set_skills(_actor(ctx, actor_id), actor_id, offered, wanted)
    console.print(f"[green]Skills updated[/] for {m.id}: offers {len(m.skills_offered)}, wants {len(m.skills_wanted)}")


@member.command()
@actor_option
@click.argument("visibility", type=click.Choice(["public", "private"]))
@click.pass_context
def visibility(ctx, actor_id, visibility):
    """Make your profile public or private."""
    _service(ctx).set_visibility(_actor(ctx, actor_id), actor_id, visibility == "public")
    console.print(f"[green]Profile is now {visibility}[/]")


@member.command(name="submit-skill")
@actor_option
@click.argument("skill")
@click.option("--direction", default="offered", type=click.Choice(["offered", "wanted"]))
@click.option("--description", default="")
@click.pass_context
def submit_skill(ctx, actor_id, skill, direction, description):
    """Submit a skill for moderator review."""
    sub = _service(ctx).moderation.submit_skill(_actor(ctx, actor_id), skill, direction, description)
    flagged = f" [yellow](flagged: {sub.flag_reason})[/]" if sub.flag_reason else ""
    console.print(f"[green]Submitted[/] {escape(sub.skill)} for review as {sub.id}{flagged}")


@member.command()
@actor_option
@click.argument("reported_id")
@click.option("--reason", required=True, type=click.Choice(
    ["inappropriate_behavior", "no_show", "spam", "harassment", "fake_profile", "other"]
))
@click.option("--description", default="")
@click.pass_context
def report(ctx, actor_id, reported_id, reason, description):
    """Report another member to the moderators."""
    r = _service(ctx).moderation.file_report(_actor(ctx, actor_id), reported_id, reason, description)
    console.print(f"[green]Report filed[/] as {r.id}")


# ── Discovery ────────────────────────────────────────────────────────


@main.command()
@actor_option
@click.pass_context
def matches(ctx, actor_id):
    """Suggest swap partners for a member."""
    found = _service(ctx).find_matches(actor_id)
    if not found:
        console.print("[yellow]No matches found.[/]")
        return

    table = Table(title=f"Matches ({len(found)})")
    table.add_column("Member", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("You teach")
    table.add_column("You learn")
    table.add_column("Rating", justify="right", style="green")
    for match in found:
        table.add_row(
            match.candidate.id,
            match.candidate.display_name,
            match.kind.value,
            match.suggested_skill or "-",
            match.learnable_skill or "-",
            f"{match.candidate.rating:.1f}",
        )
    console.print(table)


@main.command()
@click.argument("term", default="")
@click.option("--field", default="all", type=click.Choice(["all", "skills-offered", "skills-wanted", "location"]))
@click.pass_context
def search(ctx, term, field):
    """Browse public profiles."""
    found = _service(ctx).search(term, field)
    if not found:
        console.print("[yellow]No matching members found.[/]")
        return
    console.print(_members_table("Search results", found))


# ── Swaps ────────────────────────────────────────────────────────────


@main.group()
def swap():
    """Send and answer swap requests."""


@swap.command()
@actor_option
@click.argument("recipient_id")
@click.option("--offer", "skill_offered", required=True, help="Skill you teach")
@click.option("--want", "skill_wanted", required=True, help="Skill you want from the recipient")
@click.option("--message", "-m", default="")
@click.pass_context
def request(ctx, actor_id, recipient_id, skill_offered, skill_wanted, message):
    """Send a swap request."""
    r = _service(ctx).create_request(_actor(ctx, actor_id), recipient_id, skill_offered, skill_wanted, message)
    console.print(f"[green]Request sent[/] {r.id}: {escape(r.skill_offered)} for {escape(r.skill_wanted)}")


def _transition_command(name: str, help_text: str):
    @swap.command(name=name, help=help_text)
    @actor_option
    @click.argument("request_id")
    @click.pass_context
    def command(ctx, actor_id, request_id):
        svc = _service(ctx)
        r = getattr(svc, name)(_actor(ctx, actor_id), request_id)
        style = _status_style(r.status.value)
        console.print(f"Swap request {r.id} is now [{style}]{r.status.value}[/]")

    return command


accept = _transition_command("accept", "Accept a pending request sent to you.")
reject = _transition_command("reject", "Reject a pending request sent to you.")
cancel = _transition_command("cancel", "Withdraw a pending request you sent.")
complete = _transition_command("complete", "Mark an accepted swap as completed.")


@swap.command(name="list")
@actor_option
@click.option("--view", default="incoming", type=click.Choice(["incoming", "outgoing", "active", "completed"]))
@click.pass_context
def list_swaps(ctx, actor_id, view):
    """List your swap requests."""
    svc = _service(ctx)
    requests = getattr(svc, view)(_actor(ctx, actor_id))
    if not requests:
        console.print(f"[yellow]No {view} requests.[/]")
        return
    console.print(_requests_table(view.capitalize(), requests))


@swap.command()
@actor_option
@click.argument("request_id")
@click.argument("rating", type=click.IntRange(1, 5))
@click.option("--feedback", "-f", default="")
@click.pass_context
def rate(ctx, actor_id, request_id, rating, feedback):
    """Rate the other party of a completed swap (1-5)."""
    rated = _service(ctx).submit_rating(_actor(ctx, actor_id), request_id, rating, feedback)
    console.print(
        f"[green]Thanks![/] {escape(rated.display_name)} is now rated "
        f"{rated.rating:.2f} over {rated.completed_swaps} swaps"
    )


# ── Admin ────────────────────────────────────────────────────────────


@main.group()
def admin():
    """Moderation and platform reports (admin only)."""


@admin.command()
@actor_option
@click.option("--status", default="pending", type=click.Choice(["pending", "approved", "rejected", "all"]))
@click.pass_context
def submissions(ctx, actor_id, status):
    """List skill submissions."""
    subs = _service(ctx).moderation.list_submissions(_actor(ctx, actor_id), None if status == "all" else status)
    if not subs:
        console.print("[yellow]No skill submissions.[/]")
        return
    table = Table(title=f"Skill submissions ({len(subs)})")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Member", no_wrap=True)
    table.add_column("Skill", style="cyan")
    table.add_column("Direction")
    table.add_column("Flag", style="yellow")
    table.add_column("Status")
    for s in subs:
        table.add_row(s.id, s.member_id, s.skill, s.direction.value, s.flag_reason or "", s.status.value)
    console.print(table)


@admin.command()
@actor_option
@click.argument("submission_id")
@click.pass_context
def approve(ctx, actor_id, submission_id):
    """Approve a skill submission."""
    s = _service(ctx).moderation.approve_skill(_actor(ctx, actor_id), submission_id)
    console.print(f"[green]Approved[/] {escape(s.skill)} for {s.member_id}")


@admin.command(name="reject")
@actor_option
@click.argument("submission_id")
@click.option("--reason", default="")
@click.pass_context
def reject_submission(ctx, actor_id, submission_id, reason):
    """Reject a skill submission."""
    s = _service(ctx).moderation.reject_skill(_actor(ctx, actor_id), submission_id, reason)
    console.print(f"[red]Rejected[/] {escape(s.skill)} for {s.member_id}")


@admin.command(name="reports")
@actor_option
@click.option("--status", default="pending", type=click.Choice(["pending", "resolved", "dismissed", "all"]))
@click.pass_context
def list_reports(ctx, actor_id, status):
    """List member reports."""
    reports = _service(ctx).moderation.list_reports(_actor(ctx, actor_id), None if status == "all" else status)
    if not reports:
        console.print("[yellow]No reports.[/]")
        return
    table = Table(title=f"Reports ({len(reports)})")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Reported", no_wrap=True)
    table.add_column("Reporter", no_wrap=True)
    table.add_column("Reason", style="cyan")
    table.add_column("Status")
    for r in reports:
        table.add_row(r.id, r.reported_id, r.reporter_id, r.reason.value, r.status.value)
    console.print(table)


@admin.command()
@actor_option
@click.argument("report_id")
@click.pass_context
def resolve(ctx, actor_id, report_id):
    """Mark a report as resolved."""
    r = _service(ctx).moderation.resolve_report(_actor(ctx, actor_id), report_id)
    console.print(f"[green]Resolved[/] report {r.id}")


@admin.command()
@actor_option
@click.argument("report_id")
@click.pass_context
def dismiss(ctx, actor_id, report_id):
    """Dismiss a report."""
    r = _service(ctx).moderation.dismiss_report(_actor(ctx, actor_id), report_id)
    console.print(f"Dismissed report {r.id}")


@admin.command()
@actor_option
@click.argument("member_id")
@click.pass_context
def ban(ctx, actor_id, member_id):
    """Ban a member and cancel their open swap requests."""
    result = _service(ctx).moderation.ban_member(_actor(ctx, actor_id), member_id)
    state = "banned" if result.newly_banned else "already banned"
    console.print(f"[red]{member_id} {state}[/]; {len(result.outcomes)} open requests processed")
    for outcome in result.outcomes:
        if outcome.ok:
            console.print(f"  [green]OK[/] {outcome.request_id} {outcome.previous_status.value} -> {outcome.status.value}")
        else:
            console.print(f"  [red]FAILED[/] {outcome.request_id} ({outcome.error}): {escape(outcome.message)}")
    if not result.complete:
        console.print("[yellow]Some requests could not be cancelled; run the ban again to retry.[/]")


@admin.command()
@actor_option
@click.argument("member_id")
@click.pass_context
def unban(ctx, actor_id, member_id):
    """Lift a member's ban."""
    _service(ctx).moderation.unban_member(_actor(ctx, actor_id), member_id)
    console.print(f"[green]{member_id} unbanned[/]")


@admin.command(name="force-cancel")
@actor_option
@click.argument("request_id")
@click.pass_context
def force_cancel(ctx, actor_id, request_id):
    """Cancel a pending or accepted swap request."""
    r = _service(ctx).force_cancel(_actor(ctx, actor_id), request_id)
    console.print(f"Swap request {r.id} is now [dim]{r.status.value}[/]")


@admin.command()
@actor_option
@click.argument("message")
@click.pass_context
def broadcast(ctx, actor_id, message):
    """Send a platform-wide message."""
    event = _service(ctx).moderation.broadcast(_actor(ctx, actor_id), message)
    console.print(f"[green]Message sent[/] to {len(event.subject_ids)} members")


@admin.command()
@actor_option
@click.pass_context
def stats(ctx, actor_id):
    """Show platform statistics."""
    from dataclasses import asdict

    s = _service(ctx).reports.platform_stats(_actor(ctx, actor_id))
    table = Table(title="Platform statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    for key, value in asdict(s).items():
        table.add_row(key.replace("_", " "), "-" if value is None else str(value))
    console.print(table)


@admin.command(name="report")
@actor_option
@click.argument("kind", type=click.Choice(["user_activity", "swap_statistics", "feedback_logs", "platform_overview"]))
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "csv"]))
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
@click.pass_context
def build_report(ctx, actor_id, kind, fmt, output):
    """Download a platform report."""
    text = _service(ctx).reports.build_report(_actor(ctx, actor_id), kind, fmt)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        console.print(f"[green]Report written to:[/] {output}")
    else:
        click.echo(text)


@admin.command()
@actor_option
@click.option("--actor", "filter_actor", default=None, help="Only entries by this member")
@click.option("--action", default=None, help="Only this action, e.g. request.accepted")
@click.option("--limit", default=50, show_default=True)
@click.pass_context
def audit(ctx, actor_id, filter_actor, action, limit):
    """Show recent audit log entries."""
    from skillswap.auth.permissions import require_admin

    svc = _service(ctx)
    require_admin(_actor(ctx, actor_id))
    entries = svc.audit.get_events(actor=filter_actor, action=action, limit=limit)
    if not entries:
        console.print("[yellow]No audit entries.[/]")
        return
    table = Table(title=f"Audit log ({len(entries)})")
    table.add_column("Time", style="dim")
    table.add_column("Actor", no_wrap=True)
    table.add_column("Action", style="cyan")
    table.add_column("Resource")
    for e in entries:
        table.add_row(e.timestamp[:19], e.actor, e.action, f"{e.resource_type}:{e.resource_id}")
    console.print(table)


if __name__ == "__main__":
    main()
