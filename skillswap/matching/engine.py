"""Match engine — pairs a member with candidates whose skills complement theirs.

Pure computation over a catalog of profiles. No side effects.

For each public, non-banned candidate other than the member, two predicates
are evaluated with case-insensitive substring matching:

- can-help: the candidate wants something the member offers
- can-learn: the candidate offers something the member wants

A candidate satisfying both is a ``mutual`` match. Results are ordered
mutual first, then by candidate rating (highest first), then by id.

The scan is O(members x skills) per query, which is fine for a small
community. An inverted skill -> member index can replace the catalog scan
without changing :meth:`MatchEngine.find_matches`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from skillswap.profiles.models import Member, SkillSet
from skillswap.profiles.store import ProfileStore


class MatchKind(str, Enum):
    """How a candidate complements the member."""

    mutual = "mutual"
    can_help = "can-help"
    can_learn = "can-learn"


@dataclass(frozen=True)
class Match:
    """A candidate member and the skills to propose in a swap request.

    ``suggested_skill`` is one of the member's offered skills (the request's
    skill-offered). ``learnable_skill`` is the candidate's offered skill the
    member wants, when there is one (the request's skill-wanted).
    """

    candidate: Member
    suggested_skill: Optional[str]
    kind: MatchKind
    learnable_skill: Optional[str] = None


def skills_overlap(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction."""
    a_key, b_key = SkillSet.key(a), SkillSet.key(b)
    return a_key in b_key or b_key in a_key


def _first_overlap(source: SkillSet, targets: SkillSet) -> Optional[str]:
    """Return the first skill in *source* overlapping any skill in *targets*."""
    for skill in source:
        if any(skills_overlap(skill, t) for t in targets):
            return skill
    return None


def evaluate_candidate(member: Member, candidate: Member) -> Optional[Match]:
    """Compute the match between *member* and one candidate, or None."""
    helps = _first_overlap(member.skills_offered, candidate.skills_wanted)
    learns = _first_overlap(candidate.skills_offered, member.skills_wanted)

    if helps is not None and learns is not None:
        kind = MatchKind.mutual
    elif helps is not None:
        kind = MatchKind.can_help
    elif learns is not None:
        kind = MatchKind.can_learn
    else:
        return None

    suggested = helps
    if suggested is None:
        suggested = next(iter(member.skills_offered), None)

    return Match(candidate=candidate, suggested_skill=suggested, kind=kind, learnable_skill=learns)


def rank_matches(member: Member, catalog: Iterable[Member], limit: int = 0) -> list[Match]:
    """Evaluate every eligible candidate in *catalog* and order the matches."""
    matches: list[Match] = []
    for candidate in catalog:
        if candidate.id == member.id or candidate.banned or not candidate.is_public:
            continue
        match = evaluate_candidate(member, candidate)
        if match is not None:
            matches.append(match)

    matches.sort(
        key=lambda m: (m.kind != MatchKind.mutual, -m.candidate.rating, m.candidate.id)
    )
    if limit > 0:
        return matches[:limit]
    return matches


class MatchEngine:
    """Finds swap partners for a member among public profiles.

    Usage:
        engine = MatchEngine(profiles)
        matches = engine.find_matches(member)
    """

    def __init__(self, profiles: ProfileStore, limit: int = 0) -> None:
        self._profiles = profiles
        self._limit = limit

    def find_matches(self, member: Member) -> list[Match]:
        """Return ordered matches for *member* over the public catalog."""
        return rank_matches(member, self._profiles.list_public(), limit=self._limit)
