"""Free-text browse search over public profiles."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from skillswap.errors import ValidationError
from skillswap.profiles.models import Member


class SearchField(str, Enum):
    """Which part of a profile a search term is matched against."""

    all = "all"
    skills_offered = "skills-offered"
    skills_wanted = "skills-wanted"
    location = "location"


def search_profiles(
    catalog: Iterable[Member],
    term: str = "",
    field: SearchField | str = SearchField.all,
) -> list[Member]:
    """Return members whose selected field contains *term* (case-insensitive).

    An empty term matches everyone. Banned and private members are never
    returned.
    """
    try:
        field = SearchField(field)
    except ValueError:
        raise ValidationError(f"Unknown search field: '{field}'") from None

    needle = term.strip().casefold()
    results = []
    for profile in catalog:
        if profile.banned or not profile.is_public:
            continue
        if not needle:
            results.append(profile)
            continue

        matches_name = needle in profile.display_name.casefold()
        matches_offered = any(needle in s.casefold() for s in profile.skills_offered)
        matches_wanted = any(needle in s.casefold() for s in profile.skills_wanted)
        matches_location = needle in profile.location.casefold()

        if field == SearchField.skills_offered:
            hit = matches_offered
        elif field == SearchField.skills_wanted:
            hit = matches_wanted
        elif field == SearchField.location:
            hit = matches_location
        else:
            hit = matches_name or matches_offered or matches_wanted or matches_location

        if hit:
            results.append(profile)
    return results
