"""Matching Engine — candidate discovery and browse search."""

from skillswap.matching.engine import Match, MatchEngine, MatchKind, rank_matches
from skillswap.matching.search import SearchField, search_profiles

__all__ = ["Match", "MatchEngine", "MatchKind", "SearchField", "rank_matches", "search_profiles"]
