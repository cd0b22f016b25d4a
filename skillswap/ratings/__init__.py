"""Rating Aggregator — post-swap ratings and running averages."""

from skillswap.ratings.aggregator import RatingAggregator, validate_score

__all__ = ["RatingAggregator", "validate_score"]
