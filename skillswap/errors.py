"""Error taxonomy shared by every SkillSwap component.

Each error carries a stable ``code`` for presentation layers and a
``retryable`` flag. Only :class:`Conflict` is retryable: the caller should
re-read the entity and decide whether to try again.
"""

from __future__ import annotations


class SkillSwapError(Exception):
    """Base class for all core errors."""

    code = "error"
    retryable = False


class NotFound(SkillSwapError):
    """An entity id is unknown."""

    code = "not_found"

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} '{entity_id}' not found")
        self.kind = kind
        self.entity_id = entity_id


class InvalidTransition(SkillSwapError):
    """A swap request state-machine rule was violated."""

    code = "invalid_transition"


class Conflict(SkillSwapError):
    """Optimistic-concurrency mismatch; refresh and retry."""

    code = "conflict"
    retryable = True


class Unauthorized(SkillSwapError):
    """The actor lacks the role or ownership required for the operation."""

    code = "unauthorized"


class ValidationError(SkillSwapError):
    """Malformed input."""

    code = "validation_error"


class AlreadyProcessed(SkillSwapError):
    """A moderation action was applied to an entity that is no longer pending."""

    code = "already_processed"


AlreadyResolved = AlreadyProcessed


class AlreadyRated(SkillSwapError):
    """The rater already rated this swap request."""

    code = "already_rated"
