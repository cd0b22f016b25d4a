"""SkillSwap — swap request lifecycle and matching engine for a skill-exchange marketplace."""

__version__ = "0.1.0"
