"""File-backed record storage with compare-and-set semantics."""

from skillswap.storage.json_table import JsonTable, new_id, utcnow

__all__ = ["JsonTable", "new_id", "utcnow"]
