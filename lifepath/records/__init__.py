"""Record management package."""

from lifepath.records.service import RecordNotFoundError, RecordService

__all__ = ["RecordNotFoundError", "RecordService"]
