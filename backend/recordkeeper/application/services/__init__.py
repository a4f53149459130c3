from .version_allocator import VersionAllocator
from .history_recorder import HistoryRecorder
from .history_reader import HistoryReader
from .rollback_service import RollbackService
from .entity_record_service import EntityRecordService

__all__ = [
    "VersionAllocator",
    "HistoryRecorder",
    "HistoryReader",
    "RollbackService",
    "EntityRecordService",
]
