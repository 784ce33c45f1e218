from .base import Base, JsonDocument
from .candidate import CandidateProfileRecord
from .posting import JobPostingRecord
from .application import JobApplicationRecord

__all__ = [
    'Base',
    'JsonDocument',
    'CandidateProfileRecord',
    'JobPostingRecord',
    'JobApplicationRecord',
]
