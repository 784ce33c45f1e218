from database.repositories.base import BaseRepository
from database.repositories.candidate import CandidateRepository, candidate_to_snapshot
from database.repositories.posting import PostingRepository, posting_to_snapshot
from database.repositories.application import ApplicationRepository, application_to_view

__all__ = [
    'BaseRepository',
    'CandidateRepository',
    'PostingRepository',
    'ApplicationRepository',
    'candidate_to_snapshot',
    'posting_to_snapshot',
    'application_to_view',
]
