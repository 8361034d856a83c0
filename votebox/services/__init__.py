# votebox/services/__init__.py

from votebox.services.accounts import AccountService
from votebox.services.candidates import CandidateService
from votebox.services.elections import ElectionService
from votebox.services.results import ResultsService, TallyEntry
from votebox.services.voting import VoteReceipt, VotingService

__all__ = [
    "AccountService",
    "CandidateService",
    "ElectionService",
    "ResultsService",
    "TallyEntry",
    "VoteReceipt",
    "VotingService",
]
