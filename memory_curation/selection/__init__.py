from .member_selector import Candidate, VacationMemberSelector, ranking_score, selection_key
from .similarity import phash_distance, seconds_between

__all__ = ["Candidate", "VacationMemberSelector", "ranking_score", "selection_key", "phash_distance", "seconds_between"]
