"""
Leaderboard ranking rule

Shared by the durable aggregation and the incremental cache so that both
produce exactly the same order:
1) higher total score first
2) earlier last submission wins ties
3) username in lexical order
"""
from typing import Iterable, List

from quizboard.schemas.leaderboard import LeaderboardEntry


def ranking_key(entry: LeaderboardEntry):
    return (-entry.total_score, entry.last_submission_at, entry.username)


def ranks_before(a: LeaderboardEntry, b: LeaderboardEntry) -> bool:
    return ranking_key(a) < ranking_key(b)


def sort_leaderboard(entries: Iterable[LeaderboardEntry]) -> List[LeaderboardEntry]:
    return sorted(entries, key=ranking_key)
