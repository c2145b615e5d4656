"""
Elo ratings replayed from match history.

Implements the standard Elo rating system applied to teams:
- Team rating: mean of its players' current ratings
- Expected score: E = 1 / (1 + 10^((R_opp - R_self) / 400))
- Player update: R_new = round(R_old + K * (S - E)), with S and E taken at
  team level so every player of a team moves by the same amount

Ratings are never stored. compute_elo_ratings() rebuilds them from scratch
on every call.
"""
import math
from datetime import datetime, timezone
from typing import Dict, Iterable, Sequence

from .models import BracketMatch, LeagueMatch, Team

INITIAL_ELO = 1000
K_FACTOR = 32

# Sorts league matches without a timestamp after all the others
_NO_TIMESTAMP = datetime.max.replace(tzinfo=timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (1.5 -> 2, -1.5 -> -1)."""
    return math.floor(value + 0.5)


def expected_score(rating_a: float, rating_b: float) -> float:
    """Expected score of side A against side B, between 0 and 1."""
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / 400.0))


class EloCalculator:
    """
    Running ratings for a single replay of match history.

    Players are added at INITIAL_ELO the first time they show up.
    """

    def __init__(self, k_factor: int = K_FACTOR, initial_elo: int = INITIAL_ELO):
        self.k_factor = k_factor
        self.initial_elo = initial_elo
        self.ratings: Dict[str, int] = {}

    def get_rating(self, player_id: str) -> int:
        return self.ratings.get(player_id, self.initial_elo)

    def average_rating(self, player_ids: Sequence[str]) -> float:
        if not player_ids:
            return self.initial_elo
        return sum(self.get_rating(p) for p in player_ids) / len(player_ids)

    def record_match(self, team1_player_ids: Sequence[str], team2_player_ids: Sequence[str],
                     winner_team_index: int):
        """
        Update every player of both sides after a match.

        Args:
            team1_player_ids: Players of side 1
            team2_player_ids: Players of side 2
            winner_team_index: 1 or 2
        """
        team1 = list(dict.fromkeys(team1_player_ids))
        team2 = list(dict.fromkeys(team2_player_ids))
        for player_id in team1 + team2:
            self.ratings.setdefault(player_id, self.initial_elo)

        team1_avg = self.average_rating(team1)
        team2_avg = self.average_rating(team2)
        expected1 = expected_score(team1_avg, team2_avg)
        expected2 = expected_score(team2_avg, team1_avg)
        actual1 = 1 if winner_team_index == 1 else 0
        actual2 = 1 if winner_team_index == 2 else 0

        for player_id in team1:
            self.ratings[player_id] = round_half_up(
                self.ratings[player_id] + self.k_factor * (actual1 - expected1))
        for player_id in team2:
            self.ratings[player_id] = round_half_up(
                self.ratings[player_id] + self.k_factor * (actual2 - expected2))

    def get_all_ratings(self) -> Dict[str, int]:
        return self.ratings.copy()


def _rated_bracket_matches(matches: Iterable[BracketMatch]):
    completed = [
        m for m in matches
        if m.is_completed and m.winner_id and m.team1_id and m.team2_id
    ]
    return sorted(completed, key=lambda m: m.round)


def _league_match_time(match: LeagueMatch) -> datetime:
    created_at = match.created_at
    if created_at is None:
        return _NO_TIMESTAMP
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=timezone.utc)
    return created_at


def _rated_league_matches(league_matches: Iterable[LeagueMatch]):
    completed = [
        m for m in league_matches
        if m.is_completed and m.winner_team_index in (1, 2)
    ]
    return sorted(completed, key=_league_match_time)


def compute_elo_ratings(teams: Iterable[Team], matches: Iterable[BracketMatch],
                        league_matches: Iterable[LeagueMatch]) -> Dict[str, int]:
    """
    Compute every player's rating from the full match history.

    Tournament matches are replayed first, by ascending round, then league
    matches by ascending creation time. Only completed matches with a winner
    count. Tournament matches whose teams are unknown, or whose winner is
    neither team, and league matches with an empty side are skipped.

    Returns:
        Player id -> rating, for players of at least one rated match. Other
        players should be shown at INITIAL_ELO.
    """
    calculator = EloCalculator()
    team_lookup = {team.id: team for team in teams}

    for match in _rated_bracket_matches(matches):
        team1 = team_lookup.get(match.team1_id)
        team2 = team_lookup.get(match.team2_id)
        if team1 is None or team2 is None:
            continue
        if match.winner_id == match.team1_id:
            winner_team_index = 1
        elif match.winner_id == match.team2_id:
            winner_team_index = 2
        else:
            continue
        if not team1.player_ids or not team2.player_ids:
            continue
        calculator.record_match(team1.player_ids, team2.player_ids, winner_team_index)

    for match in _rated_league_matches(league_matches):
        if not match.team1_player_ids or not match.team2_player_ids:
            continue
        calculator.record_match(match.team1_player_ids, match.team2_player_ids,
                                match.winner_team_index)

    return calculator.get_all_ratings()
