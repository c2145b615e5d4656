"""
Player leaderboard and league tables.
"""
from typing import Dict, Iterable, List, Optional, Sequence

from .elo import INITIAL_ELO, compute_elo_ratings
from .models import BracketMatch, LeagueMatch, LeagueStanding, Player, PlayerRanking, Team

POINTS_PER_WIN = 3


def build_player_rankings(players: Iterable[Player], teams: Sequence[Team],
                          matches: Sequence[BracketMatch], league_matches: Sequence[LeagueMatch],
                          ratings: Optional[Dict[str, int]] = None) -> List[PlayerRanking]:
    """
    Leaderboard of every player who took part in a completed match.

    Sorted by Elo, then wins, then win rate, then matches played, all
    descending. Pass ratings to reuse a map already computed by
    compute_elo_ratings() for the same history.
    """
    if ratings is None:
        ratings = compute_elo_ratings(teams, matches, league_matches)

    completed_matches = [m for m in matches if m.is_completed]
    completed_league_matches = [m for m in league_matches if m.is_completed]

    rankings = []
    for player in players:
        team_ids = {team.id for team in teams if player.id in team.player_ids}
        ranking = PlayerRanking(player_id=player.id,
                                elo_rating=ratings.get(player.id, INITIAL_ELO))
        tournament_ids = set()
        league_ids = set()

        for match in completed_matches:
            in_team1 = match.team1_id in team_ids
            in_team2 = match.team2_id in team_ids
            if not in_team1 and not in_team2:
                continue
            tournament_ids.add(match.tournament_id)
            if match.winner_id:
                own_team_id = match.team1_id if in_team1 else match.team2_id
                if match.winner_id == own_team_id:
                    ranking.wins += 1
                else:
                    ranking.losses += 1

        for match in completed_league_matches:
            in_team1 = player.id in match.team1_player_ids
            in_team2 = player.id in match.team2_player_ids
            if not in_team1 and not in_team2:
                continue
            league_ids.add(match.league_id)
            if (match.winner_team_index == 1 and in_team1) or (match.winner_team_index == 2 and in_team2):
                ranking.wins += 1
            elif match.winner_team_index:
                ranking.losses += 1

        ranking.tournaments_played = len(tournament_ids)
        ranking.leagues_played = len(league_ids)
        if ranking.total_matches or tournament_ids or league_ids:
            rankings.append(ranking)

    rankings.sort(key=lambda r: (-r.elo_rating, -r.wins, -r.win_rate, -r.total_matches))
    return rankings


def calculate_league_standings(participant_ids: Sequence[str], league_matches: Iterable[LeagueMatch],
                               league_id: Optional[str] = None) -> List[LeagueStanding]:
    """
    League table: three points per win, ranked by points, point difference
    and points scored.

    The side with the higher score wins; a drawn or unscored match counts as a
    win for side 2. Players outside participant_ids are ignored.
    """
    table = {player_id: LeagueStanding(player_id=player_id) for player_id in participant_ids}

    for match in league_matches:
        if not match.is_completed:
            continue
        if league_id is not None and match.league_id != league_id:
            continue
        score1 = match.score1 or 0
        score2 = match.score2 or 0
        team1_won = score1 > score2

        for player_ids, scored, conceded, won in (
            (match.team1_player_ids, score1, score2, team1_won),
            (match.team2_player_ids, score2, score1, not team1_won),
        ):
            for player_id in player_ids:
                standing = table.get(player_id)
                if standing is None:
                    continue
                standing.played += 1
                standing.points_scored += scored
                standing.points_conceded += conceded
                if won:
                    standing.won += 1
                    standing.points += POINTS_PER_WIN
                else:
                    standing.lost += 1

    return sorted(table.values(), key=lambda s: (-s.points, -s.diff, -s.points_scored))
