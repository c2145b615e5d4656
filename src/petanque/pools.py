"""
Pool phase of a tournament: splitting teams into pools, intra-pool round
robins, pool standings and the teams that qualify for the knockout phase.
"""
from typing import Dict, List, Optional, Sequence

from .models import BracketMatch, Pool, PoolMatch, PoolStanding
from .round_robin import circle_pairings


def distribute_teams_into_pools(team_ids: Sequence[str], pool_size: int) -> List[List[str]]:
    """
    Split teams into pools of pool_size, consuming the list in order.

    A remainder of two or more teams forms one smaller extra pool. A single
    leftover team joins the last full pool instead of sitting alone, unless
    there is no full pool at all, in which case the leftovers are the only pool.

    Raises:
        ValueError: If pool_size is not positive
    """
    if pool_size <= 0:
        raise ValueError(f"Pool size must be positive, got {pool_size}")

    team_ids = list(team_ids)
    pool_count = len(team_ids) // pool_size
    pools = [team_ids[i * pool_size:(i + 1) * pool_size] for i in range(pool_count)]

    remainder = team_ids[pool_count * pool_size:]
    if remainder:
        if len(remainder) >= 2 or not pools:
            pools.append(remainder)
        else:
            pools[-1].extend(remainder)

    return pools


def generate_pool_round_robin(team_ids: Sequence[str]) -> List[PoolMatch]:
    """Every team of the pool meets every other once (circle method)."""
    return [
        PoolMatch(team1_id=first, team2_id=second, round=round_number)
        for round_number, first, second in circle_pairings(team_ids)
    ]


def get_pool_name(index: int) -> str:
    """
    Letter name for a pool index: 0 -> "A", 25 -> "Z".

    Past 26 pools names continue spreadsheet-style ("AA", "AB", ...), so a
    name is never reused.
    """
    if index < 0:
        raise ValueError(f"Pool index must be non-negative, got {index}")
    name = ''
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        name = chr(ord('A') + remainder) + name
    return name


def generate_pools(team_ids: Sequence[str], pool_size: int) -> List[Pool]:
    """Named pools with their round-robin matches, ready to be persisted."""
    return [
        Pool(name=get_pool_name(index), team_ids=pool_team_ids,
             matches=generate_pool_round_robin(pool_team_ids))
        for index, pool_team_ids in enumerate(distribute_teams_into_pools(team_ids, pool_size))
    ]


def calculate_pool_standings(matches: Sequence[BracketMatch], pool_id: str) -> List[PoolStanding]:
    """
    Standings of one pool from its completed matches.

    Ranking: wins, then point differential, then points scored, all
    descending. Teams still tied keep the order in which they first appear in
    the matches. Teams without a completed match are not listed.
    """
    stats: Dict[str, PoolStanding] = {}

    for match in matches:
        if match.pool_id != pool_id or not match.is_completed:
            continue
        if not match.team1_id or not match.team2_id:
            continue

        team1 = stats.setdefault(match.team1_id, PoolStanding(team_id=match.team1_id))
        team2 = stats.setdefault(match.team2_id, PoolStanding(team_id=match.team2_id))
        score1 = match.score1 or 0
        score2 = match.score2 or 0

        team1.played += 1
        team2.played += 1
        team1.points_for += score1
        team1.points_against += score2
        team2.points_for += score2
        team2.points_against += score1

        if match.winner_id == match.team1_id:
            team1.wins += 1
            team2.losses += 1
        elif match.winner_id == match.team2_id:
            team2.wins += 1
            team1.losses += 1

    standings = list(stats.values())
    for standing in standings:
        standing.point_diff = standing.points_for - standing.points_against

    return sorted(standings, key=lambda s: (-s.wins, -s.point_diff, -s.points_for))


def select_pool_qualifiers(matches: Sequence[BracketMatch], qualifiers_per_pool: int = 1,
                           pool_ids: Optional[Sequence[str]] = None) -> List[str]:
    """
    Team ids advancing to the knockout phase, in bracket order.

    The top qualifiers_per_pool teams of every pool qualify. With two
    qualifiers and at least two pools, the winner of pool i is followed by the
    runner-up of pool n-1-i so teams from the same pool do not meet straight
    away; runners-up left over are appended. Otherwise qualifiers are listed
    pool by pool in rank order.
    """
    if pool_ids is None:
        pool_ids = sorted({m.pool_id for m in matches if m.pool_id})

    # (pool index, rank, team id)
    qualified = []
    for pool_index, pool_id in enumerate(pool_ids):
        standings = calculate_pool_standings(matches, pool_id)
        for rank, standing in enumerate(standings[:max(qualifiers_per_pool, 0)], start=1):
            qualified.append((pool_index, rank, standing.team_id))

    if qualifiers_per_pool == 2 and len(pool_ids) >= 2:
        firsts = [team_id for _, rank, team_id in qualified if rank == 1]
        seconds = [team_id for _, rank, team_id in qualified if rank == 2]
        knockout = []
        for i, team_id in enumerate(firsts):
            knockout.append(team_id)
            cross = len(seconds) - 1 - i
            if 0 <= cross < len(seconds):
                knockout.append(seconds[cross])
        knockout.extend(team_id for team_id in seconds if team_id not in knockout)
        return knockout

    return [team_id for _, _, team_id in qualified]
