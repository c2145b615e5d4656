"""
Round-robin schedule generation for leagues.

Tête-à-tête leagues use the circle method: every player meets every other
player exactly once. Doublette and triplette leagues pair up every possible
team at most once, greedily favouring the players who have played least, and
then spread the matches over rounds so nobody plays twice in the same round.
"""
import math
from typing import Hashable, Iterator, List, Sequence, Tuple

from .combinatorics import combinations
from .models import GeneratedMatch, TETE_A_TETE, DOUBLETTE, TRIPLETTES, team_size_for

# Placeholder opponent for odd-sized circles; never equal to a real id
_BYE = object()


def _unique(ids: Sequence[Hashable]) -> list:
    """Drop repeated ids, keeping first occurrences in order."""
    return list(dict.fromkeys(ids))


def circle_pairings(participant_ids: Sequence[Hashable]) -> Iterator[Tuple[int, Hashable, Hashable]]:
    """
    Yield (round_number, first, second) for a full round robin.

    Position 0 stays fixed while the others rotate by one place after each
    round; position i meets position n-1-i. A bye is added for odd counts and
    its pairings are dropped.
    """
    slots = _unique(participant_ids)
    if len(slots) < 2:
        return
    if len(slots) % 2:
        slots.append(_BYE)
    n = len(slots)

    for round_index in range(n - 1):
        for i in range(n // 2):
            first = slots[i]
            second = slots[n - 1 - i]
            if first is _BYE or second is _BYE:
                continue
            yield round_index + 1, first, second
        slots.insert(1, slots.pop())


def generate_tete_a_tete(player_ids: Sequence[str]) -> List[GeneratedMatch]:
    return [
        GeneratedMatch(
            team1_player_ids=[first],
            team2_player_ids=[second],
            round_number=round_number,
            type=TETE_A_TETE,
        )
        for round_number, first, second in circle_pairings(player_ids)
    ]


def _pair_teams(player_ids: Sequence[Hashable], team_size: int) -> List[Tuple[list, list]]:
    """
    Greedily pair disjoint teams, each team used at most once.

    Available teams are re-sorted before every pick by the total number of
    matches their players already have, ties going to the earlier team in
    enumeration order. The first disjoint pair in that order is taken.
    """
    teams = combinations(player_ids, team_size)
    members = [frozenset(team) for team in teams]
    play_count = {player_id: 0 for player_id in player_ids}
    available = list(range(len(teams)))
    pairs = []

    while len(available) >= 2:
        available.sort(key=lambda idx: (sum(play_count[p] for p in teams[idx]), idx))

        picked = None
        for i in range(len(available)):
            for j in range(i + 1, len(available)):
                if members[available[i]].isdisjoint(members[available[j]]):
                    picked = (i, j)
                    break
            if picked:
                break
        if picked is None:
            break

        i, j = picked
        team1, team2 = teams[available[i]], teams[available[j]]
        pairs.append((team1, team2))
        for player_id in team1 + team2:
            play_count[player_id] += 1
        # j > i, so removing j first keeps i valid
        del available[j]
        del available[i]

    return pairs


def assign_rounds(player_groups: Sequence[Sequence[Hashable]]) -> List[int]:
    """
    Give each match the smallest round not used by an earlier match that
    shares a player with it (greedy colouring in creation order).
    """
    groups = [set(group) for group in player_groups]
    rounds = []
    for i, players in enumerate(groups):
        used = {rounds[j] for j in range(i) if not players.isdisjoint(groups[j])}
        round_number = 1
        while round_number in used:
            round_number += 1
        rounds.append(round_number)
    return rounds


def generate_team_matches(player_ids: Sequence[str], team_size: int) -> List[GeneratedMatch]:
    """Doublette (team_size=2) or triplette (team_size=3) round robin."""
    match_type = DOUBLETTE if team_size == 2 else TRIPLETTES
    pairs = _pair_teams(_unique(player_ids), team_size)
    rounds = assign_rounds([team1 + team2 for team1, team2 in pairs])

    matches = [
        GeneratedMatch(
            team1_player_ids=team1,
            team2_player_ids=team2,
            round_number=round_number,
            type=match_type,
        )
        for (team1, team2), round_number in zip(pairs, rounds)
    ]
    # sorted() is stable, so creation order is kept within a round
    return sorted(matches, key=lambda m: m.round_number)


def generate_round_robin_matches(player_ids: Sequence[str], match_format: str) -> List[GeneratedMatch]:
    """
    Generate the full league schedule for the given format.

    Raises:
        ValueError: If the format is unknown
    """
    team_size = team_size_for(match_format)
    if team_size == 1:
        return generate_tete_a_tete(player_ids)
    return generate_team_matches(player_ids, team_size)


def estimate_match_count(player_count: int, match_format: str) -> int:
    """
    Number of matches generate_round_robin_matches() produces for
    player_count distinct players, for schedule previews.

    Tête-à-tête is C(n, 2). For team formats the greedy pairing uses every
    possible team except at most one, giving C(n, k) // 2 matches once there
    are enough players for two disjoint teams.
    """
    team_size = team_size_for(match_format)
    if player_count < 2:
        return 0
    if team_size == 1:
        return math.comb(player_count, 2)
    if player_count < 2 * team_size:
        return 0
    return math.comb(player_count, team_size) // 2
