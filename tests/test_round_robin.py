"""
Unit tests for league round-robin generation.
"""
import pytest
import sys
import os
from collections import Counter, defaultdict
from itertools import combinations

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from petanque.round_robin import (
    circle_pairings,
    assign_rounds,
    generate_round_robin_matches,
    generate_tete_a_tete,
    generate_team_matches,
    estimate_match_count,
)


def players(n):
    return [f"P{i}" for i in range(1, n + 1)]


def sides(match):
    return (tuple(match.team1_player_ids), tuple(match.team2_player_ids))


def assert_no_player_twice_per_round(matches):
    by_round = defaultdict(list)
    for match in matches:
        by_round[match.round_number].extend(match.team1_player_ids + match.team2_player_ids)
    for round_number, round_players in by_round.items():
        assert len(round_players) == len(set(round_players)), f"Round {round_number}: {round_players}"


class TestCirclePairings:
    """Tests for the circle method."""

    def test_four_participants(self):
        """Position 0 is fixed and the rest rotate one place each round."""
        assert list(circle_pairings(["A", "B", "C", "D"])) == [
            (1, "A", "D"), (1, "B", "C"),
            (2, "A", "C"), (2, "D", "B"),
            (3, "A", "B"), (3, "C", "D"),
        ]

    def test_three_participants_drop_bye(self):
        """Odd counts get a bye whose pairings are dropped."""
        assert list(circle_pairings(["A", "B", "C"])) == [
            (1, "B", "C"),
            (2, "A", "C"),
            (3, "A", "B"),
        ]

    def test_fewer_than_two(self):
        assert list(circle_pairings([])) == []
        assert list(circle_pairings(["A"])) == []

    def test_bye_string_is_a_real_player(self):
        """A participant literally named like a bye still plays."""
        pairings = list(circle_pairings(["BYE", "__BYE__", "X"]))
        assert len(pairings) == 3


class TestTeteATete:
    """Tests for tête-à-tête schedules."""

    @pytest.mark.parametrize("n", range(2, 16))
    def test_every_pair_meets_once(self, n):
        ids = players(n)
        matches = generate_round_robin_matches(ids, 'tete-a-tete')

        assert len(matches) == n * (n - 1) // 2
        met = Counter(frozenset(m.team1_player_ids + m.team2_player_ids) for m in matches)
        assert set(met) == {frozenset(pair) for pair in combinations(ids, 2)}
        assert all(count == 1 for count in met.values())

    @pytest.mark.parametrize("n", range(2, 16))
    def test_no_player_twice_in_a_round(self, n):
        assert_no_player_twice_per_round(generate_round_robin_matches(players(n), 'tete-a-tete'))

    @pytest.mark.parametrize("n,rounds", [(4, 3), (5, 5), (6, 5), (7, 7)])
    def test_round_count(self, n, rounds):
        matches = generate_tete_a_tete(players(n))
        assert {m.round_number for m in matches} == set(range(1, rounds + 1))

    def test_match_fields(self):
        match = generate_tete_a_tete(["A", "B"])[0]
        assert match.team1_player_ids == ["A"]
        assert match.team2_player_ids == ["B"]
        assert match.round_number == 1
        assert match.type == 'tete-a-tete'

    def test_empty_and_single_roster(self):
        assert generate_round_robin_matches([], 'tete-a-tete') == []
        assert generate_round_robin_matches(["A"], 'tete-a-tete') == []

    def test_duplicate_ids_are_collapsed(self):
        """Nobody is scheduled against themself."""
        matches = generate_tete_a_tete(["A", "B", "A", "C"])
        assert len(matches) == 3
        assert all(m.team1_player_ids != m.team2_player_ids for m in matches)

    def test_head_to_head_alias(self):
        assert len(generate_round_robin_matches(players(4), 'head_to_head')) == 6


class TestTeamMatches:
    """Tests for doublette and triplette schedules."""

    def test_four_players_doublette(self):
        """Each of the three possible splits is played once, one per round."""
        matches = generate_round_robin_matches(["A", "B", "C", "D"], 'doublette')

        assert [(sides(m), m.round_number) for m in matches] == [
            ((("A", "B"), ("C", "D")), 1),
            ((("A", "C"), ("B", "D")), 2),
            ((("A", "D"), ("B", "C")), 3),
        ]
        assert all(m.type == 'doublette' for m in matches)

    def test_five_players_doublette(self):
        """Least-played teams are picked first, leaving every player on 4 matches."""
        matches = generate_round_robin_matches(["A", "B", "C", "D", "E"], 'doublette')

        assert [sides(m) for m in matches] == [
            (("A", "B"), ("C", "D")),
            (("A", "E"), ("B", "C")),
            (("D", "E"), ("A", "C")),
            (("B", "D"), ("C", "E")),
            (("A", "D"), ("B", "E")),
        ]
        assert [m.round_number for m in matches] == [1, 2, 3, 4, 5]
        plays = Counter(p for m in matches for p in m.team1_player_ids + m.team2_player_ids)
        assert set(plays.values()) == {4}

    def test_six_players_triplettes(self):
        """Every triplette faces its complement exactly once."""
        ids = ["A", "B", "C", "D", "E", "F"]
        matches = generate_round_robin_matches(ids, 'triplettes')

        assert len(matches) == 10
        assert sides(matches[0]) == (("A", "B", "C"), ("D", "E", "F"))
        assert sides(matches[1]) == (("A", "B", "D"), ("C", "E", "F"))
        assert [m.round_number for m in matches] == list(range(1, 11))
        for match in matches:
            assert set(match.team1_player_ids) | set(match.team2_player_ids) == set(ids)
            assert match.type == 'triplettes'

    def test_too_few_players(self):
        """Fewer than two full teams gives no matches."""
        assert generate_round_robin_matches(["A", "B", "C"], 'doublette') == []
        assert generate_round_robin_matches(players(5), 'triplettes') == []
        assert generate_round_robin_matches([], 'triplettes') == []

    @pytest.mark.parametrize("match_format,size", [('doublette', 2), ('triplettes', 3)])
    @pytest.mark.parametrize("n", [6, 7, 8, 9])
    def test_schedule_invariants(self, match_format, size, n):
        matches = generate_round_robin_matches(players(n), match_format)

        assert matches
        teams = []
        for match in matches:
            assert len(match.team1_player_ids) == size
            assert len(match.team2_player_ids) == size
            assert not set(match.team1_player_ids) & set(match.team2_player_ids)
            teams.append(frozenset(match.team1_player_ids))
            teams.append(frozenset(match.team2_player_ids))
        # A concrete team is never used twice
        assert len(teams) == len(set(teams))
        assert_no_player_twice_per_round(matches)

    @pytest.mark.parametrize("n", [6, 8])
    def test_output_sorted_by_round(self, n):
        rounds = [m.round_number for m in generate_round_robin_matches(players(n), 'doublette')]
        assert rounds == sorted(rounds)
        assert rounds[0] == 1

    def test_deterministic(self):
        """Same roster, same schedule."""
        first = generate_round_robin_matches(players(8), 'doublette')
        second = generate_round_robin_matches(players(8), 'doublette')
        assert [(sides(m), m.round_number) for m in first] == [(sides(m), m.round_number) for m in second]

    def test_input_not_mutated(self):
        ids = players(6)
        generate_team_matches(ids, 2)
        assert ids == players(6)

    def test_unknown_format_raises(self):
        with pytest.raises(ValueError):
            generate_round_robin_matches(players(4), 'quadrette')


class TestAssignRounds:
    """Tests for greedy round assignment."""

    def test_disjoint_matches_share_a_round(self):
        assert assign_rounds([["A", "B"], ["C", "D"], ["A", "C"]]) == [1, 1, 2]

    def test_smallest_free_round_is_taken(self):
        assert assign_rounds([["A", "B"], ["A", "C"], ["B", "D"], ["D", "E"]]) == [1, 2, 2, 1]

    def test_empty(self):
        assert assign_rounds([]) == []


class TestEstimateMatchCount:
    """Tests for the match count preview."""

    @pytest.mark.parametrize("match_format", ['tete-a-tete', 'doublette', 'triplettes'])
    @pytest.mark.parametrize("n", range(2, 16))
    def test_matches_generator(self, match_format, n):
        assert estimate_match_count(n, match_format) == len(generate_round_robin_matches(players(n), match_format))

    def test_known_values(self):
        assert estimate_match_count(4, 'tete-a-tete') == 6
        assert estimate_match_count(4, 'doublette') == 3
        assert estimate_match_count(6, 'triplettes') == 10

    def test_large_leagues(self):
        """Previews for big rosters come from the closed form, without building teams."""
        assert estimate_match_count(40, 'triplettes') == 4940
        assert estimate_match_count(1000, 'doublette') == 249750
        assert estimate_match_count(1000, 'tete-a-tete') == 499500

    def test_not_enough_players_for_two_teams(self):
        assert estimate_match_count(3, 'doublette') == 0
        assert estimate_match_count(5, 'triplettes') == 0

    def test_small_counts(self):
        assert estimate_match_count(0, 'tete-a-tete') == 0
        assert estimate_match_count(1, 'doublette') == 0
        assert estimate_match_count(-3, 'tete-a-tete') == 0

    def test_unknown_format_raises(self):
        with pytest.raises(ValueError):
            estimate_match_count(4, 'mixed')
