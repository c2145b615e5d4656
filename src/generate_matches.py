"""
Print a league round robin or a pool draw from a YAML roster.

Usage:
    python src/generate_matches.py players.yaml --format doublette
    python src/generate_matches.py teams.yaml --pool-size 4

The roster is either a plain YAML list of ids or a mapping with a
'players' (or 'teams') list.
"""
import argparse
import sys
import yaml
from petanque.models import normalize_format
from petanque.round_robin import generate_round_robin_matches, estimate_match_count
from petanque.pools import generate_pools


def load_roster(file_path, key='players'):
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file)
    if not data:
        return []
    if isinstance(data, dict):
        data = data.get(key) or data.get('teams') or data.get('players') or []
    return [str(item) for item in data]


def format_side(player_ids):
    return ' + '.join(player_ids)


def print_league_schedule(player_ids, match_format):
    matches = generate_round_robin_matches(player_ids, match_format)
    expected = estimate_match_count(len(player_ids), match_format)
    if len(matches) != expected:
        print(f"Warning: generated {len(matches)} matches, expected {expected}", file=sys.stderr)

    current_round = None
    for match in matches:
        if match.round_number != current_round:
            if current_round is not None:
                print()
            print(f"# Round {match.round_number}")
            current_round = match.round_number
        print(f"{format_side(match.team1_player_ids)} vs {format_side(match.team2_player_ids)}")
    return matches


def print_pools(team_ids, pool_size):
    pools = generate_pools(team_ids, pool_size)
    first_pool = True
    for pool in pools:
        if not first_pool:
            print()
        print(f"# Pool {pool.name}: {', '.join(pool.team_ids)}")
        for match in pool.matches:
            print(f"Round {match.round}: {match.team1_id} vs {match.team2_id}")
        first_pool = False
    return pools


def main(argv=None):
    parser = argparse.ArgumentParser(description='Generate pétanque league schedules and pools.')
    parser.add_argument('roster', help='YAML file listing player or team ids')
    parser.add_argument('--format', dest='match_format', default='tete-a-tete',
                        help='tete-a-tete, doublette or triplettes (default: tete-a-tete)')
    parser.add_argument('--pool-size', type=int, default=None,
                        help='Draw pools of this size from team ids instead of a league schedule')
    args = parser.parse_args(argv)

    try:
        if args.pool_size is not None:
            team_ids = load_roster(args.roster, key='teams')
            if not team_ids:
                print("No teams loaded.", file=sys.stderr)
                return 1
            print_pools(team_ids, args.pool_size)
        else:
            match_format = normalize_format(args.match_format)
            player_ids = load_roster(args.roster, key='players')
            if len(player_ids) < 2:
                print("Warning: fewer than 2 players, no matches to generate.", file=sys.stderr)
                return 0
            print_league_schedule(player_ids, match_format)
    except (OSError, yaml.YAMLError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
