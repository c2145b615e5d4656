"""
Flask web application exposing the pétanque scheduling and ranking core.

Records live as YAML lists in DATA_DIR. Generated schedules are written back
as pending matches; standings and ratings are recomputed on every request.
"""
import os
import random
import yaml
from datetime import datetime, timezone
from filelock import FileLock
from flask import Flask, request, jsonify
from petanque.models import BracketMatch, LeagueMatch, Player, Team, normalize_format
from petanque.round_robin import estimate_match_count, generate_round_robin_matches
from petanque.pools import generate_pools, calculate_pool_standings, select_pool_qualifiers
from petanque.elo import compute_elo_ratings
from petanque.rankings import build_player_rankings, calculate_league_standings

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('PETANQUE_DATA_DIR', os.path.join(BASE_DIR, 'data'))

PLAYERS_FILE = 'players.yaml'
TEAMS_FILE = 'teams.yaml'
MATCHES_FILE = 'matches.yaml'
LEAGUES_FILE = 'leagues.yaml'
LEAGUE_MATCHES_FILE = 'league_matches.yaml'
SETTINGS_FILE = 'settings.yaml'

# Largest roster accepted by the match count preview
MAX_ESTIMATE_PLAYERS = 1000


class DataFileError(Exception):
    """A stored data file exists but cannot be read as a list of records."""


def _file_path(filename: str) -> str:
    """Resolve a data file against the current DATA_DIR."""
    return os.path.join(DATA_DIR, filename)


def _data_lock() -> FileLock:
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(_file_path('.lock'), timeout=10)


def _load_yaml(filename: str):
    path = _file_path(filename)
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return None


def _save_yaml(filename: str, data):
    os.makedirs(DATA_DIR, exist_ok=True)
    with open(_file_path(filename), 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def _read_rows(filename: str) -> list:
    """
    Load the rows of a data file.

    A missing file is empty. An unparsable file, or one that does not hold a
    list, raises DataFileError; writers must not overwrite such a file.
    """
    path = _file_path(filename)
    if not os.path.exists(path):
        return []
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DataFileError(f'Failed to parse {filename}: {e}') from e
    if data is None:
        return []
    if not isinstance(data, list):
        raise DataFileError(f'Expected a list of records in {filename}, got {type(data).__name__}')
    return data


def _load_rows(filename: str) -> list:
    try:
        return _read_rows(filename)
    except DataFileError as e:
        app.logger.warning(str(e))
        return []


def _load_records(filename: str, record_cls) -> list:
    """Build records from YAML rows, skipping (and logging) malformed ones."""
    records = []
    for row in _load_rows(filename):
        try:
            records.append(record_cls.from_dict(row))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            app.logger.warning(f'Skipping malformed record in {filename}: {row!r} ({e})')
    return records


def load_players():
    return _load_records(PLAYERS_FILE, Player)


def load_teams():
    return _load_records(TEAMS_FILE, Team)


def load_matches():
    return _load_records(MATCHES_FILE, BracketMatch)


def load_league_matches():
    return _load_records(LEAGUE_MATCHES_FILE, LeagueMatch)


def load_leagues() -> list:
    """Load league definitions (id, name, participant_ids, match_format)."""
    return [row for row in _load_rows(LEAGUES_FILE) if isinstance(row, dict) and 'id' in row]


def find_league(league_id: str):
    return next((league for league in load_leagues() if str(league['id']) == league_id), None)


def get_default_settings():
    """Return default settings."""
    return {
        'pool_size': 4,
        'qualifiers_per_pool': 1,
        'match_format': 'tete-a-tete',
    }


def load_settings():
    """Load settings from YAML file, merging with defaults."""
    defaults = get_default_settings()
    data = _load_yaml(SETTINGS_FILE)
    if not isinstance(data, dict):
        return defaults
    return {**defaults, **data}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_unrated_matches(teams, matches, league_matches):
    """Warn about completed matches the rating engine will skip."""
    team_ids = {team.id for team in teams}
    for match in matches:
        if not match.is_completed:
            continue
        if not match.team1_id or not match.team2_id or not match.winner_id:
            app.logger.warning(f'Match {match.id} is completed but lacks teams or a winner; not rated')
        elif match.team1_id not in team_ids or match.team2_id not in team_ids:
            app.logger.warning(f'Match {match.id} references an unknown team; not rated')
        elif match.winner_id not in (match.team1_id, match.team2_id):
            app.logger.warning(f'Match {match.id} winner {match.winner_id} is not one of its teams; not rated')
    for match in league_matches:
        if not match.is_completed:
            continue
        if match.winner_team_index not in (1, 2):
            app.logger.warning(f'League match {match.id} is completed without a winner; not rated')
        elif not match.team1_player_ids or not match.team2_player_ids:
            app.logger.warning(f'League match {match.id} has an empty side; not rated')


@app.route('/api/estimate', methods=['GET'])
def api_estimate():
    """Preview how many matches a league round robin will contain."""
    match_format = request.args.get('format') or load_settings()['match_format']
    try:
        players = int(request.args.get('players', 0))
        if players > MAX_ESTIMATE_PLAYERS:
            raise ValueError(f'At most {MAX_ESTIMATE_PLAYERS} players can be previewed.')
        count = estimate_match_count(players, match_format)
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    return jsonify({
        'success': True,
        'players': players,
        'format': normalize_format(match_format),
        'matches': count,
    })


@app.route('/api/leagues/<league_id>/schedule', methods=['POST'])
def api_generate_league_schedule(league_id):
    """Generate the league round robin and store it as pending league matches."""
    data = request.get_json(silent=True) or {}
    league = find_league(league_id) or {}
    player_ids = data.get('player_ids') or league.get('participant_ids')
    if not player_ids:
        return jsonify({'success': False, 'error': f'League "{league_id}" not found or has no participants.'}), 404
    match_format = data.get('format') or league.get('match_format') or load_settings()['match_format']

    try:
        generated = generate_round_robin_matches([str(p) for p in player_ids], match_format)
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    with _data_lock():
        try:
            rows = _read_rows(LEAGUE_MATCHES_FILE)
        except DataFileError as e:
            app.logger.error(f'Not scheduling league {league_id}: {e}')
            return jsonify({'success': False, 'error': str(e)}), 500
        if any(str(row.get('league_id')) == league_id for row in rows if isinstance(row, dict)):
            return jsonify({'success': False, 'error': f'League "{league_id}" already has matches.'}), 409
        created_at = _timestamp()
        for number, match in enumerate(generated, start=1):
            rows.append({
                'id': f'{league_id}-{number}',
                'league_id': league_id,
                'type': match.type,
                'team1_player_ids': list(match.team1_player_ids),
                'team2_player_ids': list(match.team2_player_ids),
                'round_number': match.round_number,
                'status': 'pending',
                'created_at': created_at,
            })
        _save_yaml(LEAGUE_MATCHES_FILE, rows)

    app.logger.info(f'Generated {len(generated)} {normalize_format(match_format)} matches for league {league_id}')
    return jsonify({'success': True, 'matches': [m.to_dict() for m in generated]})


@app.route('/api/leagues/<league_id>/standings', methods=['GET'])
def api_league_standings(league_id):
    league = find_league(league_id)
    if league is None:
        return jsonify({'success': False, 'error': f'League "{league_id}" not found.'}), 404
    participant_ids = [str(p) for p in league.get('participant_ids') or []]
    standings = calculate_league_standings(participant_ids, load_league_matches(), league_id)
    return jsonify({'success': True, 'standings': [s.to_dict() for s in standings]})


@app.route('/api/tournaments/<tournament_id>/pools', methods=['POST'])
def api_generate_pools(tournament_id):
    """Draw the pools of a tournament and store their matches."""
    data = request.get_json(silent=True) or {}
    team_ids = data.get('team_ids')
    if team_ids is None:
        team_ids = [team.id for team in load_teams() if team.tournament_id == tournament_id]
    team_ids = [str(t) for t in team_ids]
    if len(team_ids) < 2:
        return jsonify({'success': False, 'error': 'At least 2 teams are needed to build pools.'}), 400

    if data.get('draw'):
        random.shuffle(team_ids)

    try:
        pool_size = data.get('pool_size')
        if pool_size is None:
            pool_size = load_settings()['pool_size']
        pool_size = int(pool_size)
        pools = generate_pools(team_ids, pool_size)
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    with _data_lock():
        try:
            rows = _read_rows(MATCHES_FILE)
        except DataFileError as e:
            app.logger.error(f'Not drawing pools for tournament {tournament_id}: {e}')
            return jsonify({'success': False, 'error': str(e)}), 500
        if any(isinstance(row, dict) and str(row.get('tournament_id')) == tournament_id
               and row.get('phase') == 'pools' for row in rows):
            return jsonify({'success': False, 'error': 'Pools have already been drawn for this tournament.'}), 409
        for pool in pools:
            for number, match in enumerate(pool.matches, start=1):
                rows.append({
                    'id': f'{tournament_id}-{pool.name}-{number}',
                    'tournament_id': tournament_id,
                    'round': match.round,
                    'team1_id': match.team1_id,
                    'team2_id': match.team2_id,
                    'status': 'ongoing',
                    'pool_id': pool.name,
                    'phase': 'pools',
                })
        _save_yaml(MATCHES_FILE, rows)

    app.logger.info(f'Drew {len(pools)} pools for tournament {tournament_id}')
    return jsonify({'success': True, 'pools': [pool.to_dict() for pool in pools]})


def _pool_matches(tournament_id):
    return [m for m in load_matches() if m.tournament_id == tournament_id and m.pool_id]


@app.route('/api/tournaments/<tournament_id>/pools/<pool_id>/standings', methods=['GET'])
def api_pool_standings(tournament_id, pool_id):
    matches = _pool_matches(tournament_id)
    if not any(m.pool_id == pool_id for m in matches):
        return jsonify({'success': False, 'error': f'Pool "{pool_id}" not found.'}), 404
    standings = calculate_pool_standings(matches, pool_id)
    return jsonify({'success': True, 'pool': pool_id, 'standings': [s.to_dict() for s in standings]})


@app.route('/api/tournaments/<tournament_id>/qualifiers', methods=['GET'])
def api_pool_qualifiers(tournament_id):
    """Knockout order once the pool phase is over."""
    matches = _pool_matches(tournament_id)
    if not matches:
        return jsonify({'success': False, 'error': 'No pool matches for this tournament.'}), 404
    try:
        qualifiers_per_pool = int(request.args.get('qualifiers') or load_settings()['qualifiers_per_pool'])
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    return jsonify({
        'success': True,
        'complete': all(m.is_completed for m in matches),
        'qualifiers': select_pool_qualifiers(matches, qualifiers_per_pool),
    })


@app.route('/api/ratings', methods=['GET'])
def api_ratings():
    teams, matches, league_matches = load_teams(), load_matches(), load_league_matches()
    log_unrated_matches(teams, matches, league_matches)
    return jsonify(compute_elo_ratings(teams, matches, league_matches))


@app.route('/api/rankings', methods=['GET'])
def api_rankings():
    """Player leaderboard ordered by Elo."""
    teams, matches, league_matches = load_teams(), load_matches(), load_league_matches()
    log_unrated_matches(teams, matches, league_matches)
    rankings = build_player_rankings(load_players(), teams, matches, league_matches)
    return jsonify({'success': True, 'rankings': [r.to_dict() for r in rankings]})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
