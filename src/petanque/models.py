"""
Value records shared by the schedule generators and the rating engine.

Records are built by the persistence layer (usually from YAML rows via
``from_dict``) and are never mutated by the core.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

TETE_A_TETE = 'tete-a-tete'
DOUBLETTE = 'doublette'
TRIPLETTES = 'triplettes'

FORMAT_TEAM_SIZES = {
    TETE_A_TETE: 1,
    DOUBLETTE: 2,
    TRIPLETTES: 3,
}

# Alternate names accepted from callers
FORMAT_ALIASES = {
    'head_to_head': TETE_A_TETE,
    'pairs': DOUBLETTE,
    'doublettes': DOUBLETTE,
    'triples': TRIPLETTES,
    'triplette': TRIPLETTES,
}

COMPLETED = 'completed'

# Seconds fraction of an ISO timestamp, any number of digits
_FRACTION = re.compile(r'(\d{2}:\d{2}:\d{2})\.(\d+)')


def normalize_format(match_format: str) -> str:
    """Return the canonical format name, raising ValueError if unknown."""
    name = FORMAT_ALIASES.get(match_format, match_format)
    if name not in FORMAT_TEAM_SIZES:
        raise ValueError(f"Unknown match format: {match_format!r}")
    return name


def team_size_for(match_format: str) -> int:
    return FORMAT_TEAM_SIZES[normalize_format(match_format)]


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a datetime or ISO-8601 string. Naive values are taken as UTC."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        # fromisoformat() only takes 3 or 6 fraction digits before Python 3.11
        text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _ids(values) -> Tuple[str, ...]:
    return tuple(str(v) for v in (values or []))


def _optional_int(value) -> Optional[int]:
    return None if value is None or value == '' else int(value)


def _optional_str(value) -> Optional[str]:
    return None if value is None or value == '' else str(value)


@dataclass(frozen=True)
class Player:
    id: str
    name: str = ''

    @classmethod
    def from_dict(cls, data: dict) -> 'Player':
        return cls(id=str(data['id']), name=data.get('name') or '')


@dataclass(frozen=True)
class Team:
    """A tournament team: one to three players."""
    id: str
    player_ids: Tuple[str, ...]
    tournament_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'Team':
        return cls(
            id=str(data['id']),
            player_ids=_ids(data.get('player_ids')),
            tournament_id=_optional_str(data.get('tournament_id')),
        )


@dataclass(frozen=True)
class BracketMatch:
    """A tournament match between two team records (pool or knockout phase)."""
    id: str
    tournament_id: Optional[str]
    round: int
    team1_id: Optional[str] = None
    team2_id: Optional[str] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    winner_id: Optional[str] = None
    status: str = 'pending'
    pool_id: Optional[str] = None
    phase: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @classmethod
    def from_dict(cls, data: dict) -> 'BracketMatch':
        return cls(
            id=str(data['id']),
            tournament_id=_optional_str(data.get('tournament_id')),
            round=int(data.get('round') or 1),
            team1_id=_optional_str(data.get('team1_id')),
            team2_id=_optional_str(data.get('team2_id')),
            score1=_optional_int(data.get('score1')),
            score2=_optional_int(data.get('score2')),
            winner_id=_optional_str(data.get('winner_id')),
            status=data.get('status') or 'pending',
            pool_id=_optional_str(data.get('pool_id')),
            phase=_optional_str(data.get('phase')),
        )


@dataclass(frozen=True)
class LeagueMatch:
    """A league match; sides are plain sets of player ids, not team records."""
    id: str
    league_id: Optional[str]
    type: str
    team1_player_ids: Tuple[str, ...]
    team2_player_ids: Tuple[str, ...]
    score1: Optional[int] = None
    score2: Optional[int] = None
    winner_team_index: Optional[int] = None
    status: str = 'pending'
    created_at: Optional[datetime] = None
    round_number: Optional[int] = None

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @classmethod
    def from_dict(cls, data: dict) -> 'LeagueMatch':
        return cls(
            id=str(data['id']),
            league_id=_optional_str(data.get('league_id')),
            type=data.get('type') or TETE_A_TETE,
            team1_player_ids=_ids(data.get('team1_player_ids')),
            team2_player_ids=_ids(data.get('team2_player_ids')),
            score1=_optional_int(data.get('score1')),
            score2=_optional_int(data.get('score2')),
            winner_team_index=_optional_int(data.get('winner_team_index')),
            status=data.get('status') or 'pending',
            created_at=parse_timestamp(data.get('created_at')),
            round_number=_optional_int(data.get('round_number')),
        )


@dataclass
class GeneratedMatch:
    team1_player_ids: List[str]
    team2_player_ids: List[str]
    round_number: int
    type: str

    def to_dict(self) -> dict:
        return {
            'team1_player_ids': list(self.team1_player_ids),
            'team2_player_ids': list(self.team2_player_ids),
            'round_number': self.round_number,
            'type': self.type,
        }


@dataclass(frozen=True)
class PoolMatch:
    team1_id: str
    team2_id: str
    round: int

    def to_dict(self) -> dict:
        return {'team1_id': self.team1_id, 'team2_id': self.team2_id, 'round': self.round}


@dataclass
class Pool:
    name: str
    team_ids: List[str]
    matches: List[PoolMatch] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'team_ids': list(self.team_ids),
            'matches': [m.to_dict() for m in self.matches],
        }


@dataclass
class PoolStanding:
    team_id: str
    played: int = 0
    wins: int = 0
    losses: int = 0
    points_for: int = 0
    points_against: int = 0
    point_diff: int = 0

    def to_dict(self) -> dict:
        return {
            'team_id': self.team_id,
            'played': self.played,
            'wins': self.wins,
            'losses': self.losses,
            'points_for': self.points_for,
            'points_against': self.points_against,
            'point_diff': self.point_diff,
        }


@dataclass
class PlayerRanking:
    player_id: str
    elo_rating: int
    wins: int = 0
    losses: int = 0
    tournaments_played: int = 0
    leagues_played: int = 0

    @property
    def total_matches(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        return self.wins / self.total_matches if self.total_matches else 0.0

    def to_dict(self) -> dict:
        return {
            'player_id': self.player_id,
            'elo_rating': self.elo_rating,
            'wins': self.wins,
            'losses': self.losses,
            'tournaments_played': self.tournaments_played,
            'leagues_played': self.leagues_played,
            'total_matches': self.total_matches,
        }


@dataclass
class LeagueStanding:
    player_id: str
    points: int = 0
    played: int = 0
    won: int = 0
    lost: int = 0
    points_scored: int = 0
    points_conceded: int = 0

    @property
    def diff(self) -> int:
        return self.points_scored - self.points_conceded

    def to_dict(self) -> dict:
        return {
            'player_id': self.player_id,
            'points': self.points,
            'played': self.played,
            'won': self.won,
            'lost': self.lost,
            'points_scored': self.points_scored,
            'points_conceded': self.points_conceded,
            'diff': self.diff,
        }
