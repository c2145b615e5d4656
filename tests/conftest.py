"""
Shared pytest fixtures for the pétanque core tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from petanque.models import Player, Team


@pytest.fixture
def client():
    """Create a test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app at an empty temporary data directory."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return data_dir


@pytest.fixture
def write_yaml(temp_data_dir):
    """Write a data file into the temporary data directory."""
    def _write(filename, data):
        (temp_data_dir / filename).write_text(yaml.dump(data, default_flow_style=False), encoding='utf-8')
    return _write


@pytest.fixture
def read_yaml(temp_data_dir):
    """Read a data file back from the temporary data directory."""
    def _read(filename):
        return yaml.safe_load((temp_data_dir / filename).read_text(encoding='utf-8'))
    return _read


@pytest.fixture
def sample_players():
    return [Player(id=pid, name=f"Player {pid}") for pid in ["A", "B", "C", "D"]]


@pytest.fixture
def single_teams():
    """One-player teams of tournament T1."""
    return [
        Team(id="t1", player_ids=("A",), tournament_id="T1"),
        Team(id="t2", player_ids=("B",), tournament_id="T1"),
        Team(id="t3", player_ids=("C",), tournament_id="T1"),
        Team(id="t4", player_ids=("D",), tournament_id="T1"),
    ]
