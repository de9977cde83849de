import pytest
from click.testing import CliRunner

from afvikle.cli import cli
from afvikle.db import Database


@pytest.fixture(autouse=True)
def fake_home(tmp_path, monkeypatch):
    """Keep ~/.afvikle/config.toml out of the real home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def db_file(tmp_path):
    return tmp_path / "afvikle.db"


@pytest.fixture
def db(db_file):
    database = Database(db_file)
    yield database
    database.close()


@pytest.fixture
def workdir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def invoke(db_file):
    """Run the CLI against the temporary database."""
    runner = CliRunner()

    def _invoke(*args, input=None):
        return runner.invoke(cli, ["--db", str(db_file), *args], input=input)

    return _invoke
