import json

import pytest
from book_service import cli
from book_service.domain.types import Format
from book_service.services.availability.registry import AdapterRegistry
from conftest import FakeAdapter, FakeGenerator, make_candidate, make_record

ODYSSEY = "9780140449334"


@pytest.fixture()
def wired(monkeypatch, cfg, cache, store):
    registry = AdapterRegistry(
        [FakeAdapter("src_a", {Format.ebook}, {ODYSSEY: make_record("src_a", Format.ebook, None)})]
    )
    monkeypatch.setattr(cli, "settings", cfg)
    monkeypatch.setattr(cli, "build_registry", lambda cfg, client: registry)
    monkeypatch.setattr(cli, "get_availability_cache", lambda: cache)
    monkeypatch.setattr(cli, "get_profile_store", lambda: store)
    monkeypatch.setattr(
        cli, "build_generator", lambda cfg: FakeGenerator([make_candidate("The Odyssey", ODYSSEY)])
    )
    return registry


def test_validate_command(capsys):
    assert cli.main(["validate", "054792822X"]) == 0
    assert json.loads(capsys.readouterr().out)["isbn_13"] == "9780547928227"

    assert cli.main(["validate", "123"]) == 1


def test_check_command(wired, capsys):
    assert cli.main(["check", "0140449337", "--json"]) == 0
    body = json.loads(capsys.readouterr().out)
    assert body["isbn"] == ODYSSEY
    assert body["availability"][0]["source"] == "src_a"


def test_check_rejects_bad_isbn(wired, capsys):
    assert cli.main(["check", "9780140449335"]) == 2
    assert "check digit" in capsys.readouterr().err


def test_profile_and_recommend_commands(wired, capsys):
    assert cli.main(["profile", "create", "--id", "reader", "--interests", "epics,myth", "--formats", "ebook"]) == 0
    created = json.loads(capsys.readouterr().out)
    assert created["interests"] == ["epics", "myth"]
    assert created["formats_accepted"] == ["ebook"]

    assert cli.main(["profile", "list"]) == 0
    assert "reader: epics, myth" in capsys.readouterr().out

    assert cli.main(["recommend", "reader", "--json"]) == 0
    body = json.loads(capsys.readouterr().out)
    assert body["total_candidates"] == 1
    assert body["recommendations"][0]["best_option"]["price"] is None

    assert cli.main(["recommend", "ghost"]) == 2


def test_config_commands(monkeypatch, cfg, capsys):
    monkeypatch.setattr(cli, "settings", cfg.model_copy(update={"openai_api_key": None}))
    assert cli.main(["config", "validate"]) == 1
    assert "OPENAI_API_KEY" in capsys.readouterr().out

    assert cli.main(["config", "show"]) == 0
    assert json.loads(capsys.readouterr().out)["has_openai_key"] is False
