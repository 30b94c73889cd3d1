import json
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from dexpipe import main
from dexpipe.infrastructure.cli.display import ConsoleDisplay
from dexpipe.main import app, create_dependencies

# These fixtures are defined in tests/conftest.py:
# runner: CliRunner
# fake_api: in-memory PokeAPI behind httpx.MockTransport
# transport: the MockTransport serving fake_api
# fast_settings: PipelineSettings with pauses disabled and the cache under tmp_path


@pytest.fixture
def console():
    return Console(record=True, width=200, force_terminal=False)


@pytest.fixture
def wired_app(monkeypatch, fast_settings, transport, console):
    """Installs a real object graph whose client talks to the fake API."""
    dependencies = create_dependencies(settings=fast_settings, ui=ConsoleDisplay(console=console), transport=transport)
    monkeypatch.setattr(main, "_dependencies", dependencies)
    yield dependencies
    dependencies['response_cache'].close()


def test_pokemon_command_flow(runner: CliRunner, wired_app, console: Console, fake_api):
    """Fetching the same Pokemon by name twice hits the network once."""
    first = runner.invoke(app, ["pokemon", "Bulbasaur"])
    second = runner.invoke(app, ["pokemon", "1"])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert "Bulbasaur" in console.export_text()
    assert fake_api.total_calls == 1


def test_pokemon_not_found_exits_with_error(runner: CliRunner, wired_app, console: Console):
    result = runner.invoke(app, ["pokemon", "missingno"])

    assert result.exit_code == 1
    text = console.export_text()
    assert "Resource not found" in text
    assert "Check the Pokemon name or ID and try again." in text


def test_search_command_flow(runner: CliRunner, wired_app, console: Console):
    result = runner.invoke(app, ["search", "char"])

    assert result.exit_code == 0, result.output
    text = console.export_text()
    assert "Charmander" in text and "Charizard" in text
    assert "Bulbasaur" not in text


def test_batch_command_skips_failures(runner: CliRunner, wired_app, console: Console):
    result = runner.invoke(app, ["batch", "1", "4", "999999"])

    assert result.exit_code == 0, result.output
    assert "1 of 3 Pokemon could not be fetched." in console.export_text()
    assert wired_app['repository'].stats().cached_count == 2


def test_moves_command_exports_catalog(runner: CliRunner, wired_app, console: Console, tmp_path: Path):
    export = tmp_path / "moves.jsonl"

    result = runner.invoke(app, ["moves", "--export", str(export), "--limit", "2"])

    assert result.exit_code == 0, result.output
    names = [json.loads(line)["name"] for line in export.read_text(encoding="utf-8").splitlines()]
    assert names == ["pound", "karate-chop", "double-slap", "comet-punch", "mega-punch"]
    text = console.export_text()
    assert "Move catalog (2)" in text
    assert "Exported 5 moves entries" in text


def test_moves_command_falls_back_when_listing_fails(runner: CliRunner, wired_app, console: Console, fake_api):
    fake_api.fail("move", 503)

    result = runner.invoke(app, ["moves"])

    assert result.exit_code == 0, result.output
    text = console.export_text()
    assert "Showing 10 sample entries instead." in text
    assert "Thunderbolt" in text


def test_related_command_flow(runner: CliRunner, wired_app, console: Console, fake_api):
    fake_api.add_pokemon(30, "nidorina", moves=[
        fake_api.move_entry(1, "pound", fake_api.learn_detail("level-up", 5)),
        fake_api.move_entry(2, "karate-chop", fake_api.learn_detail("machine", 0)),
    ])

    result = runner.invoke(app, ["related", "30"])

    assert result.exit_code == 0, result.output
    text = console.export_text()
    assert "Pound" in text and "TM/HM" in text


def test_regions_and_stats_flow(runner: CliRunner, wired_app, console: Console):
    assert runner.invoke(app, ["regions"]).exit_code == 0
    assert runner.invoke(app, ["regions", "Kanto"]).exit_code == 0
    assert runner.invoke(app, ["stats"]).exit_code == 0

    text = console.export_text()
    assert "Kanto" in text
    assert "Cached regions" in text


def test_clear_cache_command_flow(runner: CliRunner, wired_app, console: Console, fake_api):
    runner.invoke(app, ["pokemon", "1"])
    result = runner.invoke(app, ["clear-cache"])
    runner.invoke(app, ["pokemon", "1"])

    assert result.exit_code == 0, result.output
    assert "All caches cleared successfully." in console.export_text()
    assert fake_api.hits("pokemon/1") == 2


def test_command_closes_client_and_disk_cache(runner: CliRunner, wired_app, mocker):
    close_spy = mocker.spy(wired_app['response_cache'], "close")
    aclose_spy = mocker.spy(wired_app['client'], "aclose")

    result = runner.invoke(app, ["pokemon", "1"])

    assert result.exit_code == 0, result.output
    close_spy.assert_called_once()
    aclose_spy.assert_called_once()
