import json
import pytest
from typer.testing import CliRunner

from conftest import FakeProvider
from gbooks import config as config_module
from gbooks import main

runner = CliRunner()


@pytest.fixture
def provider(monkeypatch, make_client):
    provider = FakeProvider()
    client = make_client(provider)
    monkeypatch.setattr(main, "get_books_client", lambda: client)
    return provider


def test_search_prints_table(provider):
    result = runner.invoke(main.app, ["search", "dune", "--sets", "2"])

    assert result.exit_code == 0
    assert "Dune" in result.output
    assert "Frank Herbert" in result.output
    assert provider.start_indexes == [0, 40]


def test_search_json_output(provider):
    result = runner.invoke(main.app, ["search", "dune", "--json"])

    assert result.exit_code == 0
    pages = json.loads(result.output)
    assert pages[0]["kind"] == "books#volumes"


def test_search_by_id_lists_volume(provider):
    result = runner.invoke(main.app, ["search-by", "id", "abc123"])

    assert result.exit_code == 0
    assert "Volume abc123" in result.output
    assert provider.requests[0].url.path.endswith("/volumes/abc123")


def test_search_by_unsupported_field(provider):
    result = runner.invoke(main.app, ["search-by", "bogus", "Tolkien"])

    assert result.exit_code == 1
    assert "Invalid field to search by" in result.output
    assert provider.requests == []


def test_provider_failure_exits_with_error(monkeypatch, make_client):
    client = make_client(FakeProvider(fail_on={1}))
    monkeypatch.setattr(main, "get_books_client", lambda: client)

    result = runner.invoke(main.app, ["search", "dune"])

    assert result.exit_code == 1
    assert "Google Books request failed" in result.output


def test_page_items():
    assert main.page_items({"items": [{"id": "a"}]}) == [{"id": "a"}]
    assert main.page_items({"totalItems": 0}) == []
    assert main.page_items({"id": "a", "volumeInfo": {}}) == [{"id": "a", "volumeInfo": {}}]
    assert main.page_items(None) == []


def test_config_set(monkeypatch, tmp_path):
    config_path = tmp_path / "config.json"
    monkeypatch.setattr(config_module, "CONFIG_PATH", config_path)
    monkeypatch.setattr(main.config, "file_config", {})

    result = runner.invoke(main.app, ["config-set", "gbooks_lang_restrict", "fr"])

    assert result.exit_code == 0
    assert json.loads(config_path.read_text()) == {"GBOOKS_LANG_RESTRICT": "fr"}
