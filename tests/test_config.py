import json

import pytest

from tagweb import config
from tagweb.config import (
    DEFAULT_ENDPOINT,
    ENV_KEYS,
    Settings,
    get_settings,
    load_config,
    save_config,
    set_endpoint,
)
from tagweb.paths import CONFIG_PATH_ENV


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(ENV_KEYS) + [CONFIG_PATH_ENV]:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "config.json"


def test_defaults_without_config(config_file):
    assert get_settings(config_file) == Settings()
    assert get_settings(config_file).graphql_endpoint == DEFAULT_ENDPOINT


def test_file_values_are_used(config_file):
    save_config({"graphql_endpoint": "http://api/graphql", "recent_limit": 5, "dedupe_links": True}, config_file)
    settings = get_settings(config_file)
    assert settings.graphql_endpoint == "http://api/graphql"
    assert settings.recent_limit == 5
    assert settings.tag_limit == 10
    assert settings.dedupe_links is True


def test_environment_overrides_file(config_file, monkeypatch):
    save_config({"graphql_endpoint": "http://file/graphql", "tag_limit": 3}, config_file)
    monkeypatch.setenv("TAGWEB_GRAPHQL_ENDPOINT", "http://env/graphql")
    monkeypatch.setenv("TAGWEB_TAG_LIMIT", "7")
    monkeypatch.setenv("TAGWEB_DEDUPE_LINKS", "yes")
    monkeypatch.setenv("TAGWEB_LOG_LEVEL", "debug")

    settings = get_settings(config_file)

    assert settings.graphql_endpoint == "http://env/graphql"
    assert settings.tag_limit == 7
    assert settings.dedupe_links is True
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["abc", "0", "-4"])
def test_invalid_limits_fall_back_to_default(config_file, monkeypatch, value):
    monkeypatch.setenv("TAGWEB_RECENT_LIMIT", value)
    assert get_settings(config_file).recent_limit == config.DEFAULT_RECENT_LIMIT


def test_unreadable_config_is_ignored(config_file):
    config_file.write_text("{not json", encoding="utf-8")
    assert load_config(config_file) == {}
    assert get_settings(config_file) == Settings()


def test_set_endpoint_preserves_other_keys(config_file):
    save_config({"recent_limit": 12}, config_file)
    set_endpoint("http://new/graphql", config_file)
    stored = json.loads(config_file.read_text(encoding="utf-8"))
    assert stored == {"recent_limit": 12, "graphql_endpoint": "http://new/graphql"}


def test_default_location_follows_config_override(config_file, monkeypatch):
    monkeypatch.setenv(CONFIG_PATH_ENV, str(config_file))
    set_endpoint("http://override/graphql")
    assert json.loads(config_file.read_text(encoding="utf-8")) == {"graphql_endpoint": "http://override/graphql"}
    assert get_settings().graphql_endpoint == "http://override/graphql"
