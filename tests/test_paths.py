from tagweb import paths
from tagweb.paths import CONFIG_PATH_ENV, get_app_dir, get_config_path, get_env_path


def test_files_live_in_project_root(monkeypatch):
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    root = get_app_dir()
    assert (root / "tagweb" / "paths.py").exists()
    assert get_config_path() == root / "config.json"
    assert get_env_path() == root / ".env"


def test_config_path_override(monkeypatch, tmp_path):
    target = tmp_path / "staging.json"
    monkeypatch.setenv(CONFIG_PATH_ENV, str(target))
    assert get_config_path() == target


def test_frozen_build_uses_executable_dir(monkeypatch, tmp_path):
    monkeypatch.setattr(paths.sys, 'frozen', True, raising=False)
    monkeypatch.setattr(paths.sys, 'executable', str(tmp_path / "tagweb.exe"))
    assert get_app_dir() == tmp_path
