"""Tests for the hierarchical .env loader."""

import os
from pathlib import Path

import pytest
from dotenv import dotenv_values

from chad_llm.config.env_loader import EnvFileLoader


@pytest.fixture
def tree(tmp_path: Path) -> dict:
    home = tmp_path / "home"
    project = home / "work" / "project"
    nested = project / "src" / "pkg"
    nested.mkdir(parents=True)
    (project / ".git").mkdir()
    return {"home": home, "project": project, "nested": nested}


class TestEnvFileLoader:
    """Test cases for EnvFileLoader."""

    def test_no_env_file(self, tree: dict) -> None:
        loader = EnvFileLoader(tree["nested"], tree["home"])
        assert loader.load_env_file() is None
        assert loader.get_loaded_file() is None
        assert loader.get_loaded_vars() == {}

    def test_finds_env_in_parent_directory(self, tree: dict) -> None:
        env_file = tree["project"] / ".env"
        env_file.write_text("CHAD_LLM_TEST_VALUE=from-project\n")

        loader = EnvFileLoader(tree["nested"], tree["home"])
        assert loader.load_env_file() == env_file
        assert os.environ["CHAD_LLM_TEST_VALUE"] == "from-project"
        assert loader.get_loaded_vars() == {"CHAD_LLM_TEST_VALUE": "from-project"}

    def test_config_dir_preferred_over_plain_env(self, tree: dict) -> None:
        (tree["project"] / ".env").write_text("A=1\n")
        config_dir = tree["project"] / ".chad-llm"
        config_dir.mkdir()
        (config_dir / ".env").write_text("A=2\n")

        loader = EnvFileLoader(tree["project"], tree["home"])
        assert loader._find_env_file() == config_dir / ".env"

    def test_search_stops_at_git_root(self, tree: dict) -> None:
        paths = EnvFileLoader(tree["nested"], tree["home"]).get_search_paths()
        assert tree["project"] / ".env" in paths
        assert tree["home"] / "work" / ".env" not in paths
        assert paths[-1] == tree["home"] / ".env"

    def test_home_fallback(self, tree: dict) -> None:
        home_env = tree["home"] / ".chad-llm" / ".env"
        home_env.parent.mkdir()
        home_env.write_text("A=1\n")
        assert EnvFileLoader(tree["nested"], tree["home"])._find_env_file() == home_env

    def test_existing_environment_wins(self, tree: dict, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAD_LLM_MODEL", "from-shell")
        (tree["project"] / ".env").write_text("CHAD_LLM_MODEL=from-file\n")
        EnvFileLoader(tree["project"], tree["home"]).load_env_file()
        assert os.environ["CHAD_LLM_MODEL"] == "from-shell"

    def test_create_example_env_file(self, tree: dict) -> None:
        loader = EnvFileLoader(tree["project"], tree["home"])
        created = loader.create_example_env_file()
        assert created == tree["project"] / ".chad-llm" / ".env"
        assert "OPENAI_API_KEY=" in created.read_text()

        user_file = loader.create_example_env_file(scope="user")
        assert user_file == tree["home"] / ".chad-llm" / ".env"

    def test_example_env_file_sets_no_api_key(self, tree: dict) -> None:
        created = EnvFileLoader(tree["project"], tree["home"]).create_example_env_file()
        values = dotenv_values(created)
        assert "OPENAI_API_KEY" not in values
        assert values["CHAD_LLM_MODEL"] == "chatgpt-4o-latest"
