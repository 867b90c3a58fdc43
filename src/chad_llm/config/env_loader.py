"""
Hierarchical .env file loading for chad-llm.

The first .env file found walking up from the working directory is loaded
into the process environment, so OPENAI_API_KEY can live next to a project
instead of in the shell profile.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import dotenv_values, load_dotenv

logger = logging.getLogger(__name__)


class EnvFileLoader:
    """
    .env file loader with hierarchical search.

    Search order (stops at first file found):
    1. Current directory: .chad-llm/.env → .env
    2. Parent directories (up to git root or home): .chad-llm/.env → .env
    3. Home directory: ~/.chad-llm/.env → ~/.env
    """

    CONFIG_DIR_NAME = ".chad-llm"
    ENV_FILE_NAME = ".env"

    def __init__(self, working_directory: Optional[Path] = None, home_directory: Optional[Path] = None):
        """Initialize env file loader.

        Args:
            working_directory: Starting directory for search
            home_directory: Home directory used as search boundary and fallback
        """
        self.working_directory = Path(working_directory or Path.cwd()).resolve()
        self.home_directory = Path(home_directory or Path.home()).resolve()
        self._loaded_file: Optional[Path] = None
        self._loaded_vars: Dict[str, str] = {}

    def load_env_file(self) -> Optional[Path]:
        """Load environment variables from the first .env file found.

        Variables already present in the environment win over the file.

        Returns:
            Path to loaded .env file or None if none found
        """
        env_file_path = self._find_env_file()

        if env_file_path is None:
            logger.debug("No .env file found in search path")
            return None

        load_dotenv(env_file_path, override=False)
        self._loaded_file = env_file_path
        self._loaded_vars = {
            key: value for key, value in dotenv_values(env_file_path).items() if value is not None
        }
        logger.info(f"Loaded environment variables from: {env_file_path}")
        return env_file_path

    def get_loaded_file(self) -> Optional[Path]:
        """Get path to the loaded .env file."""
        return self._loaded_file

    def get_loaded_vars(self) -> Dict[str, str]:
        """Get variables loaded from the .env file."""
        return self._loaded_vars.copy()

    def get_search_paths(self) -> List[Path]:
        """Get list of all paths that would be searched for .env files, in order."""
        search_paths = []
        current_dir = self.working_directory

        while True:
            search_paths.append(current_dir / self.CONFIG_DIR_NAME / self.ENV_FILE_NAME)
            search_paths.append(current_dir / self.ENV_FILE_NAME)

            if self._should_stop_search(current_dir) or current_dir == current_dir.parent:
                break
            current_dir = current_dir.parent

        for fallback in (
            self.home_directory / self.CONFIG_DIR_NAME / self.ENV_FILE_NAME,
            self.home_directory / self.ENV_FILE_NAME,
        ):
            if fallback not in search_paths:
                search_paths.append(fallback)

        return search_paths

    def _find_env_file(self) -> Optional[Path]:
        for candidate in self.get_search_paths():
            if candidate.is_file():
                return candidate
        return None

    def _should_stop_search(self, directory: Path) -> bool:
        # Stop at Git repository root or home directory
        return (directory / ".git").exists() or directory == self.home_directory

    def create_example_env_file(self, target_dir: Optional[Path] = None, scope: str = "project") -> Path:
        """Create an example .env file.

        Args:
            target_dir: Directory to create file in (default depends on scope)
            scope: 'project' (working directory) or 'user' (home directory)

        Returns:
            Path to created example file
        """
        if target_dir is None:
            base = self.home_directory if scope == "user" else self.working_directory
            target_dir = base / self.CONFIG_DIR_NAME

        target_dir.mkdir(parents=True, exist_ok=True)
        env_file_path = target_dir / self.ENV_FILE_NAME

        example_content = '''# chad-llm configuration
# Lines starting with # are comments and will be ignored.

# Required: your OpenAI API key. Uncomment this line and paste it in.
# OPENAI_API_KEY=sk-...

# Optional: model and sampling
CHAD_LLM_MODEL=chatgpt-4o-latest
CHAD_LLM_TEMPERATURE=0.5
CHAD_LLM_MAX_TOKENS=2048

# Optional: output and logging
CHAD_LLM_RAW=false
CHAD_LLM_LOG_LEVEL=WARNING
'''

        env_file_path.write_text(example_content, encoding="utf-8")
        logger.info(f"Created example .env file: {env_file_path}")
        return env_file_path


def load_env_with_hierarchy(working_directory: Optional[Path] = None) -> Optional[Path]:
    """Convenience function to load a .env file with hierarchical search.

    Args:
        working_directory: Starting directory for search

    Returns:
        Path to loaded .env file or None
    """
    loader = EnvFileLoader(working_directory)
    return loader.load_env_file()
