"""
User configuration management for imagematch.

Supports configuration from multiple sources (in order of priority):
1. Command-line arguments (highest priority)
2. Environment variables
3. User config file (~/.imagematch/config.json)
4. Default values from config.py (lowest priority)

Example config.json:
{
    "default_workers": 0,
    "dedupe_threshold": 96,
    "search_threshold": 90,
    "dedupe_algorithm": "ahash",
    "search_algorithm": "phash",
    "hash_size": 8,
    "cache_file": null,
    "skip_folders": ["$RECYCLE.BIN", ".Spotlight", ".fseventsd"]
}
"""

import json
import os
from pathlib import Path
from typing import Any, Optional
import logging

from .config import (
    CACHE_FILE_NAME,
    DEDUPE_ALGORITHM,
    DEDUPE_THRESHOLD,
    DEFAULT_HASH_SIZE,
    DEFAULT_WORKERS,
    SEARCH_ALGORITHM,
    SEARCH_THRESHOLD,
    SKIP_FOLDERS,
)

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = 'IMAGEMATCH_CONFIG_DIR'

# Environment variable overriding each config file key
ENV_OVERRIDES = {
    'default_workers': 'IMAGEMATCH_WORKERS',
    'dedupe_threshold': 'IMAGEMATCH_DEDUPE_THRESHOLD',
    'search_threshold': 'IMAGEMATCH_SEARCH_THRESHOLD',
    'dedupe_algorithm': 'IMAGEMATCH_DEDUPE_ALGORITHM',
    'search_algorithm': 'IMAGEMATCH_SEARCH_ALGORITHM',
    'hash_size': 'IMAGEMATCH_HASH_SIZE',
    'cache_file': 'IMAGEMATCH_CACHE_FILE',
    'skip_folders': 'IMAGEMATCH_SKIP_FOLDERS',
}


def _parse_env_value(raw: str) -> Any:
    """Decode numbers and lists given as JSON; anything else stays a string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


class UserConfig:
    """
    Layered user settings: environment, then config file, then defaults.

    One shared instance per process (see get_user_config). The config file
    is parsed on first use; call reload() after editing it.
    """

    _instance: Optional['UserConfig'] = None
    _file_values: Optional[dict] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config_dir(self) -> Path:
        """Directory holding config.json ($IMAGEMATCH_CONFIG_DIR or ~/.imagematch)."""
        override = os.getenv(CONFIG_DIR_ENV)
        return Path(override) if override else Path.home() / '.imagematch'

    @property
    def config_file_path(self) -> Path:
        return self.config_dir / 'config.json'

    def _read_file(self) -> dict:
        path = self.config_file_path
        if not path.exists():
            return {}

        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {path}: expected a JSON object")
            return {}
        logger.debug(f"Loaded configuration from {path}")
        return data

    def reload(self):
        """Forget the parsed config file so the next lookup reads it again."""
        self._file_values = None

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a setting.

        Args:
            key: Config file key; its environment override comes from ENV_OVERRIDES
            default: Value used when neither source sets the key

        Returns:
            The environment value if set, else the config file value, else default
        """
        env_var = ENV_OVERRIDES.get(key)
        if env_var is not None:
            raw = os.getenv(env_var)
            if raw is not None:
                return _parse_env_value(raw)

        if self._file_values is None:
            self._file_values = self._read_file()
        return self._file_values.get(key, default)

    @property
    def default_workers(self) -> int:
        """Number of parallel hashing workers (0 = one per CPU)."""
        return self.get('default_workers', default=DEFAULT_WORKERS)

    @property
    def dedupe_threshold(self) -> float:
        """Similarity percentage for cross-folder duplicates."""
        return self.get('dedupe_threshold', default=DEDUPE_THRESHOLD)

    @property
    def search_threshold(self) -> float:
        """Similarity percentage for single-image search."""
        return self.get('search_threshold', default=SEARCH_THRESHOLD)

    @property
    def dedupe_algorithm(self) -> str:
        return self.get('dedupe_algorithm', default=DEDUPE_ALGORITHM)

    @property
    def search_algorithm(self) -> str:
        return self.get('search_algorithm', default=SEARCH_ALGORITHM)

    @property
    def hash_size(self) -> int:
        """Side of the hash matrix; fingerprints have hash_size ** 2 bits."""
        return self.get('hash_size', default=DEFAULT_HASH_SIZE)

    @property
    def cache_file(self) -> Optional[str]:
        """Shared cache file, or None to keep a cache inside each scanned folder."""
        return self.get('cache_file')

    @property
    def skip_folders(self) -> tuple:
        """Path fragments excluded from enumeration."""
        value = self.get('skip_folders', default=SKIP_FOLDERS)
        if isinstance(value, str):
            return (value,)
        return tuple(value)

    def cache_path_for(self, folder: str) -> str:
        """Cache file to use when scanning folder."""
        return self.cache_file or os.path.join(folder, CACHE_FILE_NAME)

    def create_example_config(self) -> bool:
        """Create an example configuration file."""
        example_config = {
            "_comment": "imagematch user configuration",
            "default_workers": DEFAULT_WORKERS,
            "dedupe_threshold": DEDUPE_THRESHOLD,
            "search_threshold": SEARCH_THRESHOLD,
            "dedupe_algorithm": DEDUPE_ALGORITHM,
            "search_algorithm": SEARCH_ALGORITHM,
            "hash_size": DEFAULT_HASH_SIZE,
            "cache_file": None,
            "skip_folders": list(SKIP_FOLDERS),
        }

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, 'w', encoding='utf-8') as f:
                json.dump(example_config, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to create example config: {e}")
            return False

        logger.info(f"Created example config file at {self.config_file_path}")
        return True


# Global instance
_user_config = UserConfig()


def get_user_config() -> UserConfig:
    """Get the global UserConfig instance."""
    return _user_config
