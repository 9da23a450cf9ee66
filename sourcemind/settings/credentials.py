import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

GEMINI_KEY = "sourceMind_geminiKey"
GITHUB_TOKEN_KEY = "sourceMind_githubToken"

_ENV_FALLBACKS = {
    GEMINI_KEY: ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"),
    GITHUB_TOKEN_KEY: ("GITHUB_TOKEN",),
}


def default_credentials_path() -> Path:
    home = os.getenv("SOURCEMIND_HOME")
    base = Path(home) if home else Path.home() / ".sourcemind"
    return base / "credentials.json"


class MemoryStorage:
    """Key/value storage that lives as long as the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str):
        self._items[key] = value

    def remove_item(self, key: str):
        self._items.pop(key, None)


class FileStorage:
    """
    JSON file storage. Raises OSError/ValueError on unusable files;
    CredentialStore decides how to degrade.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_credentials_path()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _dump(self, data: Dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            pass

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str):
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str):
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)


class CredentialStore:
    """
    Holds the Gemini API key and the GitHub token.

    Values set here are persisted through `storage`; if the storage is
    unavailable the store silently keeps working in memory.
    """

    def __init__(self, storage=None, use_environment: bool = True):
        self.storage = storage if storage is not None else FileStorage()
        self._values: Dict[str, str] = {}
        for key, env_names in _ENV_FALLBACKS.items():
            value = self._read(key)
            if not value and use_environment:
                value = next((os.getenv(name) for name in env_names if os.getenv(name)), "")
            self._values[key] = value or ""

    def _read(self, key: str) -> str:
        try:
            return self.storage.get_item(key) or ""
        except (OSError, ValueError) as e:
            logger.debug("Credential storage unreadable, using memory only: %s", e)
            return ""

    def get(self, key: str) -> str:
        return self._values.get(key, "")

    def set(self, key: str, value: str):
        value = value or ""
        self._values[key] = value
        try:
            if value:
                self.storage.set_item(key, value)
            else:
                self.storage.remove_item(key)
        except (OSError, ValueError) as e:
            logger.debug("Credential storage unwritable, keeping %s in memory: %s", key, e)

    def has_usable_key(self) -> bool:
        return bool(self.get(GEMINI_KEY))

    @property
    def gemini_api_key(self) -> str:
        return self.get(GEMINI_KEY)

    @property
    def github_token(self) -> str:
        return self.get(GITHUB_TOKEN_KEY)
