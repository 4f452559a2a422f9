"""Client-side session state.

Holds the bearer token and the logged-in user record. Consumers read it
through `get()` and react to logins and logouts through `subscribe()`.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[str], Optional[Dict[str, Any]]], None]


class SessionContext:
    """Token and user of the current client session.

    Args:
        storage_path: Optional JSON file the session is persisted to, so that a
            new process picks up an existing login.
    """

    def __init__(self, storage_path: Optional[Union[str, Path]] = None):
        self.storage_path = Path(storage_path) if storage_path else None
        self._token: Optional[str] = None
        self._user: Optional[Dict[str, Any]] = None
        self._listeners: List[SessionListener] = []
        self._load()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def get(self) -> Dict[str, Any]:
        return {"token": self._token, "user": self._user}

    def set(self, token: str, user: Optional[Dict[str, Any]] = None) -> None:
        """Store a new login and notify subscribers."""
        self._token = token
        self._user = user
        self._save()
        self._notify()

    def clear(self) -> None:
        """Forget the login and notify subscribers."""
        if self._token is None and self._user is None:
            return
        self._token = None
        self._user = None
        self._save()
        self._notify()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a change listener.

        Args:
            listener: Called with (token, user) after every change.

        Returns:
            Function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._token, self._user)

    def _load(self) -> None:
        if self.storage_path is None or not self.storage_path.exists():
            return
        try:
            with open(self.storage_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.storage_path, e)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring session file %s: not a JSON object", self.storage_path)
            return
        self._token = data.get("token")
        self._user = data.get("user")

    def _save(self) -> None:
        if self.storage_path is None:
            return
        if self._token is None:
            self.storage_path.unlink(missing_ok=True)
            return
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.storage_path, "w", encoding="utf-8") as f:
            json.dump(self.get(), f, ensure_ascii=False, indent=2)
