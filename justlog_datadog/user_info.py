"""Thread-safe holder for the current user identity."""

import threading
from dataclasses import replace

from justlog_datadog.models import UserInfo


class UserInfoProvider:
    """Owns the UserInfo attached to outgoing records.

    The value can be replaced from any thread while uploads read it.
    """

    def __init__(self, initial: UserInfo | None = None):
        self._lock = threading.Lock()
        self._value = initial or UserInfo()

    @property
    def value(self) -> UserInfo:
        with self._lock:
            return self._value

    @value.setter
    def value(self, new_value: UserInfo):
        with self._lock:
            self._value = new_value

    def update(self, id=None, name=None, email=None, extra_info=None) -> UserInfo:
        """Overwrite only the given fields and return the new value."""
        changes = {}
        if id is not None:
            changes["id"] = id
        if name is not None:
            changes["name"] = name
        if email is not None:
            changes["email"] = email
        if extra_info is not None:
            changes["extra_info"] = {k: str(v) for k, v in extra_info.items()}

        with self._lock:
            self._value = replace(self._value, **changes)
            return self._value

    def clear(self):
        with self._lock:
            self._value = UserInfo()
