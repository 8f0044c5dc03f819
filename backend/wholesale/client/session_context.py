# Overview: Persisted client state (bearer token, profile, cached geo decision).

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class ClientSessionContext:
    """
    Everything a client remembers between runs.

    Stored as a JSON file at `path`; load() on a missing or unreadable
    file yields an empty context rather than failing.
    """
    path: Optional[Path] = None
    token: Optional[str] = None
    user: Optional[dict] = None
    is_admin: bool = False
    # {"result": "allowed"|"blocked", "reason": str|None, "timestamp": float}
    geo_cache: Optional[dict] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: str | os.PathLike) -> "ClientSessionContext":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return cls(path=path)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable client session file %s: %s", path, exc)
            return cls(path=path)

        if not isinstance(data, dict):
            return cls(path=path)
        return cls(
            path=path,
            token=data.get("token"),
            user=data.get("user"),
            is_admin=bool(data.get("is_admin")),
            geo_cache=data.get("geo_cache"),
            extra=data.get("extra") or {},
        )

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def set_login(self, token: str, user: dict) -> None:
        self.token = token
        self.user = user
        self.is_admin = bool(user.get("is_admin")) if user else False

    def clear_login(self) -> None:
        self.token = None
        self.user = None
        self.is_admin = False

    def save(self) -> None:
        if self.path is None:
            return
        data = asdict(self)
        data.pop("path")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def clear(self) -> None:
        """Forget everything, including the file on disk."""
        self.clear_login()
        self.geo_cache = None
        self.extra = {}
        if self.path is not None:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
