"""
Local persisted state.

``~/.bearboo/config.json`` holds long-lived preferences: credentials, the
paired room and the colour theme. Activity documents live per room under
``~/.bearboo/rooms/<room>/``. The chat passphrase is never written here.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from bearboo.models.session import AuthUser

logger = logging.getLogger("bearboo.config")

DEFAULT_THEME = "theme-pink"

M = TypeVar("M", bound=BaseModel)


def home_dir() -> Path:
    override = os.environ.get("BEARBOO_HOME")
    return Path(override) if override else Path.home() / ".bearboo"


class Config(BaseModel):
    api_key: Optional[str] = None
    database_url: Optional[str] = None
    user: Optional[AuthUser] = None
    room_id: Optional[str] = None
    theme: str = DEFAULT_THEME

    def with_env(self) -> "Config":
        """Environment variables win over the file."""
        return self.model_copy(update={
            "api_key": os.environ.get("BEARBOO_API_KEY") or self.api_key,
            "database_url": os.environ.get("BEARBOO_DATABASE_URL") or self.database_url,
        })


def config_file(home: Optional[Path] = None) -> Path:
    return (home or home_dir()) / "config.json"


def load_config(home: Optional[Path] = None) -> Config:
    path = config_file(home)
    try:
        return Config.model_validate_json(path.read_text())
    except FileNotFoundError:
        return Config()
    except (ValidationError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config {path}: {e}")
        return Config()


def save_config(cfg: Config, home: Optional[Path] = None) -> None:
    path = config_file(home)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(cfg.model_dump_json(indent=2, exclude_none=True))


def _safe_name(room_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]", "_", room_id) or "_"


class RoomState:
    """JSON documents scoped to one room (scrapbook, plans, dates, quiz)."""

    def __init__(self, room_id: str, home: Optional[Path] = None):
        self.room_id = room_id
        self._dir = (home or home_dir()) / "rooms" / _safe_name(room_id)

    def _path(self, name: str) -> Path:
        return self._dir / f"{name}.json"

    def load_raw(self, name: str) -> Any:
        try:
            return json.loads(self._path(name).read_text())
        except FileNotFoundError:
            return None
        except ValueError as e:
            logger.warning(f"Ignoring corrupt {name} for room {self.room_id}: {e}")
            return None

    def save_raw(self, name: str, data: Any) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        self._path(name).write_text(json.dumps(data, indent=2, ensure_ascii=False))

    def delete(self, name: str) -> None:
        try:
            self._path(name).unlink()
        except FileNotFoundError:
            pass

    def load_list(self, name: str, model: Type[M]) -> list[M]:
        raw = self.load_raw(name)
        if not isinstance(raw, list):
            return []
        items = []
        for entry in raw:
            try:
                items.append(model.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping bad {name} entry in room {self.room_id}: {e}")
        return items

    def save_list(self, name: str, items: list[M]) -> None:
        self.save_raw(name, [item.model_dump() for item in items])
