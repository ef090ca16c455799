from __future__ import annotations

from pathlib import Path

from resumind.config import get_settings
from resumind.db import models  # noqa: F401
from resumind.db.base import Base
from resumind.db.session import engine


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [settings.data_dir, settings.upload_dir]
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database() -> list[str]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    return sorted(Base.metadata.tables)
