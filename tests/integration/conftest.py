"""Integration test fixtures: a SQLite database built with the ORM."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

# ---------------------------------------------------------------------------
# Event rows
# ---------------------------------------------------------------------------

EVENTS = [
    {
        "id": 1,
        "title": "Kickoff meeting",
        "started": "2021-01-15",
        "length": "45 min",
        "status": "done",
    },
    {"id": 2, "title": "Design review", "started": "2021-03-02", "length": "2h", "status": "done"},
    {
        "id": 3,
        "title": "Release party",
        "started": "2021-07-04",
        "length": "3h",
        "status": "planned",
    },
    {"id": 4, "title": "Retro", "started": "2020-12-20", "length": "1h", "status": "done"},
]


class Base(DeclarativeBase):
    pass


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String)
    started: Mapped[str] = mapped_column(String)
    length: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(String)


@pytest.fixture
def events_db(tmp_path: Path) -> Path:
    """SQLite database with a single ``events`` table."""
    db_path = tmp_path / "events.sqlite"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        session.add_all(Event(**row) for row in EVENTS)
        session.commit()
    engine.dispose()
    return db_path


@pytest.fixture
def quiet_config(tmp_path: Path) -> Path:
    config_path = tmp_path / "config.toml"
    config_path.write_text("[display]\ncolored_output = false\n")
    return config_path
