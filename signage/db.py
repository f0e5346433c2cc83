import logging
import os

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from signage.errors import TransientStoreError

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("SIGNAGE_DATABASE_URL", "sqlite:///./signage.db")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_raise(db: Session, action: str) -> None:
    """Commit the unit of work or roll it back and raise TransientStoreError."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Store failure while trying to %s", action)
        raise TransientStoreError(f"Failed to {action}") from exc


def init_db(bind: Engine | None = None) -> None:
    # Model modules must be imported so their tables are registered on Base.
    from signage.models import content, playlist, schedule, screen, timecode, venue  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    ensure_sqlite_schema(target)


def ensure_sqlite_schema(bind: Engine | None = None) -> None:
    """
    Lightweight runtime schema patching for SQLite.

    `Base.metadata.create_all()` won't add new columns to existing tables.
    This keeps local installs created before the video-wall and timecode
    features working without a migration tool.
    """
    target = bind or engine
    if target.dialect.name != "sqlite":
        return

    with target.begin() as conn:
        screen_cols = conn.execute(text("PRAGMA table_info(screen)")).fetchall()
        screen_col_names = {row[1] for row in screen_cols}  # (cid, name, type, notnull, dflt_value, pk)
        if screen_cols:
            if "timecode_id" not in screen_col_names:
                conn.execute(text("ALTER TABLE screen ADD COLUMN timecode_id VARCHAR(36)"))
            if "matrix_row" not in screen_col_names:
                conn.execute(text("ALTER TABLE screen ADD COLUMN matrix_row INTEGER"))
            if "matrix_col" not in screen_col_names:
                conn.execute(text("ALTER TABLE screen ADD COLUMN matrix_col INTEGER"))
            if "orientation" not in screen_col_names:
                conn.execute(text("ALTER TABLE screen ADD COLUMN orientation VARCHAR DEFAULT 'LANDSCAPE'"))
            conn.execute(
                text(
                    "UPDATE screen SET orientation='LANDSCAPE' "
                    "WHERE orientation IS NULL OR trim(orientation)=''"
                )
            )
            # Negative coordinates were accepted by early builds; treat them as "not in a matrix".
            conn.execute(text("UPDATE screen SET matrix_row=NULL WHERE matrix_row < 0"))
            conn.execute(text("UPDATE screen SET matrix_col=NULL WHERE matrix_col < 0"))

        schedule_cols = conn.execute(text("PRAGMA table_info(schedule)")).fetchall()
        schedule_col_names = {row[1] for row in schedule_cols}
        if schedule_cols:
            if "name" not in schedule_col_names:
                conn.execute(text("ALTER TABLE schedule ADD COLUMN name VARCHAR"))
            if "priority" not in schedule_col_names:
                conn.execute(text("ALTER TABLE schedule ADD COLUMN priority INTEGER DEFAULT 0"))
            conn.execute(text("UPDATE schedule SET priority=0 WHERE priority IS NULL"))
            conn.execute(
                text(
                    "UPDATE schedule SET days_of_week=NULL "
                    "WHERE days_of_week IS NOT NULL AND trim(days_of_week)=''"
                )
            )

        content_cols = conn.execute(text("PRAGMA table_info(content)")).fetchall()
        content_col_names = {row[1] for row in content_cols}
        if content_cols:
            if "data" not in content_col_names:
                conn.execute(text("ALTER TABLE content ADD COLUMN data TEXT"))
            conn.execute(text("UPDATE content SET duration=10 WHERE duration IS NULL OR duration < 1"))

        timecode_cols = conn.execute(text("PRAGMA table_info(timecode)")).fetchall()
        timecode_col_names = {row[1] for row in timecode_cols}
        if timecode_cols and "speed" not in timecode_col_names:
            conn.execute(text("ALTER TABLE timecode ADD COLUMN speed FLOAT DEFAULT 1.0"))
