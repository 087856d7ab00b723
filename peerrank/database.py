from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from peerrank.core import config


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(config.DATABASE_URL, connect_args=_connect_args(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_ratings_schema_checked: set[Engine] = set()


def ensure_ratings_schema(bind: Engine | None = None) -> None:
    """Bring a ratings table created by an older deployment up to date.

    Older databases enforced one rating per (question, student, rater) by
    lookup only, so duplicate rows may exist. The newest row of each triple
    is kept before the unique index is created.
    """
    bind = bind or engine

    if bind in _ratings_schema_checked:
        return

    with _schema_lock:
        if bind in _ratings_schema_checked:
            return

        inspector = inspect(bind)

        if 'ratings' not in inspector.get_table_names():
            _ratings_schema_checked.add(bind)
            return

        existing_columns = {column['name'] for column in inspector.get_columns('ratings')}
        migration_steps = [
            ('created_at', 'ALTER TABLE ratings ADD COLUMN created_at TIMESTAMP'),
        ]

        with bind.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'DELETE FROM ratings WHERE id NOT IN ('
                    'SELECT MAX(id) FROM ratings GROUP BY question_id, student_id, rater_id)'
                )
            )
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_ratings_triple '
                    'ON ratings(question_id, student_id, rater_id)'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_ratings_room_question ON ratings(room_id, question_id)')
            )

        _ratings_schema_checked.add(bind)
