from threading import Lock
from weakref import WeakSet

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from tarot_scheduling.core import config


engine = create_engine(config.DATABASE_URL, echo=config.DB_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schema_checked: WeakSet = WeakSet()

_INDEX_STATEMENTS = {
    'weekly_availability': [
        'CREATE UNIQUE INDEX IF NOT EXISTS uq_weekly_availability_provider_day '
        'ON weekly_availability(provider_id, day_of_week)',
    ],
    'availability_exceptions': [
        'CREATE UNIQUE INDEX IF NOT EXISTS uq_availability_exceptions_provider_date '
        'ON availability_exceptions(provider_id, exception_date)',
    ],
    'reservations': [
        'CREATE INDEX IF NOT EXISTS idx_reservations_provider_date_time '
        'ON reservations(provider_id, session_date, session_time)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_client_date ON reservations(client_id, session_date)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_status ON reservations(status)',
        'CREATE UNIQUE INDEX IF NOT EXISTS uq_reservations_live_slot '
        'ON reservations(provider_id, session_date, session_time) '
        "WHERE status IN ('pending', 'confirmed')",
    ],
}


def ensure_scheduling_schema(bind: Engine | None = None) -> None:
    target = bind if bind is not None else engine

    if target in _schema_checked:
        return

    with _schema_lock:
        if target in _schema_checked:
            return

        inspector = inspect(target)
        table_names = set(inspector.get_table_names())

        with target.begin() as connection:
            for table_name, statements in _INDEX_STATEMENTS.items():
                if table_name not in table_names:
                    continue

                for statement in statements:
                    connection.execute(text(statement))

        _schema_checked.add(target)
