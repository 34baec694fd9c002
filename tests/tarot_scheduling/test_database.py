from datetime import date, time

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from tarot_scheduling.database import Base, ensure_scheduling_schema

from sample_data import SCHEDULING_TABLES


def test_ensure_scheduling_schema_adds_missing_reservation_indexes() -> None:
    engine = create_engine('sqlite:///:memory:')
    with engine.begin() as connection:
        connection.execute(
            text(
                'CREATE TABLE reservations ('
                'id INTEGER PRIMARY KEY, provider_id INTEGER, client_id INTEGER, '
                'session_date DATE, session_time TIME, status VARCHAR(50))'
            )
        )

    ensure_scheduling_schema(bind=engine)
    ensure_scheduling_schema(bind=engine)

    inspector = inspect(engine)
    assert inspector.get_table_names() == ['reservations']
    indexes = {index['name'] for index in inspector.get_indexes('reservations')}
    assert {
        'uq_reservations_live_slot',
        'idx_reservations_status',
        'idx_reservations_client_date',
        'idx_reservations_provider_date_time',
    } <= indexes

    insert = text(
        'INSERT INTO reservations (provider_id, client_id, session_date, session_time, status) '
        'VALUES (7, :client_id, :session_date, :session_time, :status)'
    )
    params = {'session_date': date(2026, 1, 5).isoformat(), 'session_time': time(10, 0).isoformat()}
    with engine.begin() as connection:
        connection.execute(insert, {**params, 'client_id': 1, 'status': 'cancelled_by_client'})
        connection.execute(insert, {**params, 'client_id': 2, 'status': 'pending'})

    session = sessionmaker(bind=engine)()
    try:
        with pytest.raises(IntegrityError):
            session.execute(insert, {**params, 'client_id': 3, 'status': 'confirmed'})
            session.commit()
    finally:
        session.rollback()
        session.close()
        engine.dispose()


def test_ensure_scheduling_schema_accepts_tables_built_by_create_all() -> None:
    engine = create_engine('sqlite:///:memory:')
    Base.metadata.create_all(bind=engine, tables=SCHEDULING_TABLES)

    try:
        ensure_scheduling_schema(bind=engine)

        inspector = inspect(engine)
        assert 'uq_reservations_live_slot' in {index['name'] for index in inspector.get_indexes('reservations')}
        check_names = {check['name'] for check in inspector.get_check_constraints('weekly_availability')}
        assert 'ck_weekly_availability_day_of_week' in check_names
    finally:
        engine.dispose()
