from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from booking_backend.core import config


connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

APPOINTMENT_OVERLAP_CONSTRAINT = 'appointments_no_overlap'

_schema_lock = Lock()
_appointment_schema_checked = False
_time_block_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('source', 'ALTER TABLE appointments ADD COLUMN source VARCHAR'),
            ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
            ('cancelled_at', 'ALTER TABLE appointments ADD COLUMN cancelled_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_appointments_professional_range '
                    'ON appointments(professional_id, start_datetime, end_datetime)'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_status_start ON appointments(status, start_datetime)')
            )

            # Postgres enforces the no-double-booking rule itself; other backends rely on the commit guard.
            if engine.dialect.name == 'postgresql':
                connection.execute(text('CREATE EXTENSION IF NOT EXISTS btree_gist'))
                constraint_exists = connection.execute(
                    text('SELECT 1 FROM pg_constraint WHERE conname = :name'),
                    {'name': APPOINTMENT_OVERLAP_CONSTRAINT},
                ).first()
                if not constraint_exists:
                    connection.execute(
                        text(
                            f'ALTER TABLE appointments ADD CONSTRAINT {APPOINTMENT_OVERLAP_CONSTRAINT} '
                            'EXCLUDE USING gist ('
                            'professional_id WITH =, '
                            "tsrange(start_datetime, end_datetime, '[)') WITH &&"
                            ") WHERE (status <> 'cancelled')"
                        )
                    )

        _appointment_schema_checked = True


def ensure_time_block_schema() -> None:
    global _time_block_schema_checked

    if _time_block_schema_checked:
        return

    with _schema_lock:
        if _time_block_schema_checked:
            return

        inspector = inspect(engine)

        if 'time_blocks' not in inspector.get_table_names():
            _time_block_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('time_blocks')}

        with engine.begin() as connection:
            if 'block_type' not in existing_columns:
                connection.execute(text('ALTER TABLE time_blocks ADD COLUMN block_type VARCHAR'))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_time_blocks_range ON time_blocks(start_datetime, end_datetime)')
            )
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_time_blocks_professional_start '
                    'ON time_blocks(professional_id, start_datetime)'
                )
            )

        _time_block_schema_checked = True
