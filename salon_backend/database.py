from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from salon_backend.core import config


connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_indexes_checked = False

SCHEDULING_INDEXES = {
    'appointments': [
        'CREATE INDEX IF NOT EXISTS idx_appointments_professional_range '
        'ON appointments(professional_id, start_time, end_time)',
        'CREATE INDEX IF NOT EXISTS idx_appointments_professional_status '
        'ON appointments(professional_id, status)',
    ],
    'time_blocks': [
        'CREATE INDEX IF NOT EXISTS idx_time_blocks_professional_range '
        'ON time_blocks(professional_id, start_time, end_time)',
    ],
    'payment_transactions': [
        'CREATE INDEX IF NOT EXISTS idx_payment_transactions_professional_created '
        'ON payment_transactions(professional_id, created_at)',
    ],
}


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_scheduling_indexes() -> None:
    global _scheduling_indexes_checked

    if _scheduling_indexes_checked:
        return

    with _schema_lock:
        if _scheduling_indexes_checked:
            return

        existing_tables = set(inspect(engine).get_table_names())

        with engine.begin() as connection:
            for table_name, statements in SCHEDULING_INDEXES.items():
                if table_name not in existing_tables:
                    continue
                for statement in statements:
                    connection.execute(text(statement))

        _scheduling_indexes_checked = True
