from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()


class Settings(BaseSettings):
    database_url: str = "sqlite:///./edu.db"
    # Bounded wait to obtain a connection / row lock, and total transaction budget.
    tx_acquire_timeout_seconds: float = 5.0
    tx_timeout_seconds: float = 15.0
    # What removing a completion does to Enrollment.completed_at: "clear" or "derive".
    completed_at_on_removal: Literal["clear", "derive"] = "clear"
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_console: bool = False


settings = Settings()


def build_engine(url: str, acquire_timeout: float = settings.tx_acquire_timeout_seconds, **kwargs) -> Engine:
    """Create an engine with the acquire timeout wired into the driver or the pool."""
    if url.startswith("sqlite"):
        eng = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": acquire_timeout},
            **kwargs,
        )
        event.listen(eng, "connect", _enable_sqlite_foreign_keys)
        return eng
    return create_engine(url, pool_timeout=acquire_timeout, pool_pre_ping=True, **kwargs)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)
Base = declarative_base()


def reset_db():
    Base.metadata.drop_all(bind=engine)
    print("Database dropped")
    create_db()


def create_db():
    import edu_api.models  # noqa: F401 (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
    print("Database created")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
