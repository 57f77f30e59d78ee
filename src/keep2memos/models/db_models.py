"""SQLAlchemy models for the Memos tables the importer writes to.

Only the columns the importer fills are mapped. The tables belong to the
Memos server; the importer never creates or alters them.
"""
from sqlalchemy import (Column, DateTime, Integer, String, Text,
                        UniqueConstraint, create_engine)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from keep2memos.config import ImporterConfig

# Create base class for SQLAlchemy models
Base = declarative_base()


class DBMemo(Base):
    """A memo row."""
    __tablename__ = "memo"
    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(256), nullable=False, unique=True)
    creator_id = Column(Integer, nullable=False)
    created_ts = Column(DateTime, nullable=False)
    updated_ts = Column(DateTime, nullable=False)
    row_status = Column(String(256), nullable=False, default="NORMAL")
    content = Column(Text, nullable=False)
    visibility = Column(String(256), nullable=False, default="PRIVATE")
    tags = Column(Text, nullable=False, default="[]")
    payload = Column(Text, nullable=False, default="{}")

    def __repr__(self) -> str:
        """Return string representation of memo."""
        return f"<Memo(id={self.id}, uid='{self.uid}')>"


class DBMemoOrganizer(Base):
    """Per-user pin state of a memo."""
    __tablename__ = "memo_organizer"
    memo_id = Column(Integer, primary_key=True)
    user_id = Column(Integer, primary_key=True)
    pinned = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("memo_id", "user_id", name="memo_organizer_memo_user"),
    )

    def __repr__(self) -> str:
        return (
            f"<MemoOrganizer(memo_id={self.memo_id}, user_id={self.user_id}, "
            f"pinned={self.pinned})>"
        )


class DBResource(Base):
    """An attachment stored on local disk and linked to a memo."""
    __tablename__ = "resource"
    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(256), nullable=False, unique=True)
    creator_id = Column(Integer, nullable=False)
    created_ts = Column(DateTime, nullable=False)
    updated_ts = Column(DateTime, nullable=False)
    filename = Column(Text, nullable=False)
    type = Column(String(256), nullable=False, default="")
    size = Column(Integer, nullable=False, default=0)
    memo_id = Column(Integer, nullable=True, index=True)
    storage_type = Column(String(256), nullable=False, default="")
    reference = Column(String(256), nullable=False, default="")
    payload = Column(Text, nullable=False, default="{}")

    def __repr__(self) -> str:
        return f"<Resource(id={self.id}, memo_id={self.memo_id}, filename='{self.filename}')>"


def create_store_engine(cfg: ImporterConfig) -> Engine:
    """Create the engine for the Memos database.

    MySQL connections get a UTC session time zone so that naive UTC
    datetimes land unchanged in TIMESTAMP columns, and a bounded
    connect/read/write timeout.
    """
    url = cfg.get_db_url()
    timeout = int(cfg.request_timeout)
    engine_kwargs = {"pool_pre_ping": True}

    if url.startswith("mysql"):
        engine_kwargs.update(
            pool_size=max(cfg.workers, 1),
            max_overflow=2,
            pool_timeout=timeout,
            pool_recycle=3600,
            connect_args={
                "connect_timeout": timeout,
                "read_timeout": timeout,
                "write_timeout": timeout,
                "init_command": "SET time_zone = '+00:00'",
            },
        )
    elif url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {
            "timeout": timeout,
            "check_same_thread": False,
        }

    return create_engine(url, **engine_kwargs)


def get_session_factory(engine: Engine) -> sessionmaker:
    """Get a session factory for the database."""
    return sessionmaker(bind=engine, expire_on_commit=False)
