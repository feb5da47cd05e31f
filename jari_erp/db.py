import threading
from contextlib import contextmanager

from sqlmodel import SQLModel, create_engine, Session

from jari_erp.config import settings

DATABASE_URL = settings.DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

# Serializes every state-changing command within this process.
_write_lock = threading.RLock()
_local = threading.local()


def init_db() -> None:
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def transaction(session: Session):
    """Run one command as a single unit of work.

    The write lock is held from the first read to the commit, so a
    check-then-mutate sequence cannot interleave with another command.
    A nested call joins the outer unit of work; only the outermost one
    commits. Any exception rolls the whole command back.
    """
    with _write_lock:
        depth = getattr(_local, "depth", 0)
        _local.depth = depth + 1
        try:
            yield session
            if depth == 0:
                session.commit()
            else:
                session.flush()
        except Exception:
            if depth == 0:
                session.rollback()
            raise
        finally:
            _local.depth = depth
