import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .errors import StoreError
from .models import Base

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Engine plus session factory for one database URI.

    Each call to ``session()`` hands out a fresh session that is closed on
    exit; there are no multi-statement transactions spanning calls.
    """

    def __init__(self, uri, echo=False):
        self.uri = uri
        self.engine = create_engine(uri, echo=echo, future=True)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    @property
    def display_uri(self):
        return self.engine.url.render_as_string(hide_password=True)

    def connect(self):
        """
        Create tables if not present. Connection errors are logged and
        returned as False so the process keeps running.
        """
        try:
            Base.metadata.create_all(self.engine)
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except OperationalError as e:
            logger.error("Record store connection error (%s): %s", self.display_uri, e)
            return False
        logger.info("Connected to record store %s", self.display_uri)
        return True

    @contextmanager
    def session(self):
        session = self.SessionLocal()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Record store operation failed: %s", e)
            raise StoreError(original_exception=e) from e
        finally:
            session.close()

    def dispose(self):
        self.engine.dispose()
