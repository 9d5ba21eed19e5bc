from flask import current_app
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .models import Base

EXTENSION_KEY = "storefront.db"


class Database:
    """Engine and session factory owned by one application instance."""

    def __init__(self, url: str):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, future=True, connect_args=connect_args)
        self._sessions = sessionmaker(self.engine, expire_on_commit=False, future=True)

    def session(self):
        return self._sessions()

    def create_all(self):
        Base.metadata.create_all(self.engine)

    def drop_all(self):
        Base.metadata.drop_all(self.engine)

    def dispose(self):
        self.engine.dispose()


def init_app(app):
    store = Database(app.config["DATABASE_URL"])
    store.create_all()
    app.extensions[EXTENSION_KEY] = store
    return store


def get_db() -> Database:
    return current_app.extensions[EXTENSION_KEY]
