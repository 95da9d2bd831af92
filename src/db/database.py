"""Generate database sessions for the credential store"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base


def make_session_factory(database_url: str) -> sessionmaker[Session]:
    """Engine + session factory for the configured URL. Ensures all tables are created."""
    engine: Engine = create_engine(database_url)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)
