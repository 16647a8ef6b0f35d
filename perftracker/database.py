# database.py – SQLAlchemy setup (tier durable)

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Base pour les modèles
Base = declarative_base()


def make_engine(db_url: str) -> Engine:
    # Si on utilise SQLite, créer le dossier parent du fichier .db
    if db_url.startswith("sqlite:///"):
        db_file = db_url.replace("sqlite:///", "")
        if db_file and db_file != ":memory:":
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(db_url, future=True, connect_args={"check_same_thread": False})
    return create_engine(db_url, future=True, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        future=True,
    )


def init_db(engine: Engine) -> None:
    """Créer les tables si elles n'existent pas encore."""
    # Import local pour éviter le cycle d'import
    from perftracker.db import performance_store  # noqa: F401
    Base.metadata.create_all(bind=engine)
