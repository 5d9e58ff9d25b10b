import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from . import config


def get_base_dir():
    # backend/memopad/../ -> backend/
    return os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

BASE_DIR = get_base_dir()
DEFAULT_DB_PATH = os.path.join(BASE_DIR, "memopad.db")

if os.name == 'nt':
    # Windows absolute path handling for SQLAlchemy
    DEFAULT_DB_URL = f"sqlite:///{DEFAULT_DB_PATH}"
else:
    # Linux/Unix absolute path (note 4 slashes total: sqlite:// + /absolute/path)
    DEFAULT_DB_URL = f"sqlite:////{DEFAULT_DB_PATH.lstrip('/')}"

DATABASE_URL = config.DATABASE_URL or DEFAULT_DB_URL


def make_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(url, connect_args=connect_args)


engine = make_engine(DATABASE_URL)

Base = declarative_base()
