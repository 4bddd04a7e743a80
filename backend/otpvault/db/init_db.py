# backend/otpvault/db/init_db.py
from otpvault.db.base import Base
from otpvault.db.session import engine

# models must be imported so the tables are registered on Base.metadata
from otpvault import models  # noqa: F401


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
