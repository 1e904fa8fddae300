"""Declarative base shared by every persisted entity."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
