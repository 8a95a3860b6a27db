# paytrack/db/base.py
from decimal import Decimal

from sqlalchemy import Numeric
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all PayTrack tables.
    Money columns are Decimal -> Numeric(14, 2), never float.
    """
    type_annotation_map = {
        Decimal: Numeric(14, 2),
    }
