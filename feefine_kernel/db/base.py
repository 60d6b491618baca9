"""
Module: feefine_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models.  Provides
    the string UUID primary key convention and the type annotation map that
    keeps monetary and timestamp columns consistent across models.
Architecture position: Kernel > DB.  ALL model files import from here.  This
    module MUST NOT import from models/, selectors/, or outer layers.

Invariants enforced:
    - UUID primary keys: every model gets a uuid4-generated String(36) key.
    - Money annotations map to MoneyType (Numeric(12, 2)); NEVER float.
    - datetime annotations map to UTCDateTime (timezone-aware on load).
"""

from datetime import datetime
from typing import ClassVar
from uuid import uuid4

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from feefine_kernel.db.types import MoneyType, UTCDateTime
from feefine_kernel.domain.values import Money


def new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is always a uuid4 string stored as String(36).
        - Money maps to MoneyType, datetime maps to UTCDateTime.
        - int maps to BigInteger -- safe for monotonic sequences.
    """

    type_annotation_map: ClassVar[dict] = {
        Money: MoneyType(),
        datetime: UTCDateTime(),
        int: BigInteger,
    }

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )
