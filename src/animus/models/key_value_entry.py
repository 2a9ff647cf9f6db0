"""
Key-value entry model for on-device storage.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from animus.core.database import Base


class KeyValueEntry(Base):
    """
    One string-keyed blob in local storage.

    Values are whole JSON documents (or plain strings such as the auth token);
    there are no partial updates.
    """
    __tablename__ = "key_value_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value)})>"
