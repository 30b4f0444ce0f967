"""
Asterisk database (AstDB) entries.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DatabaseEntry(BaseModel):
    """
    One key/value pair from the Asterisk internal database.

    Example:
        >>> DatabaseEntry(key="/cidname/5551234", value="Alice")
        DatabaseEntry(/cidname/5551234='Alice')
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Key path, e.g. /family/key")
    value: str = Field(default="", description="Stored value")

    def __repr__(self) -> str:
        return f"DatabaseEntry({self.key}={self.value!r})"
