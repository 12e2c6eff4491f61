"""Permission grant model for the local backend.

The local backend has no operating system to ask, so granted calendar
permissions are recorded here and survive restarts like OS grants do.
"""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class PermissionGrant(SQLModel, table=True):
    """A granted calendar permission.

    Attributes:
        name: Permission name, "read" or "write".
        granted_at: When the permission was granted.
    """
    name: str = Field(primary_key=True)
    granted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
