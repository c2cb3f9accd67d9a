"""User model for authentication."""

from sqlalchemy import BigInteger, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from photoshare.core.timing import now_ms
from photoshare.db.base import Base

ROLE_ADMIN = "admin"
ROLE_ROOT = "root"


class User(Base):
    """Organizer account. Root users see and manage every event."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(16), default=ROLE_ADMIN)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms)

    @property
    def is_root(self) -> bool:
        return self.role == ROLE_ROOT

    def can_manage(self, owner_id: int | None) -> bool:
        """Root bypasses ownership; admins only manage their own events."""
        return self.is_root or (owner_id is not None and owner_id == self.id)
