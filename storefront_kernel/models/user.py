"""
Module: storefront_kernel.models.user
Responsibility: ORM persistence for the slice of the user account the kernel
    needs: identity (FK target for orders, payments, cart) and role.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - role is one of UserRole (DB check constraint).
    - role changes go through UserRoleService so that each real change leaves
      exactly one RoleHistory row.
"""

from enum import Enum

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront_kernel.db.base import TimestampedBase


class UserRole(str, Enum):
    """Privilege level supplied by the identity layer."""

    USER = "user"
    ADMIN = "admin"


USER_ROLES: tuple[str, ...] = tuple(r.value for r in UserRole)


class User(TimestampedBase):
    """
    Storefront account.

    Profile management (passwords, email changes) lives outside the kernel;
    this model only carries what orders, payments and audit rows reference.
    """

    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_users_valid_role"),
    )

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.USER.value,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User {self.username} role={self.role}>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
