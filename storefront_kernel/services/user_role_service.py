"""
UserRoleService -- the role mutator.

Responsibility:
    Changes a user's role and records the change through the AuditRecorder.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - The role is one of UserRole.
    - Same-role requests short-circuit: nothing is written, no history row.
    - A real change and its RoleHistory row share one unit of work.

Failure modes:
    - InvalidRoleError: role is not an enumerated value.
    - UserNotFoundError: user does not exist.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from storefront_kernel.db.locking import lock_row
from storefront_kernel.domain.clock import Clock
from storefront_kernel.exceptions import InvalidRoleError, UserNotFoundError
from storefront_kernel.logging_config import get_logger
from storefront_kernel.models.user import USER_ROLES, User, UserRole
from storefront_kernel.services.audit_recorder import AuditRecorder
from storefront_kernel.services.base import BaseService

logger = get_logger("services.user_role")


class UserRoleService(BaseService[User]):
    """Role changes with an audit trail."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auditor: AuditRecorder | None = None,
    ):
        super().__init__(session, clock)
        self._auditor = auditor or AuditRecorder(session, self._clock)

    def change_role(
        self,
        user_id: UUID,
        new_role: str,
        actor_id: UUID | None = None,
    ) -> User:
        try:
            role = UserRole(new_role)
        except ValueError:
            raise InvalidRoleError(new_role, USER_ROLES) from None

        user = lock_row(self.session, User, user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))

        previous = user.role
        if previous == role.value:
            logger.info(
                "role_change_skipped",
                extra={"user_id": str(user_id), "role": previous},
            )
            return user

        user.role = role.value
        user.updated_at = self._clock.now()
        self.session.flush()
        self._auditor.record_role_change(
            user_id=user.id,
            previous_role=previous,
            new_role=role.value,
            actor_id=actor_id,
        )
        logger.info(
            "role_changed",
            extra={
                "user_id": str(user_id),
                "previous_role": previous,
                "new_role": role.value,
            },
        )
        return user
