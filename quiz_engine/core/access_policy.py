"""Authorization predicates shared by every quiz and attempt operation."""

from __future__ import annotations

import logging

from quiz_engine.core.errors import AccessDenied, NotFound
from quiz_engine.core.models import Attempt, Principal, Role

logger = logging.getLogger(__name__)


class AccessPolicy:
    """Decides whether a principal may author, write or read a record."""

    _AUTHOR_ROLES = frozenset({Role.ADMIN, Role.TEACHER})

    def can_author(self, principal: Principal) -> bool:
        return principal.role in self._AUTHOR_ROLES

    def can_write(self, principal: Principal, owner_id: str) -> bool:
        """Owners may write their records; admins may write anything."""
        return principal.role is Role.ADMIN or principal.user_id == owner_id

    def can_access_attempt(self, principal: Principal, attempt: Attempt) -> bool:
        # Attempts are private to their student, admins included.
        return attempt.student_id == principal.user_id

    def ensure_can_author(self, principal: Principal) -> None:
        if not self.can_author(principal):
            logger.warning("User %s (%s) may not author quizzes", principal.user_id, principal.role.value)
            raise AccessDenied()

    def ensure_can_write(self, principal: Principal, owner_id: str) -> None:
        if not self.can_write(principal, owner_id):
            logger.warning("User %s denied write access to a record owned by %s", principal.user_id, owner_id)
            raise AccessDenied()

    def ensure_can_access_attempt(self, principal: Principal, attempt: Attempt | None) -> Attempt:
        """Return the attempt, or raise NotFound so foreign attempts stay invisible."""
        if attempt is None or not self.can_access_attempt(principal, attempt):
            raise NotFound("Attempt")
        return attempt
