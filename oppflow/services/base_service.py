"""Shared service base bound to one session and one tenant."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from oppflow.core.exceptions import ConflictError, DatabaseError
from oppflow.models import Tenant
from oppflow.repositories.tenant_scope import TenantScope

logger = logging.getLogger(__name__)


class BaseService:
    """Base class for services that operate inside a single tenant."""

    def __init__(self, db: Session, tenant: Tenant) -> None:
        self.db = db
        self.tenant = tenant
        self.scope = TenantScope(db, tenant.id)

    @property
    def tenant_id(self) -> int:
        return self.tenant.id

    def commit(self) -> None:
        """Commit current transaction and rollback on failure."""
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Write conflicts with existing data.") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(
                "database.commit_failed",
                extra={"event": "database.commit_failed", "tenant_id": self.tenant_id},
            )
            raise DatabaseError("Database operation failed.") from exc

    def rollback(self) -> None:
        self.db.rollback()
