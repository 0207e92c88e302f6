import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from .db import TenantStore
from .errors import DuplicateKeyError, StorageError
from .models import User

logger = logging.getLogger(__name__)


class UserRepository:
    """User records of a single tenant store.

    Every call opens its own short-lived session and runs in the threadpool.
    """

    def __init__(self, store: TenantStore):
        self.store = store

    async def find_by_email(self, email: str) -> Optional[User]:
        return await run_in_threadpool(self._first, User.email == email)

    async def find_by_external_id(self, external_id: str) -> Optional[User]:
        return await run_in_threadpool(self._first, User.external_id == external_id)

    async def create(self, user: User) -> User:
        return await run_in_threadpool(self._create, user)

    async def list_external_ids(self) -> List[str]:
        return await run_in_threadpool(self._external_ids)

    def _first(self, criterion) -> Optional[User]:
        db = self.store.session()
        try:
            return db.query(User).filter(criterion).first()
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def _create(self, user: User) -> User:
        db = self.store.session()
        try:
            db.add(user)
            db.commit()
            db.refresh(user)
            return user
        except IntegrityError as e:
            db.rollback()
            logger.info("Duplicate user rejected in tenant %s: %s", self.store.tenant_id, e.orig)
            raise DuplicateKeyError("Email or external id already exists.") from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def _external_ids(self) -> List[str]:
        db = self.store.session()
        try:
            rows = db.query(User.external_id).order_by(User.created_at.asc()).all()
            return [row[0] for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e
        finally:
            db.close()
