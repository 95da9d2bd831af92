"""Implementation of (Credential)Repository using SQLAlchemy"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError
from src.core.models import CredentialModel, CredentialName
from src.db.schema import DBCredential

logger = logging.getLogger(__name__)


class SQLCredentialRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_credential(self, name: CredentialName) -> CredentialModel | None:
        """Get credential by name, if record exists."""
        credential_db = self._fetch_credential(name)
        if credential_db:
            return self._to_model(credential_db)
        return None

    def save_credential(self, credential: CredentialModel) -> CredentialModel:
        """Create the record, or replace the token of an existing one."""
        credential_db = self._fetch_credential(credential.name)
        if credential_db is None:
            credential_db = DBCredential(name=credential.name, token=credential.token)
            self.db.add(credential_db)
        else:
            credential_db.token = credential.token
        self._commit(f"store credential {credential.name!r}")
        self.db.refresh(credential_db)
        return self._to_model(credential_db)

    def delete_credential(self, name: CredentialName) -> CredentialModel | None:
        """Remove a credential's record."""
        credential_db = self._fetch_credential(name)
        if not credential_db:
            return None
        credential_model = self._to_model(credential_db)
        self.db.delete(credential_db)
        self._commit(f"delete credential {name!r}")
        return credential_model

    def _fetch_credential(self, name: CredentialName) -> DBCredential | None:
        query = select(DBCredential).where(DBCredential.name == name)
        try:
            return self.db.scalar(query)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Could not read credential {name!r}.") from exc

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Could not %s: %s", action, exc)
            raise RepositoryError(f"Could not {action}.") from exc

    def _to_model(self, credential_db: DBCredential) -> CredentialModel:
        """Convert SQLAlchemy model to data transfer model."""
        return CredentialModel(name=credential_db.name, token=credential_db.token)
