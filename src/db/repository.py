"""Protocol repository for stored credentials (SQLAlchemy implementation in sql_repository.py)"""

from typing import Protocol

from src.core.models import CredentialModel, CredentialName


class CredentialRepository(Protocol):
    """Persistence layer orchestration"""

    def get_credential(self, name: CredentialName) -> CredentialModel | None:
        """Get credential by name, if record exists."""
        ...

    def save_credential(self, credential: CredentialModel) -> CredentialModel:
        """Create the record, or replace the token of an existing one."""
        ...

    def delete_credential(self, name: CredentialName) -> CredentialModel | None:
        """Remove a credential's record."""
        ...
