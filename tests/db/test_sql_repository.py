"""Unit tests for src/db/sql_repository.py"""

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError
from src.core.models import ADMIN_CREDENTIAL, CredentialModel
from src.db.schema import DBCredential
from src.db.sql_repository import SQLCredentialRepository


def test_save_credential(db_session_repo: Session) -> None:
    """Conversion from a CredentialModel to DBCredential for a new entry to the database."""
    model = CredentialModel(name=ADMIN_CREDENTIAL, token="s3cret")

    repo = SQLCredentialRepository(db_session_repo)
    stored = repo.save_credential(model)
    assert isinstance(stored, CredentialModel)
    assert stored == model

    record = db_session_repo.scalar(select(DBCredential))
    assert record is not None
    assert record.created_at is not None


def test_get_credential(db_session_repo: Session) -> None:
    repo = SQLCredentialRepository(db_session_repo)
    expected = repo.save_credential(CredentialModel(name=ADMIN_CREDENTIAL, token="s3cret"))
    assert repo.get_credential(ADMIN_CREDENTIAL) == expected


def test_get_unknown_credential(db_session_repo: Session) -> None:
    """
    Should return None if the name does not match anything in database.

    NOTE with an empty database, any name is a valid test case.
    """
    repo = SQLCredentialRepository(db_session_repo)
    assert repo.get_credential(ADMIN_CREDENTIAL) is None

    repo.save_credential(CredentialModel(name="caller", token="abc"))
    assert repo.get_credential(ADMIN_CREDENTIAL) is None


def test_save_replaces_token(db_session_repo: Session) -> None:
    """Saving under an existing name is an update, not a second record."""
    repo = SQLCredentialRepository(db_session_repo)
    repo.save_credential(CredentialModel(name=ADMIN_CREDENTIAL, token="old"))
    updated = repo.save_credential(CredentialModel(name=ADMIN_CREDENTIAL, token="new"))

    assert updated.token == "new"
    assert repo.get_credential(ADMIN_CREDENTIAL) == updated
    assert len(db_session_repo.scalars(select(DBCredential)).all()) == 1


def test_delete_credential(db_session_repo: Session) -> None:
    repo = SQLCredentialRepository(db_session_repo)
    model = repo.save_credential(CredentialModel(name=ADMIN_CREDENTIAL, token="s3cret"))

    deleted = repo.delete_credential(ADMIN_CREDENTIAL)
    assert deleted == model
    assert repo.get_credential(ADMIN_CREDENTIAL) is None


def test_delete_unknown_credential(db_session_repo: Session) -> None:
    repo = SQLCredentialRepository(db_session_repo)
    assert repo.delete_credential("nobody") is None


def test_database_failure_raises_repository_error(db_session_repo: Session) -> None:
    """SQLAlchemy errors do not leak out of the repository."""
    repo = SQLCredentialRepository(db_session_repo)
    DBCredential.__table__.drop(bind=db_session_repo.get_bind())

    with pytest.raises(RepositoryError):
        repo.get_credential(ADMIN_CREDENTIAL)
