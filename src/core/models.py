"""
Boundary layer data model(s).

The Service and the persistence layer exchange credentials through the model defined here,
so neither needs to know about the other's internal representation.
"""

from dataclasses import dataclass

CredentialName = str

ADMIN_CREDENTIAL: CredentialName = "admin"


@dataclass
class CredentialModel:
    """Transport-safe representation of a stored credential (e.g. the admin token)."""

    name: CredentialName
    token: str
