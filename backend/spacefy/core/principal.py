"""Principal and role vocabulary shared by the auth layer and the services."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Built-in role names. Role rows in the database use these names."""

    DEVELOPER = "DEVELOPER"
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CUSTOMER = "CUSTOMER"


@dataclass(frozen=True)
class Principal:
    """The authenticated identity making a request.

    Decoded from the session token; immutable for the lifetime of the request.
    """

    user_id: str
    role_id: str
    role_name: str
