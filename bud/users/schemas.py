"""
Request and response envelopes for the user service.

Each operation has one request and one response type. A response carries
either its result or a non-empty ``error`` message, never both; a missing
``error`` means success.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import Field

from .domain import Claims, DomainModel, Email, NewUser, UpdateUser, \
    UserQuery, UserView


class Response(DomainModel):
    """Base for response envelopes."""

    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Whether the operation succeeded."""
        return not self.error


def encode(response: Response) -> bytes:
    """Serialize a response for the wire, omitting absent fields."""
    return response.model_dump_json(by_alias=True, exclude_none=True) \
        .encode('utf-8')


class CreateUserRequest(DomainModel):
    new_user: NewUser


class CreateUserResponse(Response):
    user: Optional[UserView] = None


class UpdateUserRequest(DomainModel):
    id: UUID
    """The user to update."""

    update_user: UpdateUser


class UpdateUserResponse(Response):
    user: Optional[UserView] = None


class DeleteUserRequest(DomainModel):
    id: UUID


class DeleteUserResponse(Response):
    user: Optional[UserView] = None
    """The user as it was before deletion."""


class QueryUserRequest(DomainModel):
    query: UserQuery = Field(default_factory=UserQuery)


class QueryUserResponse(Response):
    users: List[UserView] = []


class QueryUserByIDRequest(DomainModel):
    id: UUID


class QueryUserByIDResponse(Response):
    user: Optional[UserView] = None


class QueryUserByEmailRequest(DomainModel):
    email: Email


class QueryUserByEmailResponse(Response):
    user: Optional[UserView] = None


class AuthenticateRequest(DomainModel):
    email: Email
    password: str = Field(repr=False)


class AuthenticateResponse(Response):
    claims: Optional[Claims] = None
    """Identity of the authenticated user, e.g. for a token."""
