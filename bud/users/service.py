"""
Use cases for user accounts.

:class:`UserService` checks who may act on which account, fills in the
fields that callers never set (ids, password hashes, timestamps), delegates
persistence to a :class:`.Storer`, and wraps the outcome in a response
envelope from :mod:`bud.users.schemas`. Failures are reported in the
envelope's ``error`` field rather than raised.
"""

from functools import wraps
from typing import Any, Callable, List, Tuple, Type
from uuid import uuid4

from pydantic import ValidationError

from . import config, logging, passwords, rpc
from .auth import roles
from .auth.decorators import authorized, can_update_user
from .domain import Claims, User, UserView
from .exceptions import InvalidCredentials, NotFound, UserServiceError, \
    ValidationFailure
from .rpc import GenericRequest, RPCEndpoint
from .schemas import AuthenticateRequest, AuthenticateResponse, \
    CreateUserRequest, CreateUserResponse, DeleteUserRequest, \
    DeleteUserResponse, QueryUserByEmailRequest, QueryUserByEmailResponse, \
    QueryUserByIDRequest, QueryUserByIDResponse, QueryUserRequest, \
    QueryUserResponse, Response, UpdateUserRequest, UpdateUserResponse
from .stores import Storer

logger = logging.getLogger(__name__)

SERVICE_NAME = 'UserService'

AUTHENTICATION_FAILED = 'authentication failed'

ENDPOINTS: List[Tuple[str, List[str], str, Type]] = [
    ('CreateUser', [roles.ADMIN], 'create_user', CreateUserRequest),
    ('UpdateUser', [roles.ADMIN, roles.USER], 'update_user',
     UpdateUserRequest),
    ('DeleteUser', [roles.ADMIN], 'delete_user', DeleteUserRequest),
    ('QueryUser', [roles.ADMIN], 'query_user', QueryUserRequest),
    ('QueryUserByID', [roles.ADMIN], 'query_user_by_id',
     QueryUserByIDRequest),
    ('QueryUserByEmail', [roles.ADMIN], 'query_user_by_email',
     QueryUserByEmailRequest),
    ('Authenticate', roles.ANY, 'authenticate', AuthenticateRequest),
]
"""Method name, allowed roles, operation and request type, per method."""


def enveloped(response_cls: Type[Response]) -> Callable:
    """Report :class:`.UserServiceError` as an error in ``response_cls``."""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self: Any, request: Any, gr: GenericRequest) -> Response:
            try:
                response: Response = func(self, request, gr)
            except UserServiceError as e:
                logger.debug('%s failed: %s', func.__name__, e)
                return response_cls(error=str(e) or type(e).__name__)
            return response
        return wrapper
    return decorator


def _validated_user(**data: Any) -> User:
    try:
        return User(**data)
    except ValidationError as e:
        raise ValidationFailure(f'invalid user: {e}') from e


class UserService:
    """
    Creates, updates, deletes, queries and authenticates users.

    Holds nothing but its storer and hashing cost, so one instance can
    serve concurrent calls.
    """

    def __init__(self, storer: Storer,
                 cost: int = config.BCRYPT_COST) -> None:
        """
        Parameters
        ----------
        storer : :class:`.Storer`
            Where users are kept.
        cost : int
            bcrypt work factor for new password hashes.

        """
        self.storer = storer
        self.cost = cost
        # Checked against when the e-mail is unknown, so that failed
        # lookups take as long as failed password checks.
        self._decoy_hash = passwords.hash_password(uuid4().hex, cost)

    def register(self, server: rpc.Server) -> None:
        """Register every operation in :data:`ENDPOINTS` with ``server``."""
        for method, allowed, operation, request_cls in ENDPOINTS:
            server.register(SERVICE_NAME, method, RPCEndpoint(
                roles=list(allowed),
                handler=rpc.handler(request_cls, getattr(self, operation))
            ))

    @enveloped(CreateUserResponse)
    def create_user(self, request: CreateUserRequest,
                    gr: GenericRequest) -> CreateUserResponse:
        """Create a user with a fresh id, enabled, stamped with ``now``."""
        new_user = request.new_user
        gr.ctx.check()
        password_hash = passwords.hash_password(new_user.password, self.cost)
        gr.ctx.check()

        now = gr.values.now
        user = _validated_user(
            id=uuid4(),
            name=new_user.name,
            email=new_user.email,
            roles=new_user.roles,
            password_hash=password_hash,
            department=new_user.department,
            enabled=True,
            date_created=now,
            date_updated=now
        )
        created = self.storer.create(gr.ctx, user)
        logger.debug('Created user %s', created.id)
        return CreateUserResponse(user=UserView.from_user(created))

    @enveloped(UpdateUserResponse)
    @authorized(can_update_user)
    def update_user(self, request: UpdateUserRequest,
                    gr: GenericRequest) -> UpdateUserResponse:
        """
        Apply the fields set in ``request.update_user`` to a user.

        Administrators may update anyone; other callers only themselves.
        """
        gr.ctx.check()
        current = self.storer.query_by_id(gr.ctx, request.id)

        changes = request.update_user.model_dump(
            exclude_none=True, exclude={'password', 'password_confirm'}
        )
        if request.update_user.password is not None:
            changes['password_hash'] = passwords.hash_password(
                request.update_user.password, self.cost
            )
            gr.ctx.check()

        data = current.model_dump()
        data.update(changes)
        data['date_updated'] = gr.values.now
        user = _validated_user(**data)

        updated = self.storer.update(gr.ctx, user)
        logger.debug('Updated user %s', updated.id)
        return UpdateUserResponse(user=UserView.from_user(updated))

    @enveloped(DeleteUserResponse)
    def delete_user(self, request: DeleteUserRequest,
                    gr: GenericRequest) -> DeleteUserResponse:
        """Remove a user, returning it as it was."""
        gr.ctx.check()
        deleted = self.storer.delete(gr.ctx, request.id)
        logger.debug('Deleted user %s', deleted.id)
        return DeleteUserResponse(user=UserView.from_user(deleted))

    @enveloped(QueryUserResponse)
    def query_user(self, request: QueryUserRequest,
                   gr: GenericRequest) -> QueryUserResponse:
        """Get a page of users matching the request's filters."""
        gr.ctx.check()
        users = self.storer.query(gr.ctx, request.query)
        return QueryUserResponse(users=[UserView.from_user(u) for u in users])

    @enveloped(QueryUserByIDResponse)
    def query_user_by_id(self, request: QueryUserByIDRequest,
                         gr: GenericRequest) -> QueryUserByIDResponse:
        """Get a user by id."""
        gr.ctx.check()
        user = self.storer.query_by_id(gr.ctx, request.id)
        return QueryUserByIDResponse(user=UserView.from_user(user))

    @enveloped(QueryUserByEmailResponse)
    def query_user_by_email(self, request: QueryUserByEmailRequest,
                            gr: GenericRequest) -> QueryUserByEmailResponse:
        """Get a user by e-mail address."""
        gr.ctx.check()
        user = self.storer.query_by_email(gr.ctx, request.email)
        return QueryUserByEmailResponse(user=UserView.from_user(user))

    @enveloped(AuthenticateResponse)
    def authenticate(self, request: AuthenticateRequest,
                     gr: GenericRequest) -> AuthenticateResponse:
        """
        Find a user by e-mail address and verify their password.

        On success the response carries :class:`.Claims` for the user,
        which can be used to issue a token. Every failure, whether the
        address is unknown, the password is wrong, or the account is
        disabled, is reported with the same message.
        """
        gr.ctx.check()
        try:
            user = self.storer.query_by_email(gr.ctx, request.email)
        except NotFound as e:
            passwords.check_password(request.password, self._decoy_hash)
            raise NotFound(AUTHENTICATION_FAILED) from e

        if not passwords.check_password(request.password, user.password_hash):
            raise InvalidCredentials(AUTHENTICATION_FAILED)
        if not user.enabled:
            logger.debug('User %s is disabled', user.id)
            raise InvalidCredentials(AUTHENTICATION_FAILED)

        return AuthenticateResponse(claims=Claims(
            user_id=str(user.id),
            roles=[role.value for role in user.roles]
        ))
