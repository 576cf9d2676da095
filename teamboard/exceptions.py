class TeamboardError(Exception):
    """Base class for every error raised by teamboard operations.

    Each subclass carries a stable ``code`` that the transport layer
    uses to build its response, in the ``error/...`` form.
    """
    code = 'error/unknown'
    default_message = 'Unexpected error'

    def __init__(self, msg=None):
        self.message = msg or self.default_message
        super().__init__(self.message)


class UnauthorizedError(TeamboardError):
    code = 'error/unauthorized'
    default_message = 'Authentication required'


class ForbiddenError(TeamboardError):
    code = 'error/forbidden'
    default_message = 'Not authorized'


class NotFoundError(TeamboardError):
    code = 'error/not-found'
    default_message = 'Not found'


class UserNotFoundError(TeamboardError):
    code = 'error/user-not-found'
    default_message = ('No user found with this email. '
                       'Please ask them to register first.')


class InvalidDataError(TeamboardError):
    code = 'error/invalid'
    default_message = 'Invalid data'

    def __init__(self, msg=None, errors=None):
        self.errors = errors or {}
        super().__init__(msg)


class ConflictError(TeamboardError):
    code = 'error/conflict'
    default_message = 'Conflicting state'


class AlreadyMember(ConflictError):
    code = 'error/already-member'
    default_message = 'User is already a member of this project'


class DuplicatePending(ConflictError):
    code = 'error/duplicate-pending'
    default_message = 'Invitation already sent to this user'


class AlreadyProcessed(ConflictError):
    code = 'error/already-processed'
    default_message = 'Invitation already processed'


class ProtectedRole(ConflictError):
    code = 'error/protected-role'
    default_message = 'Cannot remove owner or team leader'
