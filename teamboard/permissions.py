"""Decides who may do what on a project.

Everything here is a pure function of the caller, a ``Roster`` snapshot
and a few facts about the target object, so it can be called from any
thread or request without synchronization. Operations must call
``check()`` before writing anything.
"""
import enum
import logging

from .exceptions import ForbiddenError
from .models import Invitation

logger = logging.getLogger(__name__)


class Action(enum.Enum):
    READ_PROJECT = 'read_project'
    LIST_TASKS = 'list_tasks'
    READ_COMMENTS = 'read_comments'
    UPDATE_PROJECT = 'update_project'
    DELETE_PROJECT = 'delete_project'
    MANAGE_MEMBERS = 'manage_members'
    REMOVE_MEMBER = 'remove_member'
    SEND_INVITATION = 'send_invitation'
    VIEW_INVITATIONS = 'view_invitations'
    RESPOND_INVITATION = 'respond_invitation'
    DELETE_INVITATION = 'delete_invitation'
    MANAGE_TASKS = 'manage_tasks'
    POST_COMMENT = 'post_comment'
    UPDATE_COMMENT = 'update_comment'
    DELETE_COMMENT = 'delete_comment'


_MEMBER_ACTIONS = {
    Action.READ_PROJECT,
    Action.LIST_TASKS,
    Action.READ_COMMENTS,
    Action.MANAGE_TASKS,
    Action.POST_COMMENT,
}

_MANAGER_ACTIONS = {
    Action.UPDATE_PROJECT,
    Action.MANAGE_MEMBERS,
    Action.VIEW_INVITATIONS,
}


def is_allowed(caller, roster, action, *, role=None, target_id=None,
               author_id=None, invited_by_id=None, email=None):
    """Return True if caller may perform action.

    Args:
        caller: the authenticated Identity
        roster: Roster of the project the action applies to
        action: an Action
        role: requested invitation role, for SEND_INVITATION
        target_id: user being removed, for REMOVE_MEMBER
        author_id: comment author, for UPDATE_COMMENT and DELETE_COMMENT
        invited_by_id: inviter, for DELETE_INVITATION
        email: invitation address, for RESPOND_INVITATION
    """
    user_id = caller.id

    if action in _MEMBER_ACTIONS:
        return roster.is_member(user_id)

    if action in _MANAGER_ACTIONS:
        return roster.is_manager(user_id)

    if action is Action.DELETE_PROJECT:
        return user_id == roster.owner_id

    if action is Action.REMOVE_MEMBER:
        return roster.is_manager(user_id) and not roster.is_protected(target_id)

    if action is Action.SEND_INVITATION:
        if role == Invitation.Role.TEAM_LEADER:
            return user_id == roster.owner_id
        return roster.is_manager(user_id)

    if action is Action.RESPOND_INVITATION:
        # Identity based, the invitee is not a member yet
        return caller.owns_email(email)

    if action is Action.DELETE_INVITATION:
        return user_id == roster.owner_id or user_id == invited_by_id

    if action is Action.UPDATE_COMMENT:
        return author_id is not None and user_id == author_id

    if action is Action.DELETE_COMMENT:
        return (author_id is not None and user_id == author_id) \
            or roster.is_manager(user_id)

    raise ValueError(f'Unknown action {action!r}')


def check(caller, roster, action, message=None, **context):
    """Raise ForbiddenError unless is_allowed()"""
    if not is_allowed(caller, roster, action, **context):
        logger.debug('Denied %s to user %s', action.value, caller.id)
        raise ForbiddenError(message)
