"""Invitation state machine.

An invitation starts ``pending`` and ends either ``accepted`` or
``declined``, there's no way back. Deleting an invitation removes the
record altogether and is not a state transition.

Accepting is the only operation that touches two aggregates: the
invitation and the project roster. Both writes happen in one
transaction, so either both survive or none does.
"""
import logging
import secrets
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from .exceptions import (NotFoundError, UserNotFoundError, AlreadyMember,
                         DuplicatePending, AlreadyProcessed)
from .identity import require_identity
from .membership import Roster, join, promote_to_team_leader
from .models import Invitation
from .permissions import Action, check
from .projects import find_project, load_project, save_roster
from .serializers import InvitationInputSerializer, validate_input

logger = logging.getLogger(__name__)

User = get_user_model()


def make_token():
    nbytes = getattr(settings, 'TEAMBOARD_INVITATION_TOKEN_BYTES', 32)
    return secrets.token_hex(nbytes)


def invitation_queryset():
    return Invitation.objects.select_related('project',
                                             'invited_by__profile')


def find_invitation(invitation_id, lock=False):
    qs = Invitation.objects.all()
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=invitation_id)
    except (Invitation.DoesNotExist, ValueError, TypeError):
        raise NotFoundError('Invitation not found')


def send_invitation(identity, data):
    """Invite an already registered user to a project.

    Args:
        identity: the caller
        data: mapping with project_id, email and role

    Returns:
        The new pending Invitation
    """
    identity = require_identity(identity)
    data = validate_input(InvitationInputSerializer, data)
    email, role = data['email'], data['role']

    project = find_project(data['project_id'])
    roster = Roster.of(project)
    if role == Invitation.Role.TEAM_LEADER and roster.is_manager(identity.id):
        message = 'Only project managers can invite team leaders'
    else:
        message = 'Not authorized to send invitations'
    check(identity, roster, Action.SEND_INVITATION, message, role=role)

    invitee = User.objects.filter(email__iexact=email).first()
    if invitee is None:
        raise UserNotFoundError()
    if roster.is_member(invitee.pk):
        raise AlreadyMember()

    pending = Invitation.objects.filter(project=project,
                                        email=email,
                                        status=Invitation.Status.PENDING)
    if pending.exists():
        raise DuplicatePending()

    try:
        with transaction.atomic():
            invitation = Invitation.objects.create(
                project=project,
                email=email,
                role=role,
                invited_by_id=identity.id,
                token=make_token(),
            )
    except IntegrityError:
        # Lost a race against another request for the same address
        raise DuplicatePending()

    logger.info('User %s invited %s to project %s as %s',
                identity.id, email, project.pk, role)
    return invitation_queryset().get(pk=invitation.pk)


def list_my_invitations(identity):
    """Pending invitations addressed to the caller, newest first"""
    identity = require_identity(identity)
    return invitation_queryset().filter(
        email=identity.email,
        status=Invitation.Status.PENDING,
    )


def list_project_invitations(identity, project_id):
    identity = require_identity(identity)
    project = find_project(project_id)
    check(identity, Roster.of(project), Action.VIEW_INVITATIONS,
          'Not authorized to view invitations')
    return invitation_queryset().filter(project=project)


def _respond(identity, invitation_id):
    """Common checks for accept and decline.

    Returns the invitation, which the caller is then expected to lock.
    """
    invitation = find_invitation(invitation_id)
    check(identity, None, Action.RESPOND_INVITATION, 'Not authorized',
          email=invitation.email)
    if not invitation.is_pending:
        raise AlreadyProcessed()
    return invitation


def accept_invitation(identity, invitation_id):
    """Accept an invitation and join its project.

    A team_leader invitation makes the caller the team leader, replacing
    the current one. The caller joins the member set if not there yet.

    Returns:
        (invitation, project) tuple
    """
    identity = require_identity(identity)
    with transaction.atomic():
        invitation = _respond(identity, invitation_id)

        # Lock the project before the invitation, in the same order
        # project deletion does.
        project = find_project(invitation.project_id, lock=True)
        invitation = find_invitation(invitation_id, lock=True)
        if not invitation.is_pending:
            raise AlreadyProcessed()

        invitation.status = Invitation.Status.ACCEPTED
        invitation.save(update_fields=['status', 'updated_at'])

        roster = Roster.of(project)
        if invitation.role == Invitation.Role.TEAM_LEADER:
            roster = promote_to_team_leader(roster, identity.id)
        save_roster(project, join(roster, identity.id))

    logger.info('User %s accepted invitation %s to project %s',
                identity.id, invitation.pk, project.pk)
    return (
        invitation_queryset().get(pk=invitation.pk),
        load_project(project.pk),
    )


def decline_invitation(identity, invitation_id):
    identity = require_identity(identity)
    with transaction.atomic():
        _respond(identity, invitation_id)
        invitation = find_invitation(invitation_id, lock=True)
        if not invitation.is_pending:
            raise AlreadyProcessed()
        invitation.status = Invitation.Status.DECLINED
        invitation.save(update_fields=['status', 'updated_at'])

    logger.info('User %s declined invitation %s', identity.id, invitation.pk)
    return invitation_queryset().get(pk=invitation.pk)


def delete_invitation(identity, invitation_id):
    """Remove an invitation whatever its status.

    Allowed to the project owner and to whoever sent it.
    """
    identity = require_identity(identity)
    invitation = find_invitation(invitation_id)
    project = find_project(invitation.project_id)
    check(identity, Roster.of(project), Action.DELETE_INVITATION,
          'Not authorized to delete this invitation',
          invited_by_id=invitation.invited_by_id)
    invitation.delete()
    logger.info('Invitation %s deleted by user %s', invitation_id, identity.id)
