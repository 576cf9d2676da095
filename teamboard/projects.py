"""Project operations: the roster rules and the permission evaluator
wired to the database.

Every function takes the caller ``Identity`` first and returns model
instances loaded with the relations the serializers need, so that a
mutation returns the same shape a read does.
"""
import logging
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q

from .exceptions import InvalidDataError, NotFoundError
from .identity import require_identity
from .membership import (Roster, build_members, reconcile_members,
                         add_member, remove_member)
from .models import Project
from .permissions import Action, check
from .serializers import ProjectInputSerializer, validate_input

logger = logging.getLogger(__name__)

User = get_user_model()


def project_queryset():
    return Project.objects.select_related(
        'owner__profile',
        'team_leader__profile',
    ).prefetch_related('members__profile')


def find_project(project_id, lock=False):
    """Fetch a project or raise NotFoundError.

    With lock=True the row is locked until the end of the current
    transaction, which serializes concurrent roster changes.
    """
    qs = Project.objects.all()
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=project_id)
    except (Project.DoesNotExist, ValueError, TypeError):
        raise NotFoundError('Project not found')


def load_project(project_id):
    return project_queryset().get(pk=project_id)


def ensure_users_exist(user_ids, field='members'):
    user_ids = set(user_ids)
    found = set(User.objects.filter(pk__in=user_ids)
                .values_list('pk', flat=True))
    missing = sorted(user_ids - found)
    if missing:
        raise InvalidDataError(
            'Unknown users',
            errors={field: [f'User {pk} does not exist.' for pk in missing]},
        )


def save_roster(project, roster):
    project.team_leader_id = roster.team_leader_id
    project.save(update_fields=['team_leader', 'updated_at'])
    project.members.set(roster.member_ids)


def list_my_projects(identity):
    identity = require_identity(identity)
    return project_queryset().filter(
        Q(owner=identity.id)
        | Q(team_leader=identity.id)
        | Q(members=identity.id)
    ).distinct()


def get_project(identity, project_id):
    identity = require_identity(identity)
    project = find_project(project_id)
    check(identity, Roster.of(project), Action.READ_PROJECT,
          'Not authorized to view this project')
    return load_project(project.pk)


def create_project(identity, data):
    """Create a project owned by the caller.

    The team leader and the listed members join the roster. Repeated
    ids are collapsed.
    """
    identity = require_identity(identity)
    data = validate_input(ProjectInputSerializer, data)
    team_leader_id = data.get('team_leader')
    member_ids = data.get('members', [])
    ensure_users_exist(
        [pk for pk in [team_leader_id, *member_ids] if pk is not None]
    )

    with transaction.atomic():
        project = Project.objects.create(
            name=data['name'],
            description=data.get('description', ''),
            status=data.get('status', Project.Status.ACTIVE),
            owner_id=identity.id,
            team_leader_id=team_leader_id,
        )
        project.members.set(
            build_members(identity.id, team_leader_id, member_ids)
        )

    logger.info('Project %s created by user %s', project.pk, identity.id)
    return load_project(project.pk)


def update_project(identity, project_id, patch):
    """Apply a partial update.

    A patch touching team_leader or members recomputes the member set,
    so the owner and the team leader can't be dropped by omission. The
    owner can't be patched at all.
    """
    identity = require_identity(identity)
    with transaction.atomic():
        project = find_project(project_id, lock=True)
        roster = Roster.of(project)
        check(identity, roster, Action.UPDATE_PROJECT,
              'Not authorized to update this project')
        data = validate_input(ProjectInputSerializer, patch, partial=True)

        roster_patch = {}
        if 'team_leader' in data:
            roster_patch['team_leader_id'] = data.pop('team_leader')
        if 'members' in data:
            roster_patch['member_ids'] = data.pop('members')
        if roster_patch:
            ensure_users_exist([
                pk for pk in [roster_patch.get('team_leader_id'),
                              *roster_patch.get('member_ids', [])]
                if pk is not None
            ])
            save_roster(project, reconcile_members(roster, **roster_patch))

        for field, value in data.items():
            setattr(project, field, value)
        project.save()

    logger.info('Project %s updated by user %s', project.pk, identity.id)
    return load_project(project.pk)


def delete_project(identity, project_id):
    """Delete a project with its tasks, comments and invitations"""
    identity = require_identity(identity)
    with transaction.atomic():
        project = find_project(project_id, lock=True)
        check(identity, Roster.of(project), Action.DELETE_PROJECT,
              'Only project owner can delete this project')
        project.delete()
    logger.info('Project %s deleted by user %s', project_id, identity.id)


def add_project_member(identity, project_id, user_id):
    identity = require_identity(identity)
    with transaction.atomic():
        project = find_project(project_id, lock=True)
        roster = Roster.of(project)
        check(identity, roster, Action.MANAGE_MEMBERS,
              'Not authorized to add members')
        if not User.objects.filter(pk=user_id).exists():
            raise NotFoundError('User not found')
        add_member(roster, user_id)
        project.members.add(user_id)
        project.save(update_fields=['updated_at'])

    logger.info('User %s added to project %s by user %s',
                user_id, project.pk, identity.id)
    return load_project(project.pk)


def remove_project_member(identity, project_id, user_id):
    """Remove a member. The owner and the team leader can't be removed."""
    identity = require_identity(identity)
    with transaction.atomic():
        project = find_project(project_id, lock=True)
        roster = Roster.of(project)
        check(identity, roster, Action.MANAGE_MEMBERS,
              'Not authorized to remove members')
        remove_member(roster, user_id)
        check(identity, roster, Action.REMOVE_MEMBER,
              'Not authorized to remove this member', target_id=user_id)
        project.members.remove(user_id)
        project.save(update_fields=['updated_at'])

    logger.info('User %s removed from project %s by user %s',
                user_id, project.pk, identity.id)
    return load_project(project.pk)
