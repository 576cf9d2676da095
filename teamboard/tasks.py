"""Task workflow.

Any project member may create, change or delete any task of the project,
and a task may move freely between the three statuses. Statistics and
filtering are derived from a task list and never stored.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, time
from pytz import utc
from django.conf import settings

from .exceptions import NotFoundError
from .identity import require_identity
from .membership import Roster
from .models import Task
from .permissions import Action, check
from .projects import find_project, ensure_users_exist
from .serializers import (TaskInputSerializer, TaskFilterSerializer,
                          validate_input)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskStatistics:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    todo: int = 0
    overdue: int = 0
    completion_rate: int = 0


def _start_of(day):
    return utc.localize(datetime.combine(day, time.min))


def _now(now):
    """Aware UTC datetime for now. A date stands for the start of that day
    and a naive datetime is taken as UTC."""
    if now is None:
        return datetime.now(utc)
    if isinstance(now, datetime):
        if now.tzinfo is None:
            return utc.localize(now)
        return now
    return _start_of(now)


def is_overdue(task, now=None):
    """A task is overdue once its due day has started and it's not done"""
    return (
        task.due_date is not None
        and _start_of(task.due_date) < _now(now)
        and task.status != Task.Status.DONE
    )


def compute_statistics(tasks, now=None):
    """Count tasks per status and overdue tasks.

    completion_rate is the integer percentage of done tasks, rounding
    halves up, and 0 for an empty list.
    """
    now = _now(now)
    total = completed = in_progress = todo = overdue = 0
    for task in tasks:
        total += 1
        if task.status == Task.Status.DONE:
            completed += 1
        elif task.status == Task.Status.IN_PROGRESS:
            in_progress += 1
        elif task.status == Task.Status.TODO:
            todo += 1
        if is_overdue(task, now):
            overdue += 1

    completion_rate = 0
    if total:
        completion_rate = (200 * completed + total) // (2 * total)

    return TaskStatistics(
        total=total,
        completed=completed,
        in_progress=in_progress,
        todo=todo,
        overdue=overdue,
        completion_rate=completion_rate,
    )


def filter_tasks(tasks, priority=None, search=None, assigned_to=None):
    """Return the tasks matching every given criterion, in the same order.

    Empty criteria and "all" match anything. assigned_to takes a user id
    or "unassigned". search is a case insensitive substring of the title
    or the description. The input is never modified.
    """
    match_all = getattr(settings, 'TEAMBOARD_FILTER_ALL', 'all')
    unassigned = getattr(settings, 'TEAMBOARD_UNASSIGNED', 'unassigned')

    def wanted(value):
        return value not in (None, '', match_all)

    result = list(tasks)

    if wanted(priority):
        result = [task for task in result if task.priority == priority]

    if wanted(assigned_to):
        if assigned_to == unassigned:
            result = [task for task in result if task.assigned_to_id is None]
        else:
            result = [
                task for task in result
                if task.assigned_to_id is not None
                and str(task.assigned_to_id) == str(assigned_to)
            ]

    if search:
        needle = search.lower()
        result = [
            task for task in result
            if needle in task.title.lower()
            or needle in (task.description or '').lower()
        ]

    return result


def task_queryset():
    return Task.objects.select_related('assigned_to__profile')


def find_task(task_id):
    try:
        return Task.objects.select_related('project').get(pk=task_id)
    except (Task.DoesNotExist, ValueError, TypeError):
        raise NotFoundError('Task not found')


def _check_assignee(data):
    if data.get('assigned_to') is not None:
        ensure_users_exist([data['assigned_to']], field='assigned_to')


def list_tasks(identity, project_id, filters=None):
    identity = require_identity(identity)
    project = find_project(project_id)
    check(identity, Roster.of(project), Action.LIST_TASKS,
          'Not authorized to view tasks')
    tasks = task_queryset().filter(project=project)
    if not filters:
        return list(tasks)
    criteria = validate_input(TaskFilterSerializer, filters)
    return filter_tasks(tasks, **criteria)


def get_task(identity, task_id):
    identity = require_identity(identity)
    task = find_task(task_id)
    check(identity, Roster.of(task.project), Action.LIST_TASKS,
          'Not authorized to view this task')
    return task_queryset().get(pk=task.pk)


def create_task(identity, project_id, data):
    """Create a task, todo and medium priority unless told otherwise"""
    identity = require_identity(identity)
    project = find_project(project_id)
    check(identity, Roster.of(project), Action.MANAGE_TASKS,
          'Not authorized to create tasks')
    data = validate_input(TaskInputSerializer, data)
    _check_assignee(data)

    task = Task.objects.create(
        project=project,
        title=data['title'],
        description=data.get('description', ''),
        status=data.get('status') or Task.Status.TODO,
        priority=data.get('priority') or Task.Priority.MEDIUM,
        due_date=data.get('due_date'),
        assigned_to_id=data.get('assigned_to'),
    )
    logger.info('Task %s created in project %s by user %s',
                task.pk, project.pk, identity.id)
    return task_queryset().get(pk=task.pk)


def update_task(identity, task_id, patch):
    """Change any subset of a task's fields.

    Only the fields present in the patch are validated, so a status-only
    patch works for a task whatever its other fields hold.
    """
    identity = require_identity(identity)
    task = find_task(task_id)
    check(identity, Roster.of(task.project), Action.MANAGE_TASKS,
          'Not authorized to update this task')
    data = validate_input(TaskInputSerializer, patch, partial=True)
    _check_assignee(data)

    if 'assigned_to' in data:
        task.assigned_to_id = data.pop('assigned_to')
    for field, value in data.items():
        setattr(task, field, value)
    task.save()

    logger.info('Task %s updated by user %s', task.pk, identity.id)
    return task_queryset().get(pk=task.pk)


def delete_task(identity, task_id):
    identity = require_identity(identity)
    task = find_task(task_id)
    check(identity, Roster.of(task.project), Action.MANAGE_TASKS,
          'Not authorized to delete this task')
    task.delete()
    logger.info('Task %s deleted by user %s', task_id, identity.id)


def project_statistics(identity, project_id, now=None):
    identity = require_identity(identity)
    project = find_project(project_id)
    check(identity, Roster.of(project), Action.LIST_TASKS,
          'Not authorized to view tasks')
    tasks = Task.objects.filter(project=project).only('status', 'due_date')
    return compute_statistics(tasks, now)
