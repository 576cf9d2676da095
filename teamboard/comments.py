import logging

from .exceptions import InvalidDataError, NotFoundError
from .identity import require_identity
from .membership import Roster
from .models import Comment
from .permissions import Action, check
from .projects import find_project
from .serializers import (CommentInputSerializer, CommentPatchSerializer,
                          validate_input)

logger = logging.getLogger(__name__)


def _clean_text(text):
    text = (text or '').strip()
    if not text:
        raise InvalidDataError('Comment text cannot be empty',
                               errors={'text': ['EmptyText']})
    return text


def comment_queryset():
    return Comment.objects.select_related('user__profile')


def find_comment(comment_id):
    try:
        return Comment.objects.select_related('project').get(pk=comment_id)
    except (Comment.DoesNotExist, ValueError, TypeError):
        raise NotFoundError('Comment not found')


def list_comments(identity, project_id):
    """Comments of a project, oldest first"""
    identity = require_identity(identity)
    project = find_project(project_id)
    check(identity, Roster.of(project), Action.READ_COMMENTS,
          'Not authorized to view comments')
    return comment_queryset().filter(project=project).order_by('created_at',
                                                               'id')


def post_comment(identity, data):
    """Post a comment on a project.

    The image url is kept as given, nothing here fetches or checks it.
    """
    identity = require_identity(identity)
    data = validate_input(CommentInputSerializer, data)
    project = find_project(data['project_id'])
    check(identity, Roster.of(project), Action.POST_COMMENT,
          'Not authorized to comment')
    comment = Comment.objects.create(
        project=project,
        user_id=identity.id,
        text=_clean_text(data['text']),
        image_url=data.get('image_url') or None,
    )
    logger.info('Comment %s posted on project %s by user %s',
                comment.pk, project.pk, identity.id)
    return comment_queryset().get(pk=comment.pk)


def edit_comment(identity, comment_id, patch):
    identity = require_identity(identity)
    comment = find_comment(comment_id)
    check(identity, Roster.of(comment.project), Action.UPDATE_COMMENT,
          'Not authorized to update this comment',
          author_id=comment.user_id)
    data = validate_input(CommentPatchSerializer, patch, partial=True)
    if 'text' in data:
        comment.text = _clean_text(data['text'])
    if 'image_url' in data:
        comment.image_url = data['image_url'] or None
    comment.save()
    logger.info('Comment %s edited by user %s', comment.pk, identity.id)
    return comment_queryset().get(pk=comment.pk)


def delete_comment(identity, comment_id):
    """Authors delete their own comments, the owner and the team leader
    delete any comment of the project."""
    identity = require_identity(identity)
    comment = find_comment(comment_id)
    check(identity, Roster.of(comment.project), Action.DELETE_COMMENT,
          'Not authorized to delete this comment',
          author_id=comment.user_id)
    comment.delete()
    logger.info('Comment %s deleted by user %s', comment_id, identity.id)
