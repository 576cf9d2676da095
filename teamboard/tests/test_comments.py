from django.test import TestCase

from teamboard import comments, projects
from teamboard.exceptions import ForbiddenError, InvalidDataError
from teamboard.models import Comment
from .utils import make_user, identity


class CommentTestCase(TestCase):

    def setUp(self):
        self.owner = make_user('owner')
        self.leader = make_user('leader')
        self.alice = make_user('alice')
        self.bob = make_user('bob')
        self.outsider = make_user('outsider')
        self.project = projects.create_project(identity(self.owner), {
            'name': 'Apollo',
            'team_leader': self.leader.pk,
            'members': [self.alice.pk, self.bob.pk],
        })

    def post(self, user, text='Hello', **data):
        return comments.post_comment(identity(user), {
            'project_id': self.project.pk,
            'text': text,
            **data
        })

    def test_post(self):
        comment = self.post(self.alice, '  Looks good  ',
                            image_url='http://img/1.png')
        self.assertEqual(comment.text, 'Looks good')
        self.assertEqual(comment.user, self.alice)
        self.assertEqual(comment.image_url, 'http://img/1.png')

    def test_image_url_is_optional(self):
        self.assertIsNone(self.post(self.alice).image_url)

    def test_empty_text(self):
        with self.assertRaises(InvalidDataError) as ctx:
            self.post(self.alice, '   ')
        self.assertEqual(ctx.exception.errors, {'text': ['EmptyText']})
        self.assertFalse(Comment.objects.exists())

    def test_outsider_cannot_post_or_read(self):
        with self.assertRaises(ForbiddenError):
            self.post(self.outsider)
        with self.assertRaises(ForbiddenError):
            comments.list_comments(identity(self.outsider), self.project.pk)

    def test_listed_oldest_first(self):
        first = self.post(self.alice, 'first')
        second = self.post(self.bob, 'second')
        comments.edit_comment(identity(self.alice), first.pk,
                              {'text': 'first, edited'})
        listed = list(comments.list_comments(identity(self.bob),
                                             self.project.pk))
        self.assertEqual([c.pk for c in listed], [first.pk, second.pk])

    def test_edit_author_only(self):
        comment = self.post(self.alice)
        for user in (self.owner, self.leader, self.bob):
            with self.assertRaises(ForbiddenError):
                comments.edit_comment(identity(user), comment.pk,
                                      {'text': 'hijacked'})
        comment = comments.edit_comment(identity(self.alice), comment.pk,
                                        {'text': 'Edited', 'image_url': None})
        self.assertEqual(comment.text, 'Edited')

    def test_edit_rejects_empty_text_and_unknown_keys(self):
        comment = self.post(self.alice)
        with self.assertRaises(InvalidDataError):
            comments.edit_comment(identity(self.alice), comment.pk,
                                  {'text': ''})
        with self.assertRaises(InvalidDataError):
            comments.edit_comment(identity(self.alice), comment.pk,
                                  {'user': self.bob.pk})
        comment.refresh_from_db()
        self.assertEqual(comment.text, 'Hello')
        self.assertEqual(comment.user, self.alice)

    def test_delete_rights(self):
        comment = self.post(self.alice)
        with self.assertRaises(ForbiddenError):
            comments.delete_comment(identity(self.bob), comment.pk)
        for user in (self.alice, self.owner, self.leader):
            comment = self.post(self.alice)
            comments.delete_comment(identity(user), comment.pk)
            self.assertFalse(Comment.objects.filter(pk=comment.pk).exists())

    def test_edit_is_logged(self):
        comment = self.post(self.alice)
        with self.assertLogs('teamboard.comments', level='INFO') as logs:
            comments.edit_comment(identity(self.alice), comment.pk,
                                  {'text': 'Edited'})
        self.assertEqual(logs.output, [
            f'INFO:teamboard.comments:Comment {comment.pk} edited by user '
            f'{self.alice.pk}',
        ])
