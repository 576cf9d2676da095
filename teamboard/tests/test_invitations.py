from unittest.mock import patch
from django.test import TestCase, override_settings

from teamboard import invitations, projects
from teamboard.exceptions import (AlreadyMember, AlreadyProcessed,
                                  DuplicatePending, ForbiddenError,
                                  InvalidDataError, NotFoundError,
                                  UserNotFoundError)
from teamboard.models import Invitation
from .utils import make_user, identity


def member_ids(project):
    return set(project.members.values_list('id', flat=True))


class InvitationTestCase(TestCase):

    def setUp(self):
        self.owner = make_user('owner')
        self.leader = make_user('leader')
        self.member = make_user('member')
        self.invitee = make_user('invitee', email='e@x.com')
        self.stranger = make_user('stranger')
        self.project = projects.create_project(identity(self.owner), {
            'name': 'Apollo',
            'team_leader': self.leader.pk,
            'members': [self.member.pk],
        })

    def send(self, user=None, email='e@x.com', role='member'):
        return invitations.send_invitation(identity(user or self.owner), {
            'project_id': self.project.pk,
            'email': email,
            'role': role,
        })

    def test_invite_and_accept(self):
        project = projects.create_project(identity(self.owner),
                                          {'name': 'Solo'})
        self.assertEqual(member_ids(project), {self.owner.pk})
        invitation = invitations.send_invitation(identity(self.owner), {
            'project_id': project.pk, 'email': 'e@x.com', 'role': 'member',
        })
        self.assertEqual(invitation.status, Invitation.Status.PENDING)

        invitation, project = invitations.accept_invitation(
            identity(self.invitee), invitation.pk)
        self.assertEqual(invitation.status, Invitation.Status.ACCEPTED)
        self.assertEqual(member_ids(project),
                         {self.owner.pk, self.invitee.pk})
        self.assertIsNone(project.team_leader)

    def test_send_normalizes_email(self):
        invitation = self.send(email='  E@X.com ')
        self.assertEqual(invitation.email, 'e@x.com')

    def test_token_is_unique_and_sized(self):
        first = self.send()
        second = self.send(email=self.stranger.email)
        self.assertEqual(len(first.token), 64)
        self.assertNotEqual(first.token, second.token)

    @override_settings(TEAMBOARD_INVITATION_TOKEN_BYTES=16)
    def test_token_size_setting(self):
        self.assertEqual(len(self.send().token), 32)

    def test_duplicate_pending(self):
        self.send()
        with self.assertRaises(DuplicatePending):
            self.send(user=self.leader)
        self.assertEqual(Invitation.objects.count(), 1)

    def test_resend_after_decline(self):
        invitation = self.send()
        invitations.decline_invitation(identity(self.invitee), invitation.pk)
        self.send()
        self.assertEqual(Invitation.objects.count(), 2)

    def test_unknown_email(self):
        with self.assertRaises(UserNotFoundError):
            self.send(email='nobody@x.com')

    def test_already_member(self):
        with self.assertRaises(AlreadyMember):
            self.send(email=self.member.email)

    def test_invalid_role(self):
        with self.assertRaises(InvalidDataError):
            self.send(role='owner')

    def test_team_leader_cannot_invite_team_leaders(self):
        self.send(user=self.leader, role='member')
        with self.assertRaises(ForbiddenError):
            self.send(user=self.leader, email=self.stranger.email,
                      role='team_leader')

    def test_member_cannot_invite(self):
        with self.assertRaises(ForbiddenError):
            self.send(user=self.member)
        self.assertFalse(Invitation.objects.exists())

    def test_accept_team_leader_invitation_replaces_leader(self):
        invitation = self.send(role='team_leader')
        _, project = invitations.accept_invitation(identity(self.invitee),
                                                   invitation.pk)
        self.assertEqual(project.team_leader, self.invitee)
        # The previous leader stays a plain member
        self.assertIn(self.leader.pk, member_ids(project))
        self.assertIn(self.invitee.pk, member_ids(project))

    def test_accept_by_someone_else(self):
        invitation = self.send()
        with self.assertRaises(ForbiddenError):
            invitations.accept_invitation(identity(self.owner), invitation.pk)
        invitation.refresh_from_db()
        self.assertTrue(invitation.is_pending)
        self.assertNotIn(self.invitee.pk, member_ids(self.project))

    def test_accept_email_case_insensitive(self):
        self.invitee.email = 'E@X.COM'
        self.invitee.save()
        invitation = self.send()
        invitation, _ = invitations.accept_invitation(identity(self.invitee),
                                                      invitation.pk)
        self.assertEqual(invitation.status, Invitation.Status.ACCEPTED)

    def test_accept_twice(self):
        invitation = self.send()
        invitations.accept_invitation(identity(self.invitee), invitation.pk)
        members = member_ids(self.project)
        with self.assertRaises(AlreadyProcessed):
            invitations.accept_invitation(identity(self.invitee),
                                          invitation.pk)
        self.assertEqual(member_ids(self.project), members)

    def test_decline_twice(self):
        invitation = self.send()
        declined = invitations.decline_invitation(identity(self.invitee),
                                                  invitation.pk)
        self.assertEqual(declined.status, Invitation.Status.DECLINED)
        with self.assertRaises(AlreadyProcessed):
            invitations.decline_invitation(identity(self.invitee),
                                           invitation.pk)
        with self.assertRaises(AlreadyProcessed):
            invitations.accept_invitation(identity(self.invitee),
                                          invitation.pk)
        invitation.refresh_from_db()
        self.assertEqual(invitation.status, Invitation.Status.DECLINED)
        self.assertNotIn(self.invitee.pk, member_ids(self.project))

    def test_accept_is_atomic(self):
        """A failing roster write rolls back the status change"""
        invitation = self.send()
        with patch('teamboard.invitations.save_roster',
                   side_effect=RuntimeError('db down')):
            with self.assertRaises(RuntimeError):
                invitations.accept_invitation(identity(self.invitee),
                                              invitation.pk)
        invitation.refresh_from_db()
        self.assertTrue(invitation.is_pending)

    def test_accept_missing(self):
        with self.assertRaises(NotFoundError):
            invitations.accept_invitation(identity(self.invitee), 9999)

    def test_list_mine(self):
        self.send()
        other = projects.create_project(identity(self.stranger),
                                        {'name': 'Other'})
        invitations.send_invitation(identity(self.stranger), {
            'project_id': other.pk, 'email': 'e@x.com', 'role': 'member',
        })
        declined = invitations.send_invitation(identity(self.owner), {
            'project_id': projects.create_project(
                identity(self.owner), {'name': 'Third'}).pk,
            'email': 'e@x.com',
            'role': 'member',
        })
        invitations.decline_invitation(identity(self.invitee), declined.pk)

        mine = list(invitations.list_my_invitations(identity(self.invitee)))
        self.assertEqual([i.project.name for i in mine], ['Other', 'Apollo'])
        self.assertEqual(mine[0].invited_by, self.stranger)

    def test_list_project_invitations(self):
        invitation = self.send()
        invitations.decline_invitation(identity(self.invitee), invitation.pk)
        self.send(email=self.stranger.email)
        result = invitations.list_project_invitations(identity(self.leader),
                                                      self.project.pk)
        self.assertEqual(len(result), 2)
        with self.assertRaises(ForbiddenError):
            invitations.list_project_invitations(identity(self.member),
                                                 self.project.pk)

    def test_delete_by_owner_or_inviter(self):
        by_leader = self.send(user=self.leader)
        with self.assertRaises(ForbiddenError):
            invitations.delete_invitation(identity(self.member), by_leader.pk)
        invitations.delete_invitation(identity(self.leader), by_leader.pk)

        by_owner = self.send()
        with self.assertRaises(ForbiddenError):
            invitations.delete_invitation(identity(self.leader), by_owner.pk)
        invitations.accept_invitation(identity(self.invitee), by_owner.pk)
        # Deleting works whatever the status
        invitations.delete_invitation(identity(self.owner), by_owner.pk)
        self.assertFalse(Invitation.objects.exists())

    def test_project_deletion_removes_invitations(self):
        self.send()
        projects.delete_project(identity(self.owner), self.project.pk)
        self.assertFalse(Invitation.objects.exists())
