"""REST binding of the teamboard operations.

Views only translate HTTP into calls to the operation modules and
serialize the results. Errors raised by operations are rendered by
``teamboard.handlers.exception_handler``.
"""
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from . import projects, tasks, invitations, comments
from .identity import Identity, require_identity
from .serializers import (ProjectSerializer, TaskSerializer,
                          InvitationSerializer, CommentSerializer,
                          StatisticsSerializer, MemberInputSerializer,
                          validate_input)


class TeamboardView(APIView):
    # Operations check the identity themselves and answer 401
    permission_classes = [AllowAny]

    @property
    def identity(self):
        return Identity.from_user(self.request.user)


class ProjectListView(TeamboardView):

    def get(self, request):
        result = projects.list_my_projects(self.identity)
        return Response(ProjectSerializer(result, many=True).data)

    def post(self, request):
        project = projects.create_project(self.identity, request.data)
        return Response(ProjectSerializer(project).data,
                        status=status.HTTP_201_CREATED)


class ProjectDetailView(TeamboardView):

    def get(self, request, project_id):
        project = projects.get_project(self.identity, project_id)
        return Response(ProjectSerializer(project).data)

    def patch(self, request, project_id):
        project = projects.update_project(self.identity, project_id,
                                          request.data)
        return Response(ProjectSerializer(project).data)

    put = patch

    def delete(self, request, project_id):
        projects.delete_project(self.identity, project_id)
        return Response({'message': 'Project removed'})


class ProjectMembersView(TeamboardView):

    def post(self, request, project_id):
        identity = require_identity(self.identity)
        data = validate_input(MemberInputSerializer, request.data)
        project = projects.add_project_member(identity, project_id,
                                              data['user_id'])
        return Response(ProjectSerializer(project).data)


class ProjectMemberDetailView(TeamboardView):

    def delete(self, request, project_id, user_id):
        project = projects.remove_project_member(self.identity, project_id,
                                                 user_id)
        return Response(ProjectSerializer(project).data)


class ProjectStatisticsView(TeamboardView):

    def get(self, request, project_id):
        stats = tasks.project_statistics(self.identity, project_id)
        return Response(StatisticsSerializer(stats).data)


class ProjectTasksView(TeamboardView):

    def get(self, request, project_id):
        filters = request.query_params or None
        result = tasks.list_tasks(self.identity, project_id, filters)
        return Response(TaskSerializer(result, many=True).data)

    def post(self, request, project_id):
        task = tasks.create_task(self.identity, project_id, request.data)
        return Response(TaskSerializer(task).data,
                        status=status.HTTP_201_CREATED)


class TaskDetailView(TeamboardView):

    def get(self, request, task_id):
        task = tasks.get_task(self.identity, task_id)
        return Response(TaskSerializer(task).data)

    def patch(self, request, task_id):
        task = tasks.update_task(self.identity, task_id, request.data)
        return Response(TaskSerializer(task).data)

    put = patch

    def delete(self, request, task_id):
        tasks.delete_task(self.identity, task_id)
        return Response({'message': 'Task removed'})


class InvitationListView(TeamboardView):

    def get(self, request):
        result = invitations.list_my_invitations(self.identity)
        return Response(InvitationSerializer(result, many=True).data)

    def post(self, request):
        invitation = invitations.send_invitation(self.identity, request.data)
        return Response(InvitationSerializer(invitation).data,
                        status=status.HTTP_201_CREATED)


class ProjectInvitationsView(TeamboardView):

    def get(self, request, project_id):
        result = invitations.list_project_invitations(self.identity,
                                                      project_id)
        return Response(InvitationSerializer(result, many=True).data)


class InvitationAcceptView(TeamboardView):

    def put(self, request, invitation_id):
        invitation, project = invitations.accept_invitation(self.identity,
                                                            invitation_id)
        return Response({
            'invitation': InvitationSerializer(invitation).data,
            'project': ProjectSerializer(project).data,
        })


class InvitationDeclineView(TeamboardView):

    def put(self, request, invitation_id):
        invitation = invitations.decline_invitation(self.identity,
                                                    invitation_id)
        return Response(InvitationSerializer(invitation).data)


class InvitationDetailView(TeamboardView):

    def delete(self, request, invitation_id):
        invitations.delete_invitation(self.identity, invitation_id)
        return Response({'message': 'Invitation deleted'})


class CommentListView(TeamboardView):

    def post(self, request):
        comment = comments.post_comment(self.identity, request.data)
        return Response(CommentSerializer(comment).data,
                        status=status.HTTP_201_CREATED)


class ProjectCommentsView(TeamboardView):

    def get(self, request, project_id):
        result = comments.list_comments(self.identity, project_id)
        return Response(CommentSerializer(result, many=True).data)


class CommentDetailView(TeamboardView):

    def patch(self, request, comment_id):
        comment = comments.edit_comment(self.identity, comment_id,
                                        request.data)
        return Response(CommentSerializer(comment).data)

    put = patch

    def delete(self, request, comment_id):
        comments.delete_comment(self.identity, comment_id)
        return Response({'message': 'Comment deleted'})
