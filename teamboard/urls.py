from django.urls import path

from . import views

app_name = 'teamboard'

urlpatterns = [
    path('projects/', views.ProjectListView.as_view(), name='projects'),
    path('projects/<int:project_id>/', views.ProjectDetailView.as_view(),
         name='project'),
    path('projects/<int:project_id>/members/',
         views.ProjectMembersView.as_view(), name='project-members'),
    path('projects/<int:project_id>/members/<int:user_id>/',
         views.ProjectMemberDetailView.as_view(), name='project-member'),
    path('projects/<int:project_id>/statistics/',
         views.ProjectStatisticsView.as_view(), name='project-statistics'),
    path('projects/<int:project_id>/tasks/',
         views.ProjectTasksView.as_view(), name='project-tasks'),
    path('tasks/<int:task_id>/', views.TaskDetailView.as_view(),
         name='task'),
    path('invitations/', views.InvitationListView.as_view(),
         name='invitations'),
    path('invitations/project/<int:project_id>/',
         views.ProjectInvitationsView.as_view(), name='project-invitations'),
    path('invitations/<int:invitation_id>/accept/',
         views.InvitationAcceptView.as_view(), name='invitation-accept'),
    path('invitations/<int:invitation_id>/decline/',
         views.InvitationDeclineView.as_view(), name='invitation-decline'),
    path('invitations/<int:invitation_id>/',
         views.InvitationDetailView.as_view(), name='invitation'),
    path('comments/', views.CommentListView.as_view(), name='comments'),
    path('comments/project/<int:project_id>/',
         views.ProjectCommentsView.as_view(), name='project-comments'),
    path('comments/<int:comment_id>/', views.CommentDetailView.as_view(),
         name='comment'),
]
