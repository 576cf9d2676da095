from django.conf import settings
from django.db import models
from django.db.models import Q


class GlobalRole(models.TextChoices):
    PROJECT_MANAGER = 'project_manager', 'Project manager'
    TEAM_LEADER = 'team_leader', 'Team leader'
    MEMBER = 'member', 'Member'


class Profile(models.Model):
    """Account level data that django.contrib.auth.User lacks.

    The role is a descriptive label only, it grants nothing by itself.
    Per-project rights come from the project roster.
    """
    user = models.OneToOneField(settings.AUTH_USER_MODEL,
                                on_delete=models.CASCADE,
                                related_name='profile')
    role = models.CharField(max_length=32,
                            choices=GlobalRole.choices,
                            default=GlobalRole.MEMBER)

    def __str__(self):
        return f'{self.user} ({self.role})'


class Project(models.Model):

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        COMPLETED = 'completed', 'Completed'
        ARCHIVED = 'archived', 'Archived'

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    status = models.CharField(max_length=16,
                              choices=Status.choices,
                              default=Status.ACTIVE)
    owner = models.ForeignKey(settings.AUTH_USER_MODEL,
                              on_delete=models.CASCADE,
                              related_name='owned_projects')
    team_leader = models.ForeignKey(settings.AUTH_USER_MODEL,
                                    on_delete=models.SET_NULL,
                                    null=True,
                                    blank=True,
                                    related_name='led_projects')
    members = models.ManyToManyField(settings.AUTH_USER_MODEL,
                                     related_name='projects',
                                     blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return self.name


class Invitation(models.Model):

    class Role(models.TextChoices):
        TEAM_LEADER = 'team_leader', 'Team leader'
        MEMBER = 'member', 'Member'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        ACCEPTED = 'accepted', 'Accepted'
        DECLINED = 'declined', 'Declined'

    project = models.ForeignKey(Project,
                                on_delete=models.CASCADE,
                                related_name='invitations')
    email = models.EmailField()
    role = models.CharField(max_length=16, choices=Role.choices)
    invited_by = models.ForeignKey(settings.AUTH_USER_MODEL,
                                   on_delete=models.CASCADE,
                                   related_name='sent_invitations')
    status = models.CharField(max_length=16,
                              choices=Status.choices,
                              default=Status.PENDING)
    token = models.CharField(max_length=128, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['project', 'email'],
                condition=Q(status='pending'),
                name='unique_pending_invitation',
            ),
        ]

    def __str__(self):
        return f'Invitation to {self.project} for {self.email} ({self.status})'

    @property
    def is_pending(self):
        return self.status == self.Status.PENDING


class Task(models.Model):

    class Status(models.TextChoices):
        TODO = 'todo', 'To do'
        IN_PROGRESS = 'inprogress', 'In progress'
        DONE = 'done', 'Done'

    class Priority(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'

    project = models.ForeignKey(Project,
                                on_delete=models.CASCADE,
                                related_name='tasks')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    status = models.CharField(max_length=16,
                              choices=Status.choices,
                              default=Status.TODO)
    priority = models.CharField(max_length=16,
                                choices=Priority.choices,
                                default=Priority.MEDIUM)
    due_date = models.DateField(null=True, blank=True)
    assigned_to = models.ForeignKey(settings.AUTH_USER_MODEL,
                                    on_delete=models.SET_NULL,
                                    null=True,
                                    blank=True,
                                    related_name='assigned_tasks')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return self.title


class Comment(models.Model):
    project = models.ForeignKey(Project,
                                on_delete=models.CASCADE,
                                related_name='comments')
    user = models.ForeignKey(settings.AUTH_USER_MODEL,
                             on_delete=models.CASCADE,
                             related_name='comments')
    text = models.TextField()
    image_url = models.CharField(max_length=2048, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.user}: {self.text[:50]}..."
