from collections.abc import Mapping
from rest_framework import serializers

from .exceptions import InvalidDataError
from .identity import global_role
from .models import Project, Invitation, Task, Comment


def display_name(user):
    return user.get_full_name() or user.get_username()


def validate_input(serializer_class, data, partial=False):
    """Validate raw input with one of the input serializers below.

    Returns the validated data, containing only the keys present in
    data when partial is True. Raises InvalidDataError otherwise.
    """
    serializer = serializer_class(data=data, partial=partial)
    if not serializer.is_valid():
        raise InvalidDataError('Invalid data', errors=dict(serializer.errors))
    return dict(serializer.validated_data)


class StrictSerializer(serializers.Serializer):
    """Rejects keys that are not declared as fields"""

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            unknown = sorted(set(data) - set(self.fields))
            if unknown:
                raise serializers.ValidationError({
                    key: ['Unknown field.'] for key in unknown
                })
        return super().to_internal_value(data)


# Input

class ProjectInputSerializer(StrictSerializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Project.Status.choices,
                                     required=False)
    team_leader = serializers.IntegerField(required=False, allow_null=True)
    members = serializers.ListField(child=serializers.IntegerField(),
                                    required=False)


class MemberInputSerializer(StrictSerializer):
    user_id = serializers.IntegerField()


class InvitationInputSerializer(StrictSerializer):
    project_id = serializers.IntegerField()
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=Invitation.Role.choices)

    def validate_email(self, value):
        return value.strip().lower()


class TaskInputSerializer(StrictSerializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Task.Status.choices,
                                     required=False)
    priority = serializers.ChoiceField(choices=Task.Priority.choices,
                                       required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    assigned_to = serializers.IntegerField(required=False, allow_null=True)


class TaskFilterSerializer(serializers.Serializer):
    priority = serializers.CharField(required=False, allow_blank=True,
                                     default='all')
    search = serializers.CharField(required=False, allow_blank=True,
                                   trim_whitespace=False, default='')
    assigned_to = serializers.CharField(required=False, allow_blank=True,
                                        default='all')


class CommentInputSerializer(StrictSerializer):
    project_id = serializers.IntegerField()
    # Blank text is reported by the comment ledger itself
    text = serializers.CharField(allow_blank=True, trim_whitespace=False)
    image_url = serializers.CharField(required=False, allow_null=True,
                                      allow_blank=True, max_length=2048)


class CommentPatchSerializer(StrictSerializer):
    text = serializers.CharField(allow_blank=True, trim_whitespace=False)
    image_url = serializers.CharField(allow_null=True, allow_blank=True,
                                      max_length=2048)


# Output

class UserSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField(source='pk')
    name = serializers.SerializerMethodField()
    email = serializers.EmailField()
    role = serializers.SerializerMethodField()

    def get_name(self, user):
        return display_name(user)

    def get_role(self, user):
        return global_role(user)


class ProjectSummarySerializer(serializers.ModelSerializer):

    class Meta:
        model = Project
        fields = ('id', 'name', 'description')


class ProjectSerializer(serializers.ModelSerializer):
    owner = UserSummarySerializer()
    team_leader = UserSummarySerializer(allow_null=True)
    members = UserSummarySerializer(many=True)

    class Meta:
        model = Project
        fields = ('id', 'name', 'description', 'status', 'owner',
                  'team_leader', 'members', 'created_at', 'updated_at')


class InvitationSerializer(serializers.ModelSerializer):
    project = ProjectSummarySerializer()
    invited_by = UserSummarySerializer()

    class Meta:
        model = Invitation
        fields = ('id', 'project', 'email', 'role', 'invited_by', 'status',
                  'created_at', 'updated_at')


class TaskSerializer(serializers.ModelSerializer):
    project = serializers.PrimaryKeyRelatedField(read_only=True)
    assigned_to = UserSummarySerializer(allow_null=True)

    class Meta:
        model = Task
        fields = ('id', 'project', 'title', 'description', 'status',
                  'priority', 'due_date', 'assigned_to', 'created_at',
                  'updated_at')


class CommentSerializer(serializers.ModelSerializer):
    project = serializers.PrimaryKeyRelatedField(read_only=True)
    user = UserSummarySerializer()

    class Meta:
        model = Comment
        fields = ('id', 'project', 'user', 'text', 'image_url',
                  'created_at', 'updated_at')


class StatisticsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    completed = serializers.IntegerField()
    in_progress = serializers.IntegerField()
    todo = serializers.IntegerField()
    overdue = serializers.IntegerField()
    completion_rate = serializers.IntegerField()
