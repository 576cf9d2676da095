from django.contrib.auth import get_user_model

from teamboard.identity import Identity
from teamboard.models import Profile, GlobalRole

User = get_user_model()


def make_user(username, email=None, role=GlobalRole.MEMBER, **kwargs):
    user = User.objects.create_user(
        username=username,
        email=email or f'{username}@example.com',
        password='secret',
        **kwargs
    )
    Profile.objects.create(user=user, role=role)
    return user


def identity(user):
    return Identity.from_user(user)
