"""Project roster rules.

A roster is the owner, the optional team leader and the member set of a
project. Whatever is done to it, the owner and the team leader are always
members, and members never repeat. Functions here are pure: they take a
``Roster`` and return the new member set, leaving persistence to the caller.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from .exceptions import AlreadyMember, ProtectedRole

_UNSET = object()


@dataclass(frozen=True)
class Roster:
    owner_id: int
    team_leader_id: Optional[int] = None
    member_ids: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def of(cls, project):
        """Snapshot of a saved Project instance."""
        return cls(
            owner_id=project.owner_id,
            team_leader_id=project.team_leader_id,
            member_ids=frozenset(
                project.members.values_list('id', flat=True)
            ),
        )

    def is_member(self, user_id):
        return user_id is not None and (
            user_id in self.member_ids
            or user_id == self.owner_id
            or user_id == self.team_leader_id
        )

    def is_manager(self, user_id):
        """Owner or team leader"""
        return user_id is not None and (
            user_id == self.owner_id or user_id == self.team_leader_id
        )

    def is_protected(self, user_id):
        return user_id == self.owner_id or (
            self.team_leader_id is not None and user_id == self.team_leader_id
        )


def build_members(owner_id: int,
                  team_leader_id: Optional[int] = None,
                  member_ids: Iterable[int] = ()) -> FrozenSet[int]:
    """Union of owner, team leader and the given members.

    Duplicated input is collapsed, never rejected.
    """
    members = {owner_id}
    if team_leader_id is not None:
        members.add(team_leader_id)
    members.update(member_ids or ())
    return frozenset(members)


def reconcile_members(roster: Roster,
                      team_leader_id=_UNSET,
                      member_ids=_UNSET) -> Roster:
    """Apply a roster patch, recomputing members instead of replacing them.

    Omitted arguments keep their current value. The owner and the
    resulting team leader are re-added even if the patch forgot them.
    """
    if team_leader_id is _UNSET:
        team_leader_id = roster.team_leader_id
    if member_ids is _UNSET:
        member_ids = roster.member_ids
    return Roster(
        owner_id=roster.owner_id,
        team_leader_id=team_leader_id,
        member_ids=build_members(roster.owner_id, team_leader_id, member_ids),
    )


def add_member(roster: Roster, user_id: int) -> Roster:
    if roster.is_member(user_id):
        raise AlreadyMember()
    return Roster(
        owner_id=roster.owner_id,
        team_leader_id=roster.team_leader_id,
        member_ids=roster.member_ids | {user_id},
    )


def remove_member(roster: Roster, user_id: int) -> Roster:
    if roster.is_protected(user_id):
        raise ProtectedRole()
    return Roster(
        owner_id=roster.owner_id,
        team_leader_id=roster.team_leader_id,
        member_ids=roster.member_ids - {user_id},
    )


def promote_to_team_leader(roster: Roster, user_id: int) -> Roster:
    """Make user the team leader, replacing any previous one.

    The previous team leader keeps plain membership.
    """
    return reconcile_members(roster, team_leader_id=user_id)


def join(roster: Roster, user_id: int) -> Roster:
    """Like add_member, but joining twice is a no-op."""
    if user_id in roster.member_ids:
        return roster
    return Roster(
        owner_id=roster.owner_id,
        team_leader_id=roster.team_leader_id,
        member_ids=roster.member_ids | {user_id},
    )
