"""
Leaving chat groups and community groups.

Both keep the group administrable: when the last admin leaves, the member
who joined earliest takes over. A group left with no members is deleted.
"""

import logging

from .models import (
    ChatGroupMember, GroupMember,
    GROUP_ROLE_ADMIN, GROUP_ROLE_MEMBER, GROUP_ROLE_OWNER, MEMBER_JOINED,
)


logger = logging.getLogger(__name__)


def leave_chat_group(member):
    chat_group = member.chat_group
    was_admin = member.is_admin
    member.delete()

    remaining = ChatGroupMember.objects.filter(chat_group=chat_group).order_by('joined_at', 'id')
    if not remaining.exists():
        chat_group.delete()
        return None

    if was_admin and not remaining.filter(is_admin=True).exists():
        successor = remaining.first()
        successor.is_admin = True
        successor.save(update_fields=['is_admin'])
        logger.info(f"leave_chat_group: user {successor.user_id} promoted in chat {chat_group.id}")
        return successor
    return None


def leave_group(membership):
    """
    Remove a membership row, handing ownership over when the owner leaves.

    The oldest admin becomes owner, failing that the oldest member.
    """
    group = membership.group
    was_owner = membership.role == GROUP_ROLE_OWNER and membership.status == MEMBER_JOINED
    membership.delete()

    joined = GroupMember.objects.filter(group=group, status=MEMBER_JOINED).order_by('created_at', 'id')
    if not joined.exists():
        group.delete()
        return None

    if not was_owner:
        return None

    successor = (
        joined.filter(role=GROUP_ROLE_ADMIN).first()
        or joined.filter(role=GROUP_ROLE_MEMBER).first()
    )
    successor.role = GROUP_ROLE_OWNER
    successor.save(update_fields=['role', 'updated_at'])
    logger.info(f"leave_group: user {successor.user_id} now owns group {group.id}")
    return successor
