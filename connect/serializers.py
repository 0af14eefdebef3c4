"""
Model to JSON helpers.

Keys are camelCase because the mobile and web clients read them that way.
Datetimes are ISO-8601 strings.
"""

from django.db.models import Count

from .models import CommentReaction


def _iso(value):
    return value.isoformat() if value else None


def _decimal(value):
    return str(value) if value is not None else None


def serialize_upload(upload):
    if upload is None:
        return None
    return {
        "id": upload.id,
        "uid": str(upload.uid),
        "name": upload.name,
        "type": upload.type,
        "binaryType": upload.binary_type,
        "url": upload.url,
        "thumbnailUrl": upload.thumbnail_url,
        "urlExpirationTime": _iso(upload.url_expiration_time),
        "createdAt": _iso(upload.created_at),
    }


def _upload_url(upload):
    return upload.url if upload else None


def _presence_visible(user, viewer):
    return user.shows_presence or (viewer is not None and viewer.id == user.id)


def serialize_user_brief(user, viewer=None):
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "headline": user.headline,
        "currentPosition": user.current_position,
        "profileImageUrl": _upload_url(user.profile_image),
        "country": user.country,
        "isOnline": user.is_online if _presence_visible(user, viewer) else False,
    }


def serialize_industry(industry):
    return {
        "id": industry.id,
        "name": industry.name,
        "category": industry.category,
        "imageUrl": _upload_url(industry.image),
        "isArchived": industry.archived_at is not None,
        "createdAt": _iso(industry.created_at),
    }


def serialize_user_profile(user, viewer=None, today=None):
    data = serialize_user_brief(user, viewer)
    data.update({
        "email": user.email,
        "phone": user.phone,
        "gender": user.gender,
        "dateOfBirth": _iso(user.date_of_birth),
        "age": user.age(today),
        "about": user.about,
        "lookingFor": user.looking_for,
        "state": user.state,
        "timezone": user.timezone,
        "profileImage": serialize_upload(user.profile_image),
        "coverImage": serialize_upload(user.cover_image),
        "industries": [serialize_industry(i) for i in user.industries.all()],
        "lastSeen": _iso(user.last_seen) if _presence_visible(user, viewer) else None,
    })
    return data


def serialize_user_info(user):
    """Everything the signed-in user needs to bootstrap the app."""
    data = serialize_user_profile(user, viewer=user)
    data.update({
        "role": user.role,
        "isSuspended": user.is_suspended,
        "emailVerifiedAt": _iso(user.email_verified_at),
        "phoneVerifiedAt": _iso(user.phone_verified_at),
        "isEmailVerified": user.is_email_verified,
        "isPhoneVerified": user.phone_verified_at is not None,
        "isPhoneSkipped": user.is_phone_skipped,
        "createdAt": _iso(user.date_joined),
    })
    return data


def serialize_admin_user(user):
    data = serialize_user_info(user)
    data["isProfileCompleted"] = user.is_profile_completed()
    return data


def serialize_session(session):
    return {
        "id": session.id,
        "token": session.token,
        "platform": session.platform,
        "deviceId": session.device_id,
        "createdAt": _iso(session.created_at),
        "lastActiveAt": _iso(session.last_active_at),
        "endedAt": _iso(session.ended_at),
    }


def serialize_notification(notification):
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "body": notification.body,
        "data": notification.data,
        "isRead": notification.is_read,
        "actor": serialize_user_brief(notification.actor),
        "createdAt": _iso(notification.created_at),
    }


def serialize_connection(connection, viewer):
    other = connection.receiver if connection.sender_id == viewer.id else connection.sender
    return {
        "id": connection.id,
        "status": connection.status,
        "isSender": connection.sender_id == viewer.id,
        "user": serialize_user_brief(other),
        "createdAt": _iso(connection.created_at),
        "updatedAt": _iso(connection.updated_at),
    }


# ============================================================================
# MESSAGING
# ============================================================================

def serialize_chat_message(message):
    return {
        "id": message.id,
        "chatGroupId": message.chat_group_id,
        "sender": serialize_user_brief(message.sender),
        "content": message.content,
        "attachment": serialize_upload(message.attachment),
        "createdAt": _iso(message.created_at),
    }


def serialize_chat_group(chat_group, member=None, last_message=None, unread_count=0):
    members = chat_group.members.select_related('user__profile_image')
    return {
        "id": chat_group.id,
        "name": chat_group.name,
        "isDirect": chat_group.is_direct,
        "image": serialize_upload(chat_group.image),
        "members": [
            dict(serialize_user_brief(m.user), isAdmin=m.is_admin) for m in members
        ],
        "isMuted": member.is_muted if member else False,
        "isAdmin": member.is_admin if member else False,
        "lastMessage": serialize_chat_message(last_message) if last_message else None,
        "unreadCount": unread_count,
        "createdAt": _iso(chat_group.created_at),
        "updatedAt": _iso(chat_group.updated_at),
    }


# ============================================================================
# GROUPS, POSTS & COMMENTS
# ============================================================================

def serialize_group(group, membership=None):
    return {
        "id": group.id,
        "name": group.name,
        "description": group.description,
        "isPrivate": group.is_private,
        "image": serialize_upload(group.image),
        "industry": serialize_industry(group.industry) if group.industry else None,
        "createdBy": serialize_user_brief(group.created_by),
        "membersCount": group.memberships.filter(status='joined').count(),
        "postsCount": group.posts.count(),
        "isSuspended": group.is_suspended,
        "membership": {
            "role": membership.role,
            "status": membership.status,
        } if membership else None,
        "createdAt": _iso(group.created_at),
    }


def serialize_group_member(member):
    return {
        "id": member.id,
        "user": serialize_user_brief(member.user),
        "role": member.role,
        "status": member.status,
        "joinedAt": _iso(member.created_at),
    }


def serialize_post(post, viewer):
    return {
        "id": post.id,
        "groupId": post.group_id,
        "user": serialize_user_brief(post.user),
        "content": post.content,
        "media": [serialize_upload(m) for m in post.media.all()],
        "likesCount": post.likes.count(),
        "commentsCount": post.comments.count(),
        "isLiked": post.likes.filter(user=viewer).exists(),
        "isOwner": post.user_id == viewer.id,
        "createdAt": _iso(post.created_at),
        "updatedAt": _iso(post.updated_at),
    }


def serialize_comment(comment, viewer):
    counts = {
        row['value']: row['n']
        for row in comment.reactions.values('value').annotate(n=Count('id'))
    }
    mine = comment.reactions.filter(user=viewer).values_list('value', flat=True).first()
    return {
        "id": comment.id,
        "postId": comment.post_id,
        "parentId": comment.parent_id,
        "user": serialize_user_brief(comment.user),
        "content": comment.content,
        "likesCount": counts.get(CommentReaction.LIKE, 0),
        "dislikesCount": counts.get(CommentReaction.DISLIKE, 0),
        "isLiked": mine == CommentReaction.LIKE,
        "isDisliked": mine == CommentReaction.DISLIKE,
        "repliesCount": comment.replies.count() if comment.parent_id is None else 0,
        "isOwner": comment.user_id == viewer.id,
        "createdAt": _iso(comment.created_at),
        "updatedAt": _iso(comment.updated_at),
    }


# ============================================================================
# SHOWCASE
# ============================================================================

def serialize_company(company, viewer=None):
    data = {
        "id": company.id,
        "name": company.name,
        "tagline": company.tagline,
        "description": company.description,
        "industry": serialize_industry(company.industry) if company.industry else None,
        "logo": serialize_upload(company.logo),
        "website": company.website,
        "country": company.country,
        "fundingGoal": _decimal(company.funding_goal),
        "status": company.status,
        "isArchived": company.is_archived,
        "views": company.views,
        "likesCount": company.likes.count(),
        "owner": serialize_user_brief(company.owner),
        "createdAt": _iso(company.created_at),
        "updatedAt": _iso(company.updated_at),
    }
    if viewer is not None:
        data["isLiked"] = company.likes.filter(user=viewer).exists()
        data["isBookmarked"] = company.bookmarks.filter(user=viewer).exists()
        data["isOwner"] = company.owner_id == viewer.id
    return data


def serialize_question(question):
    return {
        "id": question.id,
        "companyId": question.company_id,
        "user": serialize_user_brief(question.user),
        "question": question.question,
        "isArchived": question.is_archived,
        "repliesCount": question.replies.filter(is_archived=False).count(),
        "createdAt": _iso(question.created_at),
    }


def serialize_reply(reply):
    return {
        "id": reply.id,
        "questionId": reply.question_id,
        "user": serialize_user_brief(reply.user),
        "reply": reply.reply,
        "isArchived": reply.is_archived,
        "createdAt": _iso(reply.created_at),
    }


def serialize_investment(investment):
    return {
        "id": investment.id,
        "companyId": investment.company_id,
        "companyName": investment.company.name,
        "investor": serialize_user_brief(investment.investor),
        "amount": _decimal(investment.amount),
        "message": investment.message,
        "status": investment.status,
        "createdAt": _iso(investment.created_at),
        "updatedAt": _iso(investment.updated_at),
    }
