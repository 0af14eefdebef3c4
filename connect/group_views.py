import logging

from django.db import transaction
from django.db.models import Count, Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from .decorators import api_view, auth_required, group_admin_required, group_member_required
from .errors import ClientError, int_list, int_or_none, int_value, parse_json_body, respond_client_error
from .filters import filters_or_client_error, paginated
from .memberships import leave_group
from .models import (
    Block, Comment, CommentReaction, Connection, Group, GroupMember, Industry, Post, PostLike,
    Report, Upload, User,
    GROUP_ROLE_ADMIN, GROUP_ROLE_MEMBER, GROUP_ROLE_OWNER,
    MEMBER_BLOCKED, MEMBER_INVITED, MEMBER_JOINED, MEMBER_REQUESTED,
)
from .notifications import notify
from .serializers import (
    serialize_comment, serialize_group, serialize_group_member, serialize_post, serialize_user_brief,
)
from .views import create_report


logger = logging.getLogger(__name__)


def _visible_groups():
    return Group.objects.filter(is_deleted=False, is_suspended=False).select_related(
        'image', 'industry', 'created_by__profile_image'
    )


def _group_payload(group, user):
    membership = GroupMember.objects.filter(group=group, user=user).first()
    return serialize_group(group, membership)


def _group_admins(group):
    return User.objects.filter(
        group_memberships__group=group,
        group_memberships__status=MEMBER_JOINED,
        group_memberships__role__in=(GROUP_ROLE_OWNER, GROUP_ROLE_ADMIN),
    )


def _image_or_none(upload_id):
    upload_id = int_or_none(upload_id, "invalid image id")
    if upload_id is None:
        return None
    return get_object_or_404(Upload, id=upload_id, binary_type='image')


def _industry_or_none(industry_id):
    industry_id = int_or_none(industry_id, "invalid industry id")
    if industry_id is None:
        return None
    return get_object_or_404(Industry, id=industry_id, archived_at__isnull=True)


# ============================================================================
# GROUPS
# ============================================================================

@api_view("POST")
@auth_required
def create_group(request):
    data = parse_json_body(request)
    name = (data.get('name') or '').strip()
    if not name:
        raise ClientError(400, "group name is required")

    with transaction.atomic():
        group = Group.objects.create(
            name=name,
            description=(data.get('description') or '').strip(),
            is_private=bool(data.get('isPrivate')),
            image=_image_or_none(data.get('imageId')),
            industry=_industry_or_none(data.get('industryId')),
            created_by=request.user,
        )
        GroupMember.objects.create(group=group, user=request.user, role=GROUP_ROLE_OWNER)

    logger.info(f"group {group.id} created by user {request.user.id}")
    return JsonResponse(_group_payload(group, request.user), status=201)


@api_view("GET")
@auth_required
def group_detail(request, group_id):
    group = get_object_or_404(_visible_groups(), id=group_id)
    membership = GroupMember.objects.filter(group=group, user=request.user).first()
    if membership and membership.status == MEMBER_BLOCKED:
        return respond_client_error(request, "blocked from group", 403, "You cannot view this group")
    return JsonResponse(serialize_group(group, membership))


def _groups_for_status(request, status, roles=None):
    filters = filters_or_client_error(request)
    memberships = GroupMember.objects.filter(user=request.user, status=status)
    if roles:
        memberships = memberships.filter(role__in=roles)
    queryset = _visible_groups().filter(id__in=memberships.values('group_id'))
    if filters.search_text:
        queryset = queryset.filter(name__icontains=filters.search_text)
    return JsonResponse(paginated(queryset, filters, lambda g: _group_payload(g, request.user)))


@api_view("GET")
@auth_required
def joined_groups(request):
    return _groups_for_status(request, MEMBER_JOINED)


@api_view("GET")
@auth_required
def owned_groups(request):
    return _groups_for_status(request, MEMBER_JOINED, roles=(GROUP_ROLE_OWNER,))


@api_view("GET")
@auth_required
def requested_groups(request):
    return _groups_for_status(request, MEMBER_REQUESTED)


@api_view("GET")
@auth_required
def invited_groups(request):
    return _groups_for_status(request, MEMBER_INVITED)


@api_view("GET")
@auth_required
def explore_groups(request):
    filters = filters_or_client_error(request)
    queryset = _visible_groups().exclude(memberships__user=request.user)
    if filters.industries:
        queryset = queryset.filter(industry_id__in=filters.industries)
    if filters.search_text:
        queryset = queryset.filter(
            Q(name__icontains=filters.search_text) | Q(description__icontains=filters.search_text)
        )
    queryset = queryset.annotate(
        members_count=Count('memberships', filter=Q(memberships__status=MEMBER_JOINED))
    ).order_by('-members_count', '-created_at')
    return JsonResponse(paginated(queryset, filters, lambda g: serialize_group(g)))


@api_view("GET")
@auth_required
def feeds(request):
    filters = filters_or_client_error(request)
    joined = GroupMember.objects.filter(user=request.user, status=MEMBER_JOINED).values('group_id')
    blocked = Block.objects.filter(Q(blocker=request.user) | Q(blocked=request.user))
    hidden_users = set(blocked.values_list('blocker_id', flat=True)) | set(blocked.values_list('blocked_id', flat=True))
    hidden_users.discard(request.user.id)

    queryset = (
        Post.objects.filter(group_id__in=joined, group__is_deleted=False, group__is_suspended=False)
        .exclude(user_id__in=hidden_users)
        .select_related('user__profile_image')
        .prefetch_related('media')
    )
    return JsonResponse(paginated(queryset, filters, lambda p: serialize_post(p, request.user)))


@api_view("POST")
@auth_required
def join_group(request, group_id):
    group = get_object_or_404(_visible_groups(), id=group_id)
    membership = GroupMember.objects.filter(group=group, user=request.user).first()

    if membership and membership.status == MEMBER_BLOCKED:
        return respond_client_error(request, "blocked from group", 403, "You cannot join this group")
    if membership and membership.status in (MEMBER_JOINED, MEMBER_REQUESTED):
        return respond_client_error(request, "already member", 400, "You already joined or requested this group")

    status = MEMBER_REQUESTED if group.is_private and not membership else MEMBER_JOINED
    if membership:
        membership.status = status
        membership.save(update_fields=['status', 'updated_at'])
    else:
        membership = GroupMember.objects.create(group=group, user=request.user, status=status)

    if status == MEMBER_REQUESTED:
        for admin in _group_admins(group):
            notify(
                admin, 'group_join_request', "New join request",
                f"{request.user.name} asked to join {group.name}",
                actor=request.user, data={"groupId": group.id},
            )
    return JsonResponse({"status": membership.status})


@api_view("POST")
@auth_required
def cancel_join_request(request, group_id):
    deleted, _ = GroupMember.objects.filter(
        group_id=group_id, user=request.user, status=MEMBER_REQUESTED
    ).delete()
    if not deleted:
        return respond_client_error(request, "no request", 400, "No pending request for this group")
    return JsonResponse({"message": "success"})


@api_view("POST")
@auth_required
def decline_invite(request, group_id):
    deleted, _ = GroupMember.objects.filter(
        group_id=group_id, user=request.user, status=MEMBER_INVITED
    ).delete()
    if not deleted:
        return respond_client_error(request, "no invite", 400, "No pending invite for this group")
    return JsonResponse({"message": "success"})


@api_view("POST")
@auth_required
@group_member_required
def leave_group_view(request, group_id):
    successor = leave_group(request.group_member)
    return JsonResponse({
        "message": "success",
        "newOwnerId": successor.user_id if successor else None,
    })


@api_view("GET")
@auth_required
@group_member_required
def group_members(request, group_id):
    filters = filters_or_client_error(request)
    queryset = GroupMember.objects.filter(group=request.group, status=MEMBER_JOINED).select_related(
        'user__profile_image'
    )
    if filters.search_text:
        queryset = queryset.filter(user__name__icontains=filters.search_text)
    return JsonResponse(paginated(queryset, filters, serialize_group_member))


@api_view("POST")
@auth_required
@group_member_required
def invite_users(request, group_id):
    group = request.group
    ids = set(int_list(parse_json_body(request).get('userIds'))) - {request.user.id}
    existing = set(GroupMember.objects.filter(group=group).values_list('user_id', flat=True))

    invited = []
    for user in User.objects.filter(id__in=ids - existing):
        if Block.between(request.user, user):
            continue
        GroupMember.objects.create(group=group, user=user, status=MEMBER_INVITED, invited_by=request.user)
        notify(
            user, 'group_invite', "Group invitation",
            f"{request.user.name} invited you to join {group.name}",
            actor=request.user, data={"groupId": group.id},
        )
        invited.append(user.id)
    return JsonResponse({"invited": invited})


@api_view("GET")
@auth_required
@group_member_required
def connections_not_in_group(request, group_id):
    filters = filters_or_client_error(request)
    in_group = GroupMember.objects.filter(group=request.group).values('user_id')
    queryset = (
        User.objects.filter(id__in=Connection.connected_user_ids(request.user))
        .exclude(id__in=in_group)
        .select_related('profile_image')
        .order_by('name', 'id')
    )
    if filters.search_text:
        queryset = queryset.filter(name__icontains=filters.search_text)
    return JsonResponse(paginated(queryset, filters, serialize_user_brief))


@api_view("POST")
@auth_required
def report_group(request, group_id):
    group = get_object_or_404(Group, id=group_id, is_deleted=False)
    return create_report(request, 'group', group.id, parse_json_body(request))


# ============================================================================
# GROUP ADMIN
# ============================================================================

@api_view("PUT")
@auth_required
@group_admin_required
def update_group(request, group_id):
    data = parse_json_body(request)
    group = request.group
    if 'name' in data:
        name = (data['name'] or '').strip()
        if not name:
            raise ClientError(400, "group name is required")
        group.name = name
    if 'description' in data:
        group.description = (data['description'] or '').strip()
    if 'isPrivate' in data:
        group.is_private = bool(data['isPrivate'])
    if 'industryId' in data:
        group.industry = _industry_or_none(data['industryId'])
    group.save()
    return JsonResponse(serialize_group(group, request.group_member))


@api_view("PUT")
@auth_required
@group_admin_required
def update_group_image(request, group_id):
    request.group.image = _image_or_none(parse_json_body(request).get('imageId'))
    request.group.save(update_fields=['image', 'updated_at'])
    return JsonResponse(serialize_group(request.group, request.group_member))


@api_view("DELETE")
@auth_required
@group_admin_required
def delete_group(request, group_id):
    if request.group_member.role != GROUP_ROLE_OWNER:
        return respond_client_error(request, "not owner", 403, "Only the owner can delete the group")
    request.group.delete()
    return JsonResponse({"message": "success"})


def _target_member(request, user_id, statuses=(MEMBER_JOINED,)):
    user_id = int_value(user_id, "invalid user id")
    if user_id == request.user.id:
        raise ClientError(400, "You cannot do this to yourself")
    member = get_object_or_404(GroupMember, group=request.group, user_id=user_id, status__in=statuses)
    if member.role == GROUP_ROLE_OWNER:
        raise ClientError(403, "The owner cannot be changed")
    return member


@api_view("PUT")
@auth_required
@group_admin_required
def toggle_group_admin(request, group_id):
    member = _target_member(request, parse_json_body(request).get('userId'))
    member.role = GROUP_ROLE_MEMBER if member.role == GROUP_ROLE_ADMIN else GROUP_ROLE_ADMIN
    member.save(update_fields=['role', 'updated_at'])
    return JsonResponse(serialize_group_member(member))


@api_view("DELETE")
@auth_required
@group_admin_required
def remove_group_user(request, group_id, user_id):
    member = _target_member(request, user_id)
    member.delete()
    return JsonResponse({"message": "success"})


@api_view("PUT")
@auth_required
@group_admin_required
def answer_join_request(request, group_id, user_id):
    member = get_object_or_404(GroupMember, group=request.group, user_id=user_id, status=MEMBER_REQUESTED)
    status = parse_json_body(request).get('status')
    if status == 'accepted':
        member.status = MEMBER_JOINED
        member.save(update_fields=['status', 'updated_at'])
        notify(
            member.user, 'group_request_accepted', "Request accepted",
            f"You joined {request.group.name}",
            actor=request.user, data={"groupId": request.group.id},
        )
    elif status == 'declined':
        member.delete()
    else:
        return respond_client_error(request, f"invalid status {status!r}", 400, "invalid status")
    return JsonResponse({"message": "success"})


@api_view("PUT")
@auth_required
@group_admin_required
def toggle_group_block(request, group_id):
    user_id = int_value(parse_json_body(request).get('userId'), "invalid user id")
    member = GroupMember.objects.filter(group=request.group, user_id=user_id).first()
    if member and member.status == MEMBER_BLOCKED:
        member.delete()
        return JsonResponse({"isBlocked": False})

    if member is None:
        user = get_object_or_404(User, id=user_id)
        member = GroupMember(group=request.group, user=user)
    else:
        member = _target_member(request, user_id, statuses=(member.status,))
    member.status = MEMBER_BLOCKED
    member.role = GROUP_ROLE_MEMBER
    member.save()
    return JsonResponse({"isBlocked": True})


def _members_with_status(request, status):
    filters = filters_or_client_error(request)
    queryset = GroupMember.objects.filter(group=request.group, status=status).select_related('user__profile_image')
    return JsonResponse(paginated(queryset, filters, serialize_group_member))


@api_view("GET")
@auth_required
@group_admin_required
def blocked_users(request, group_id):
    return _members_with_status(request, MEMBER_BLOCKED)


@api_view("GET")
@auth_required
@group_admin_required
def pending_invites(request, group_id):
    return _members_with_status(request, MEMBER_INVITED)


@api_view("GET")
@auth_required
@group_admin_required
def join_requests(request, group_id):
    return _members_with_status(request, MEMBER_REQUESTED)


def _reported_ids(target_type):
    return Report.objects.filter(target_type=target_type).values('target_id')


@api_view("GET")
@auth_required
@group_admin_required
def reported_posts(request, group_id):
    filters = filters_or_client_error(request)
    queryset = Post.objects.filter(group=request.group, id__in=_reported_ids('post')).select_related(
        'user__profile_image'
    )
    return JsonResponse(paginated(queryset, filters, lambda p: serialize_post(p, request.user)))


@api_view("GET")
@auth_required
@group_admin_required
def reported_comments(request, group_id):
    filters = filters_or_client_error(request)
    queryset = Comment.objects.filter(post__group=request.group, id__in=_reported_ids('comment')).select_related(
        'user__profile_image'
    )
    return JsonResponse(paginated(queryset, filters, lambda c: serialize_comment(c, request.user)))


# ============================================================================
# POSTS
# ============================================================================

def _post_in_group(request, post_id):
    return get_object_or_404(Post.objects.select_related('user__profile_image'), id=post_id, group=request.group)


@api_view("GET", "POST")
@auth_required
@group_member_required
def group_posts(request, group_id):
    if request.method == "POST":
        data = parse_json_body(request)
        content = (data.get('content') or '').strip()
        media = list(Upload.objects.filter(id__in=int_list(data.get('mediaIds')), uploaded_by=request.user))
        if not content and not media:
            raise ClientError(400, "Post content or media is required")
        post = Post.objects.create(group=request.group, user=request.user, content=content)
        post.media.set(media)
        return JsonResponse(serialize_post(post, request.user), status=201)

    filters = filters_or_client_error(request)
    queryset = Post.objects.filter(group=request.group).select_related('user__profile_image').prefetch_related('media')
    if filters.search_text:
        queryset = queryset.filter(content__icontains=filters.search_text)
    return JsonResponse(paginated(queryset, filters, lambda p: serialize_post(p, request.user)))


@api_view("GET", "PUT", "DELETE")
@auth_required
@group_member_required
def post_detail(request, group_id, post_id):
    post = _post_in_group(request, post_id)

    if request.method == "PUT":
        if post.user_id != request.user.id:
            return respond_client_error(request, "not author", 403, "You can only edit your own posts")
        data = parse_json_body(request)
        post.content = (data.get('content', post.content) or '').strip()
        if 'mediaIds' in data:
            post.media.set(Upload.objects.filter(id__in=int_list(data['mediaIds']), uploaded_by=request.user))
        if not post.content and not post.media.exists():
            raise ClientError(400, "Post content or media is required")
        post.save()

    elif request.method == "DELETE":
        if post.user_id != request.user.id and not request.group_member.is_group_admin:
            return respond_client_error(request, "not allowed", 403, "You cannot delete this post")
        post.delete()
        return JsonResponse({"message": "success"})

    return JsonResponse(serialize_post(post, request.user))


@api_view("POST")
@auth_required
@group_member_required
def report_post(request, group_id, post_id):
    post = _post_in_group(request, post_id)
    return create_report(request, 'post', post.id, parse_json_body(request))


@api_view("POST")
@auth_required
@group_member_required
def toggle_post_like(request, group_id, post_id):
    post = _post_in_group(request, post_id)
    like, created = PostLike.objects.get_or_create(post=post, user=request.user)
    if not created:
        like.delete()
    else:
        notify(
            post.user, 'post_like', "New like",
            f"{request.user.name} liked your post",
            actor=request.user, data={"groupId": post.group_id, "postId": post.id},
        )
    return JsonResponse({"isLiked": created, "likesCount": post.likes.count()})


@api_view("GET")
@auth_required
@group_member_required
def post_likes(request, group_id, post_id):
    filters = filters_or_client_error(request)
    post = _post_in_group(request, post_id)
    queryset = User.objects.filter(post_likes__post=post).select_related('profile_image').order_by('-post_likes__created_at')
    return JsonResponse(paginated(queryset, filters, serialize_user_brief))


# ============================================================================
# COMMENTS & REPLIES
# ============================================================================

def _comment_in_group(request, comment_id):
    return get_object_or_404(
        Comment.objects.select_related('user__profile_image', 'post'), id=comment_id, post__group=request.group
    )


def _create_comment(request, post, parent=None):
    content = (parse_json_body(request).get('content') or '').strip()
    if not content:
        raise ClientError(400, "Comment cannot be empty")
    comment = Comment.objects.create(post=post, user=request.user, parent=parent, content=content)

    data = {"groupId": post.group_id, "postId": post.id, "commentId": comment.id}
    if parent is None:
        notify(post.user, 'post_comment', "New comment", f"{request.user.name} commented on your post",
               actor=request.user, data=data)
    else:
        notify(parent.user, 'comment_reply', "New reply", f"{request.user.name} replied to your comment",
               actor=request.user, data=data)
    return JsonResponse(serialize_comment(comment, request.user), status=201)


@api_view("GET", "POST")
@auth_required
@group_member_required
def post_comments(request, group_id, post_id):
    post = _post_in_group(request, post_id)
    if request.method == "POST":
        return _create_comment(request, post)

    filters = filters_or_client_error(request)
    queryset = post.comments.filter(parent__isnull=True).select_related('user__profile_image')
    return JsonResponse(paginated(queryset, filters, lambda c: serialize_comment(c, request.user)))


@api_view("GET", "POST")
@auth_required
@group_member_required
def comment_replies(request, group_id, comment_id):
    parent = _comment_in_group(request, comment_id)
    if request.method == "POST":
        if parent.parent_id is not None:
            return respond_client_error(request, "reply depth", 400, "You can only reply to a comment")
        return _create_comment(request, parent.post, parent)

    filters = filters_or_client_error(request)
    queryset = parent.replies.select_related('user__profile_image')
    return JsonResponse(paginated(queryset, filters, lambda c: serialize_comment(c, request.user)))


@api_view("PUT", "DELETE")
@auth_required
@group_member_required
def comment_detail(request, group_id, comment_id):
    comment = _comment_in_group(request, comment_id)

    if request.method == "DELETE":
        if comment.user_id != request.user.id and not request.group_member.is_group_admin:
            return respond_client_error(request, "not allowed", 403, "You cannot delete this comment")
        comment.delete()
        return JsonResponse({"message": "success"})

    if comment.user_id != request.user.id:
        return respond_client_error(request, "not author", 403, "You can only edit your own comments")
    content = (parse_json_body(request).get('content') or '').strip()
    if not content:
        raise ClientError(400, "Comment cannot be empty")
    comment.content = content
    comment.save(update_fields=['content', 'updated_at'])
    return JsonResponse(serialize_comment(comment, request.user))


@api_view("POST")
@auth_required
@group_member_required
def report_comment(request, group_id, comment_id):
    comment = _comment_in_group(request, comment_id)
    return create_report(request, 'comment', comment.id, parse_json_body(request))


def _toggle_reaction(request, comment_id, value):
    comment = _comment_in_group(request, comment_id)
    reaction = CommentReaction.objects.filter(comment=comment, user=request.user).first()

    if reaction and reaction.value == value:
        reaction.delete()
    elif reaction:
        reaction.value = value
        reaction.save(update_fields=['value'])
    else:
        CommentReaction.objects.create(comment=comment, user=request.user, value=value)
        if value == CommentReaction.LIKE:
            notify(
                comment.user, 'comment_like', "New like", f"{request.user.name} liked your comment",
                actor=request.user,
                data={"groupId": request.group.id, "postId": comment.post_id, "commentId": comment.id},
            )
    return JsonResponse(serialize_comment(comment, request.user))


@api_view("POST")
@auth_required
@group_member_required
def like_comment(request, group_id, comment_id):
    return _toggle_reaction(request, comment_id, CommentReaction.LIKE)


@api_view("POST")
@auth_required
@group_member_required
def dislike_comment(request, group_id, comment_id):
    return _toggle_reaction(request, comment_id, CommentReaction.DISLIKE)
