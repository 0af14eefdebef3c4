import logging
import re
from datetime import datetime, timezone as dt_timezone

from django.db import transaction
from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone

from .decorators import api_view, auth_required, chat_group_admin_required, chat_group_member_required
from .errors import ClientError, int_list, int_or_none, int_value, parse_json_body, respond_client_error
from .filters import filters_or_client_error, paginated
from .memberships import leave_chat_group
from .models import Block, ChatGroup, ChatGroupMember, ChatMessage, Upload, User, UserSettings
from .notifications import send_push, user_topic
from .realtime import hub
from .serializers import serialize_chat_group, serialize_chat_message, serialize_upload


logger = logging.getLogger(__name__)

CHAT_MESSENGER = 'chat'

# "+05:30" arrives as " 05:30" when the client forgets to encode the plus
UNENCODED_OFFSET = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)\s(\d{2}:?\d{2})$")


def chat_topic(chat_group_id):
    return f"chat_group.{chat_group_id}"


def visible_messages(member):
    queryset = ChatMessage.objects.filter(chat_group_id=member.chat_group_id).exclude(deleted_for=member.user)
    if member.cleared_at:
        queryset = queryset.filter(created_at__gt=member.cleared_at)
    return queryset.select_related('sender__profile_image', 'attachment')


def unread_count(member):
    queryset = visible_messages(member).exclude(sender=member.user)
    if member.last_read_at:
        queryset = queryset.filter(created_at__gt=member.last_read_at)
    return queryset.count()


def _chat_payload(member):
    return serialize_chat_group(
        member.chat_group,
        member=member,
        last_message=visible_messages(member).first(),
        unread_count=unread_count(member),
    )


def _find_direct_chat(user, other):
    return (
        ChatGroup.objects.filter(is_direct=True, members__user=user)
        .filter(members__user=other)
        .first()
    )


# ============================================================================
# CHAT GROUPS
# ============================================================================

@api_view("GET", "POST")
@auth_required
def chat_groups(request):
    if request.method == "POST":
        return _create_chat_group(request)

    filters = filters_or_client_error(request)
    memberships = (
        ChatGroupMember.objects.filter(user=request.user)
        .select_related('chat_group__image')
        .order_by('-chat_group__updated_at', '-id')
    )
    if filters.search_text:
        memberships = memberships.filter(
            Q(chat_group__name__icontains=filters.search_text)
            | Q(chat_group__is_direct=True, chat_group__members__user__name__icontains=filters.search_text)
        ).distinct()
    return JsonResponse(paginated(memberships, filters, _chat_payload))


def _create_chat_group(request):
    data = parse_json_body(request)
    participant_ids = set(int_list(data.get('participantIds'))) - {request.user.id}
    participants = list(User.objects.filter(id__in=participant_ids))
    if not participants:
        raise ClientError(400, "at least one participant is required")
    if any(Block.between(request.user, p) for p in participants):
        return respond_client_error(request, "blocked participant", 400, "You cannot chat with a blocked user")

    name = (data.get('name') or '').strip()
    is_direct = data.get('isDirect', len(participants) == 1 and not name)

    if is_direct:
        if len(participants) != 1:
            raise ClientError(400, "a direct chat has exactly one participant")
        existing = _find_direct_chat(request.user, participants[0])
        if existing:
            member = ChatGroupMember.objects.get(chat_group=existing, user=request.user)
            return JsonResponse(_chat_payload(member))
    elif not name:
        raise ClientError(400, "group name is required")

    image = None
    image_id = int_or_none(data.get('imageId'), "invalid image id")
    if image_id is not None:
        image = get_object_or_404(Upload, id=image_id, binary_type='image')

    with transaction.atomic():
        chat_group = ChatGroup.objects.create(
            name='' if is_direct else name,
            is_direct=bool(is_direct),
            image=image,
            created_by=request.user,
        )
        member = ChatGroupMember.objects.create(
            chat_group=chat_group, user=request.user, is_admin=not is_direct
        )
        ChatGroupMember.objects.bulk_create([
            ChatGroupMember(chat_group=chat_group, user=p) for p in participants
        ])

    logger.info(f"chat group {chat_group.id} created by user {request.user.id}")
    return JsonResponse(_chat_payload(member), status=201)


@api_view("GET")
@auth_required
@chat_group_member_required
def chat_group_detail(request, chat_group_id):
    return JsonResponse(_chat_payload(request.chat_member))


@api_view("PUT")
@auth_required
@chat_group_member_required
def toggle_mute(request, chat_group_id):
    member = request.chat_member
    member.is_muted = not member.is_muted
    member.save(update_fields=['is_muted'])
    return JsonResponse({"isMuted": member.is_muted})


@api_view("POST")
@auth_required
@chat_group_member_required
def set_notifications(request, chat_group_id):
    enabled = parse_json_body(request).get('enabled')
    if not isinstance(enabled, bool):
        raise ClientError(400, "enabled must be a boolean")
    member = request.chat_member
    member.is_muted = not enabled
    member.save(update_fields=['is_muted'])
    return JsonResponse({"isMuted": member.is_muted})


@api_view("POST")
@auth_required
@chat_group_member_required
def leave(request, chat_group_id):
    if request.chat_group.is_direct:
        return respond_client_error(request, "direct chat", 400, "You cannot leave a direct chat")
    successor = leave_chat_group(request.chat_member)
    return JsonResponse({
        "message": "success",
        "newAdminId": successor.user_id if successor else None,
    })


# ============================================================================
# ADMIN ACTIONS
# ============================================================================

@api_view("DELETE")
@auth_required
@chat_group_admin_required
def delete_chat_group(request, chat_group_id):
    request.chat_group.delete()
    return JsonResponse({"message": "success"})


@api_view("PUT")
@auth_required
@chat_group_admin_required
def edit_chat_group(request, chat_group_id):
    data = parse_json_body(request)
    chat_group = request.chat_group
    if 'name' in data:
        name = (data['name'] or '').strip()
        if not name:
            raise ClientError(400, "group name is required")
        chat_group.name = name
    if 'imageId' in data:
        image_id = int_or_none(data['imageId'], "invalid image id")
        chat_group.image = (
            get_object_or_404(Upload, id=image_id, binary_type='image') if image_id is not None else None
        )
    chat_group.save()
    return JsonResponse(_chat_payload(request.chat_member))


@api_view("POST")
@auth_required
@chat_group_admin_required
def toggle_admins(request, chat_group_id):
    ids = set(int_list(parse_json_body(request).get('userIds'))) - {request.user.id}
    members = ChatGroupMember.objects.filter(chat_group=request.chat_group, user_id__in=ids)
    for member in members:
        member.is_admin = not member.is_admin
        member.save(update_fields=['is_admin'])
    return JsonResponse(_chat_payload(request.chat_member))


@api_view("POST")
@auth_required
@chat_group_admin_required
def set_admin(request, chat_group_id):
    user_id = int_value(parse_json_body(request).get('userId'), "invalid user id")
    member = get_object_or_404(ChatGroupMember, chat_group=request.chat_group, user_id=user_id)
    member.is_admin = True
    member.save(update_fields=['is_admin'])
    return JsonResponse(_chat_payload(request.chat_member))


@api_view("POST")
@auth_required
@chat_group_admin_required
def edit_participants(request, chat_group_id):
    chat_group = request.chat_group
    if chat_group.is_direct:
        return respond_client_error(request, "direct chat", 400, "Participants of a direct chat cannot change")

    data = parse_json_body(request)
    add_ids = set(int_list(data.get('add')))
    remove_ids = set(int_list(data.get('remove')))
    if request.user.id in remove_ids:
        return respond_client_error(request, "self removal", 400, "You cannot remove yourself, leave the group instead")

    with transaction.atomic():
        ChatGroupMember.objects.filter(chat_group=chat_group, user_id__in=remove_ids).delete()
        existing = set(chat_group.members.values_list('user_id', flat=True))
        for user in User.objects.filter(id__in=add_ids - existing):
            if Block.between(request.user, user):
                continue
            ChatGroupMember.objects.create(chat_group=chat_group, user=user)
    return JsonResponse(_chat_payload(request.chat_member))


# ============================================================================
# MESSAGES
# ============================================================================

@api_view("POST")
@auth_required
@chat_group_member_required
def send_message(request, chat_group_id):
    data = parse_json_body(request)
    content = (data.get('content') or '').strip()
    attachment = None
    attachment_id = int_or_none(data.get('attachmentId'), "invalid attachment id")
    if attachment_id is not None:
        attachment = get_object_or_404(Upload, id=attachment_id)
    if not content and attachment is None:
        raise ClientError(400, "message cannot be empty")

    chat_group = request.chat_group
    others = list(chat_group.members.exclude(user=request.user).select_related('user'))
    if chat_group.is_direct and others and Block.between(request.user, others[0].user):
        return respond_client_error(request, "blocked", 403, "You cannot message this user")

    message = ChatMessage.objects.create(
        chat_group=chat_group, sender=request.user, content=content, attachment=attachment
    )
    chat_group.save(update_fields=['updated_at'])
    request.chat_member.last_read_at = message.created_at
    request.chat_member.save(update_fields=['last_read_at'])

    payload = serialize_chat_message(message)
    hub.publish(CHAT_MESSENGER, chat_topic(chat_group.id), payload, {"senderId": request.user.id})

    previews = dict(
        UserSettings.objects.filter(user__in=[m.user for m in others]).values_list('user_id', 'message_previews')
    )
    for member in others:
        if member.is_muted:
            continue
        body = content if previews.get(member.user_id, True) else "New message"
        send_push(member.user, {
            "type": "chat_message",
            "title": chat_group.name or request.user.name,
            "body": body,
            "chatGroupId": chat_group.id,
            "messageId": message.id,
            "topic": user_topic(member.user_id),
        })

    return JsonResponse(payload, status=201)


@api_view("GET")
@auth_required
@chat_group_member_required
def messages(request, chat_group_id):
    filters = filters_or_client_error(request)
    member = request.chat_member
    response = paginated(visible_messages(member), filters, serialize_chat_message)
    if filters.page == 0:
        member.last_read_at = timezone.now()
        member.save(update_fields=['last_read_at'])
    return JsonResponse(response)


@api_view("GET")
@auth_required
@chat_group_member_required
def messages_after(request, chat_group_id):
    raw = request.GET.get('timestamp', '')
    value = UNENCODED_OFFSET.sub(r"\1+\2", raw.strip()).replace('Z', '+00:00')
    try:
        after = datetime.fromisoformat(value)
    except ValueError:
        return respond_client_error(request, f"invalid timestamp {raw!r}", 400, "invalid timestamp")
    if timezone.is_naive(after):
        after = timezone.make_aware(after, dt_timezone.utc)

    queryset = visible_messages(request.chat_member).filter(created_at__gt=after).order_by('created_at', 'id')
    return JsonResponse({"messages": [serialize_chat_message(m) for m in queryset]})


@api_view("GET")
@auth_required
@chat_group_member_required
def message_attachment(request, chat_group_id, message_id):
    message = get_object_or_404(
        visible_messages(request.chat_member), id=message_id, attachment__isnull=False
    )
    return JsonResponse(serialize_upload(message.attachment))


@api_view("POST")
@auth_required
@chat_group_member_required
def delete_messages_for_me(request, chat_group_id):
    ids = int_list(parse_json_body(request).get('messageIds'))
    to_hide = ChatMessage.objects.filter(chat_group=request.chat_group, id__in=ids)
    for message in to_hide:
        message.deleted_for.add(request.user)
    return JsonResponse({"message": "success", "deleted": len(to_hide)})


@api_view("DELETE")
@auth_required
@chat_group_member_required
def clear_messages(request, chat_group_id):
    member = request.chat_member
    member.cleared_at = timezone.now()
    member.save(update_fields=['cleared_at'])
    return JsonResponse({"message": "success"})
