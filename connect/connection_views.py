import logging

from django.db import transaction
from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from .decorators import api_view, auth_required
from .errors import int_list, int_value, parse_json_body, respond_client_error
from .filters import filters_or_client_error, paginated
from .models import Block, Connection, User
from .notifications import notify
from .serializers import serialize_connection, serialize_user_brief


logger = logging.getLogger(__name__)


def _remove_connection(user, other):
    return Connection.between(user, other).delete()[0]


@api_view("POST")
@auth_required
def send_connection_request(request):
    data = parse_json_body(request)
    other = get_object_or_404(User, id=int_value(data.get('userId'), "invalid user id"))

    if other.id == request.user.id:
        return respond_client_error(request, "self request", 400, "You cannot connect with yourself")
    if Block.between(request.user, other):
        return respond_client_error(request, "blocked", 400, "You cannot connect with this user")

    existing = Connection.between(request.user, other).first()
    if existing and existing.status == 'accepted':
        return respond_client_error(request, "already connected", 400, "You are already connected")
    if existing and existing.status == 'pending':
        return respond_client_error(request, "request pending", 400, "A connection request is already pending")

    if existing:
        existing.sender = request.user
        existing.receiver = other
        existing.status = 'pending'
        existing.save()
        connection = existing
    else:
        connection = Connection.objects.create(sender=request.user, receiver=other)

    notify(
        other, 'connection_request', "New connection request",
        f"{request.user.name} wants to connect with you",
        actor=request.user, data={"connectionId": connection.id},
    )
    return JsonResponse(serialize_connection(connection, request.user), status=201)


def _pending_list(request, queryset):
    filters = filters_or_client_error(request)
    queryset = queryset.filter(status='pending').select_related(
        'sender__profile_image', 'receiver__profile_image'
    )
    return JsonResponse(paginated(queryset, filters, lambda c: serialize_connection(c, request.user)))


@api_view("GET")
@auth_required
def inbound_requests(request):
    return _pending_list(request, Connection.objects.filter(receiver=request.user))


@api_view("GET")
@auth_required
def outbound_requests(request):
    return _pending_list(request, Connection.objects.filter(sender=request.user))


@api_view("GET")
@auth_required
def pending_requests(request):
    return _pending_list(
        request, Connection.objects.filter(Q(sender=request.user) | Q(receiver=request.user))
    )


@api_view("PUT")
@auth_required
def update_connection_request(request, connection_id):
    connection = get_object_or_404(Connection, id=connection_id, receiver=request.user, status='pending')
    status = parse_json_body(request).get('status')
    if status not in ('accepted', 'declined'):
        return respond_client_error(request, f"invalid status {status!r}", 400, "invalid status")

    connection.status = status
    connection.save(update_fields=['status', 'updated_at'])
    if status == 'accepted':
        notify(
            connection.sender, 'connection_accepted', "Connection accepted",
            f"{request.user.name} accepted your connection request",
            actor=request.user, data={"connectionId": connection.id},
        )
    return JsonResponse(serialize_connection(connection, request.user))


@api_view("DELETE")
@auth_required
def remove_connection(request, user_id):
    other = get_object_or_404(User, id=user_id)
    connection = Connection.between(request.user, other).filter(status='accepted').first()
    if connection is None:
        return respond_client_error(request, "not connected", 400, "You are not connected")
    connection.status = 'removed'
    connection.save(update_fields=['status', 'updated_at'])
    return JsonResponse({"message": "success"})


@api_view("GET")
@auth_required
def connections_list(request):
    filters = filters_or_client_error(request)
    queryset = User.objects.filter(
        id__in=Connection.connected_user_ids(request.user)
    ).select_related('profile_image', 'preferences').order_by('name', 'id')
    if filters.search_text:
        queryset = queryset.filter(name__icontains=filters.search_text)
    return JsonResponse(paginated(queryset, filters, serialize_user_brief))


@api_view("GET")
@auth_required
def connections_count(request):
    return JsonResponse({
        "connections": len(Connection.connected_user_ids(request.user)),
        "blockedContacts": Block.objects.filter(blocker=request.user).count(),
    })


# ============================================================================
# BLOCKS
# ============================================================================

def _block(user, other):
    _, created = Block.objects.get_or_create(blocker=user, blocked=other)
    _remove_connection(user, other)
    return created


@api_view("POST")
@auth_required
def toggle_block(request):
    other = get_object_or_404(User, id=int_value(parse_json_body(request).get('userId'), "invalid user id"))
    if other.id == request.user.id:
        return respond_client_error(request, "self block", 400, "You cannot block yourself")

    block = Block.objects.filter(blocker=request.user, blocked=other).first()
    if block:
        block.delete()
        return JsonResponse({"isBlocked": False})

    _block(request.user, other)
    logger.info(f"toggle_block: user {request.user.id} blocked {other.id}")
    return JsonResponse({"isBlocked": True})


@api_view("GET", "POST")
@auth_required
def blocked_contacts(request):
    if request.method == "POST":
        ids = set(int_list(parse_json_body(request).get('userIds'))) - {request.user.id}
        with transaction.atomic():
            Block.objects.filter(blocker=request.user).exclude(blocked_id__in=ids).delete()
            for other in User.objects.filter(id__in=ids):
                _block(request.user, other)

    blocked = User.objects.filter(blocked_by__blocker=request.user).select_related('profile_image')
    return JsonResponse({"blockedContacts": [serialize_user_brief(u) for u in blocked]})
