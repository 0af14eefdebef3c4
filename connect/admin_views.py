import csv
import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Count, Q
from django.db.models.functions import ExtractHour, TruncDay, TruncMonth
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone

from . import dynamic_config
from .accounts import clear_cached_contexts, delete_account
from .decorators import admin_required, api_view
from .errors import ClientError, int_list, int_value, parse_json_body, respond_client_error
from .filters import (
    apply_user_filters, filters_or_client_error, get_industries_filters, paginated,
)
from .models import (
    Broadcast, Comment, CompanyProfile, Group, GroupMember, Industry, Post, Report, ReportType,
    Upload, User,
    GENDER_CHOICES, INDUSTRY_CATEGORY_CHOICES, MEMBER_JOINED, REPORT_CATEGORY_CHOICES, ROLE_ADMIN,
)
from .notifications import notify, notify_many
from .serializers import (
    serialize_admin_user, serialize_comment, serialize_company, serialize_group, serialize_group_member,
    serialize_industry, serialize_post, serialize_upload, serialize_user_brief,
)
from .storage import upload_images_from_list


logger = logging.getLogger(__name__)

ACTIVE_WINDOW = timedelta(days=30)

GROUP_FLAG_KEYS = {'is_suspended': 'isSuspended', 'is_deleted': 'isDeleted'}

COUNTRY_DIALLING_CODES = [
    ("Australia", "AU", "+61"),
    ("Bangladesh", "BD", "+880"),
    ("Brazil", "BR", "+55"),
    ("Canada", "CA", "+1"),
    ("China", "CN", "+86"),
    ("Egypt", "EG", "+20"),
    ("France", "FR", "+33"),
    ("Germany", "DE", "+49"),
    ("Ghana", "GH", "+233"),
    ("India", "IN", "+91"),
    ("Indonesia", "ID", "+62"),
    ("Ireland", "IE", "+353"),
    ("Italy", "IT", "+39"),
    ("Japan", "JP", "+81"),
    ("Kenya", "KE", "+254"),
    ("Malaysia", "MY", "+60"),
    ("Mexico", "MX", "+52"),
    ("Netherlands", "NL", "+31"),
    ("New Zealand", "NZ", "+64"),
    ("Nigeria", "NG", "+234"),
    ("Pakistan", "PK", "+92"),
    ("Philippines", "PH", "+63"),
    ("Qatar", "QA", "+974"),
    ("Saudi Arabia", "SA", "+966"),
    ("Singapore", "SG", "+65"),
    ("South Africa", "ZA", "+27"),
    ("South Korea", "KR", "+82"),
    ("Spain", "ES", "+34"),
    ("Sweden", "SE", "+46"),
    ("Switzerland", "CH", "+41"),
    ("United Arab Emirates", "AE", "+971"),
    ("United Kingdom", "GB", "+44"),
    ("United States", "US", "+1"),
]

USER_CSV_HEADER = [
    'ID', 'Name', 'Email', 'Phone', 'Gender', 'Date of birth', 'Country', 'State',
    'Email verified', 'Suspended', 'Joined',
]


def _csv_response(filename, header, rows):
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    writer = csv.writer(response)
    writer.writerow(header)
    writer.writerows(rows)
    return response


def _users():
    return User.objects.exclude(role=ROLE_ADMIN).select_related('profile_image', 'cover_image')


def _filtered_users(request):
    filters = filters_or_client_error(request)
    return filters, apply_user_filters(_users(), filters).order_by('-date_joined', '-id')


# ============================================================================
# USERS
# ============================================================================

@api_view("GET")
@admin_required
def users_list(request):
    filters, queryset = _filtered_users(request)
    return JsonResponse(paginated(queryset, filters, serialize_admin_user))


@api_view("GET")
@admin_required
def download_users(request):
    _, queryset = _filtered_users(request)
    rows = (
        [
            u.id, u.name, u.email, u.phone or '', u.gender, u.date_of_birth or '', u.country, u.state,
            'yes' if u.is_email_verified else 'no', 'yes' if u.is_suspended else 'no',
            u.date_joined.date().isoformat(),
        ]
        for u in queryset
    )
    return _csv_response('users.csv', USER_CSV_HEADER, rows)


@api_view("GET")
@admin_required
def user_filter_options(request):
    users = _users()
    countries = users.exclude(country='').values_list('country', flat=True).distinct().order_by('country')
    states = users.exclude(state='').values_list('state', flat=True).distinct().order_by('state')
    return JsonResponse({
        "countries": list(countries),
        "states": list(states),
        "genders": [value for value, _ in GENDER_CHOICES],
        "industries": [serialize_industry(i) for i in Industry.objects.filter(archived_at__isnull=True)],
    })


@api_view("GET", "PUT", "DELETE")
@admin_required
def user_detail(request, user_id):
    user = get_object_or_404(_users(), id=user_id)

    if request.method == "DELETE":
        delete_account(user)
        return JsonResponse({"message": "success"})

    if request.method == "PUT":
        data = parse_json_body(request)
        for key in ('name', 'country', 'state', 'about', 'headline'):
            if key in data:
                setattr(user, key, (data[key] or '').strip())
        if 'phone' in data:
            phone = (data['phone'] or '').strip() or None
            if phone and User.objects.filter(phone=phone).exclude(id=user.id).exists():
                raise ClientError(400, "Phone number already registered.", "phone taken")
            user.phone = phone
        if 'gender' in data:
            if data['gender'] not in dict(GENDER_CHOICES):
                raise ClientError(400, "invalid gender")
            user.gender = data['gender']
        user.save()
        clear_cached_contexts(user)

    return JsonResponse(serialize_admin_user(user))


@api_view("POST")
@admin_required
def toggle_suspend_user(request, user_id):
    user = get_object_or_404(_users(), id=user_id)
    user.is_suspended = not user.is_suspended
    user.suspended_at = timezone.now() if user.is_suspended else None
    user.save(update_fields=['is_suspended', 'suspended_at'])
    clear_cached_contexts(user)
    logger.info(f"toggle_suspend_user: user {user.id} suspended={user.is_suspended}")
    return JsonResponse({"isSuspended": user.is_suspended})


# ============================================================================
# DASHBOARD
# ============================================================================

@api_view("GET")
@admin_required
def dashboard_details(request):
    users = _users()
    since = timezone.now() - ACTIVE_WINDOW
    return JsonResponse({
        "totalUsers": users.count(),
        "verifiedUsers": users.filter(email_verified_at__isnull=False).count(),
        "suspendedUsers": users.filter(is_suspended=True).count(),
        "activeUsers": users.filter(last_seen__gte=since).count(),
        "totalGroups": Group.objects.filter(is_deleted=False).count(),
        "totalPosts": Post.objects.count(),
        "totalCompanies": CompanyProfile.objects.count(),
    })


@api_view("GET")
@admin_required
def user_chart(request):
    chart_type = request.GET.get('type', 'daily')
    now = timezone.now()
    if chart_type == 'daily':
        trunc, since = TruncDay('date_joined'), now - timedelta(days=30)
    elif chart_type == 'monthly':
        trunc, since = TruncMonth('date_joined'), now - timedelta(days=365)
    else:
        return respond_client_error(request, f"invalid chart type {chart_type!r}", 400, "invalid chart type")

    rows = (
        _users().filter(date_joined__gte=since)
        .annotate(period=trunc).values('period')
        .annotate(count=Count('id')).order_by('period')
    )
    return JsonResponse({"type": chart_type, "data": [
        {"date": r['period'].date().isoformat(), "count": r['count']} for r in rows
    ]})


@api_view("GET")
@admin_required
def top_industries(request):
    rows = (
        Industry.objects.filter(archived_at__isnull=True)
        .annotate(users_count=Count('users', filter=~Q(users__role=ROLE_ADMIN)))
        .filter(users_count__gt=0)
        .order_by('-users_count', 'name')[:10]
    )
    return JsonResponse({"data": [{"id": i.id, "name": i.name, "count": i.users_count} for i in rows]})


def _location_counts(field, active_only=False):
    users = _users().exclude(**{field: ''})
    if active_only:
        users = users.filter(last_seen__gte=timezone.now() - ACTIVE_WINDOW)
    rows = users.values(field).annotate(count=Count('id')).order_by('-count', field)
    return JsonResponse({"data": [{"name": r[field], "count": r['count']} for r in rows]})


@api_view("GET")
@admin_required
def country_user_count(request):
    return _location_counts('country')


@api_view("GET")
@admin_required
def country_active_user_count(request):
    return _location_counts('country', active_only=True)


@api_view("GET")
@admin_required
def state_user_count(request):
    return _location_counts('state')


@api_view("GET")
@admin_required
def state_active_user_count(request):
    return _location_counts('state', active_only=True)


@api_view("GET")
@admin_required
def most_active_time(request):
    rows = (
        _users().filter(last_seen__gte=timezone.now() - ACTIVE_WINDOW)
        .annotate(hour=ExtractHour('last_seen')).values('hour')
        .annotate(count=Count('id')).order_by('hour')
    )
    hours = {r['hour']: r['count'] for r in rows}
    most_active = max(hours, key=lambda h: (hours[h], -h)) if hours else None
    return JsonResponse({
        "mostActiveHour": most_active,
        "data": [{"hour": h, "count": hours.get(h, 0)} for h in range(24)],
    })


# ============================================================================
# BROADCASTS, REPORT TYPES & CONFIG
# ============================================================================

def _serialize_broadcast(broadcast):
    return {
        "id": broadcast.id,
        "title": broadcast.title,
        "message": broadcast.message,
        "recipientsCount": broadcast.recipients_count,
        "createdBy": serialize_user_brief(broadcast.created_by) if broadcast.created_by else None,
        "createdAt": broadcast.created_at.isoformat(),
    }


@api_view("POST")
@admin_required
def send_broadcast(request):
    data = parse_json_body(request)
    title = (data.get('title') or '').strip()
    message = (data.get('message') or '').strip()
    if not title or not message:
        raise ClientError(400, "title and message are required")

    recipients = User.objects.exclude(role=ROLE_ADMIN).filter(is_active=True, is_suspended=False)
    with transaction.atomic():
        broadcast = Broadcast.objects.create(title=title, message=message, created_by=request.user)
        sent = notify_many(recipients, 'broadcast', title, message, data={"broadcastId": broadcast.id})
        broadcast.recipients_count = len(sent)
        broadcast.save(update_fields=['recipients_count'])

    logger.info(f"send_broadcast: broadcast {broadcast.id} sent to {broadcast.recipients_count} users")
    return JsonResponse(_serialize_broadcast(broadcast), status=201)


@api_view("GET")
@admin_required
def broadcast_history(request):
    filters = filters_or_client_error(request)
    queryset = Broadcast.objects.select_related('created_by__profile_image')
    if filters.search_text:
        queryset = queryset.filter(title__icontains=filters.search_text)
    return JsonResponse(paginated(queryset, filters, _serialize_broadcast))


@api_view("GET")
@admin_required
def broadcast_detail(request, broadcast_id):
    return JsonResponse(_serialize_broadcast(get_object_or_404(Broadcast, id=broadcast_id)))


@api_view("GET", "POST")
@admin_required
def admin_report_types(request):
    if request.method == "POST":
        data = parse_json_body(request)
        name = (data.get('name') or '').strip()
        category = data.get('category')
        if not name:
            raise ClientError(400, "name is required")
        if category not in dict(REPORT_CATEGORY_CHOICES):
            raise ClientError(400, "invalid category")
        report_type = ReportType.objects.create(name=name, category=category)
        return JsonResponse({"id": report_type.id, "name": report_type.name, "category": report_type.category},
                            status=201)

    types = ReportType.objects.all()
    if request.GET.get('category'):
        types = types.filter(category=request.GET['category'])
    return JsonResponse({"reportTypes": [{"id": t.id, "name": t.name, "category": t.category} for t in types]})


@api_view("POST")
@admin_required
def update_default_cover_image(request):
    image_id = int_value(parse_json_body(request).get('imageId'), "invalid image id")
    upload = get_object_or_404(Upload, id=image_id, binary_type='image')
    dynamic_config.set_value(dynamic_config.DEFAULT_COVER_IMAGE, upload.url)
    return JsonResponse({"url": upload.url})


@api_view("GET")
@admin_required
def countries(request):
    return JsonResponse({"countries": [
        {"name": name, "code": code, "dialCode": dial_code} for name, code, dial_code in COUNTRY_DIALLING_CODES
    ]})


# ============================================================================
# INDUSTRIES
# ============================================================================

def _industry_payload(item):
    name = (item.get('name') or '').strip()
    if not name:
        raise ClientError(400, "name cannot be empty")
    if not item.get('category'):
        raise ClientError(400, "category cannot be empty")
    if not isinstance(item['category'], str) or item['category'] not in dict(INDUSTRY_CATEGORY_CHOICES):
        raise ClientError(400, "invalid category")
    return Industry(name=name, category=item['category'])


@api_view("GET", "POST")
@admin_required
def industries(request):
    if request.method == "POST":
        data = parse_json_body(request)
        items = data.get('industries')
        if not isinstance(items, list) or not items or not all(isinstance(i, dict) for i in items):
            raise ClientError(400, "industries cannot be empty")
        created = [_industry_payload(item) for item in items]
        images = upload_images_from_list(items, request.user)
        with transaction.atomic():
            for industry, image in zip(created, images):
                industry.image = image
                industry.save()
        return JsonResponse({"industries": [serialize_industry(i) for i in created]}, status=201)

    filters = filters_or_client_error(request, get_industries_filters)
    queryset = Industry.objects.filter(archived_at__isnull=True).select_related('image')
    if filters.category:
        queryset = queryset.filter(category=filters.category)
    if filters.search_text:
        queryset = queryset.filter(name__icontains=filters.search_text)
    return JsonResponse(paginated(queryset, filters, serialize_industry))


@api_view("PUT", "DELETE")
@admin_required
def industry_detail(request, industry_id):
    industry = get_object_or_404(Industry, id=industry_id, archived_at__isnull=True)

    if request.method == "DELETE":
        industry.archived_at = timezone.now()
        industry.save(update_fields=['archived_at'])
        return JsonResponse({"message": "success"})

    data = parse_json_body(request)
    if 'name' in data:
        name = (data['name'] or '').strip()
        if not name:
            raise ClientError(400, "name cannot be empty")
        industry.name = name
    if 'category' in data:
        if data['category'] not in dict(INDUSTRY_CATEGORY_CHOICES):
            raise ClientError(400, "invalid category")
        industry.category = data['category']
    if data.get('url'):
        industry.image = upload_images_from_list([{**data, 'category': industry.category}], request.user)[0]
    industry.save()
    return JsonResponse(serialize_industry(industry))


@api_view("GET")
@admin_required
def industries_count(request):
    rows = Industry.objects.filter(archived_at__isnull=True).values('category').annotate(count=Count('id'))
    counts = {value: 0 for value, _ in INDUSTRY_CATEGORY_CHOICES}
    counts.update({r['category']: r['count'] for r in rows})
    return JsonResponse({"total": sum(counts.values()), "categories": counts})


@api_view("GET")
@admin_required
def industry_categories(request):
    return JsonResponse({"categories": [
        {"value": value, "label": label} for value, label in INDUSTRY_CATEGORY_CHOICES
    ]})


# ============================================================================
# GROUPS
# ============================================================================

def _admin_groups(request):
    filters = filters_or_client_error(request)
    queryset = Group.objects.select_related('image', 'industry', 'created_by__profile_image').annotate(
        members_count=Count('memberships', filter=Q(memberships__status=MEMBER_JOINED))
    )
    status = request.GET.get('status')
    if status == 'suspended':
        queryset = queryset.filter(is_suspended=True)
    elif status == 'deleted':
        queryset = queryset.filter(is_deleted=True)
    elif status == 'active':
        queryset = queryset.filter(is_suspended=False, is_deleted=False)
    if filters.industries:
        queryset = queryset.filter(industry_id__in=filters.industries)
    if filters.search_text:
        queryset = queryset.filter(name__icontains=filters.search_text)
    return filters, queryset.order_by('-created_at')


def _serialize_admin_group(group):
    data = serialize_group(group)
    data["isSuspended"] = group.is_suspended
    data["isDeleted"] = group.is_deleted
    data["reportsCount"] = Report.objects.filter(target_type='group', target_id=group.id).count()
    return data


@api_view("GET")
@admin_required
def admin_groups(request):
    filters, queryset = _admin_groups(request)
    return JsonResponse(paginated(queryset, filters, _serialize_admin_group))


def _toggle_group_flag(request, flag):
    ids = int_list(parse_json_body(request).get('groupIds'))
    if not ids:
        raise ClientError(400, "groupIds cannot be empty")
    groups = list(Group.objects.filter(id__in=ids))
    for group in groups:
        setattr(group, flag, not getattr(group, flag))
        group.save(update_fields=[flag, 'updated_at'])
        if getattr(group, flag) and group.created_by_id:
            notify(
                group.created_by, f'group_{flag[3:]}', "Group update",
                f"{group.name} was {flag[3:]} by an admin", data={"groupId": group.id}, push=False,
            )
    key = GROUP_FLAG_KEYS[flag]
    return JsonResponse({"groups": [{"id": g.id, key: getattr(g, flag)} for g in groups]})


@api_view("POST")
@admin_required
def toggle_suspend_groups(request):
    return _toggle_group_flag(request, 'is_suspended')


@api_view("POST")
@admin_required
def toggle_delete_groups(request):
    return _toggle_group_flag(request, 'is_deleted')


@api_view("GET")
@admin_required
def export_groups(request):
    _, queryset = _admin_groups(request)
    rows = (
        [
            g.id, g.name, 'private' if g.is_private else 'public', g.industry.name if g.industry else '',
            g.members_count, g.created_by.name if g.created_by else '',
            'yes' if g.is_suspended else 'no', 'yes' if g.is_deleted else 'no', g.created_at.date().isoformat(),
        ]
        for g in queryset
    )
    header = ['ID', 'Name', 'Privacy', 'Industry', 'Members', 'Created by', 'Suspended', 'Deleted', 'Created']
    return _csv_response('groups.csv', header, rows)


@api_view("GET")
@admin_required
def groups_count(request):
    groups = Group.objects.all()
    return JsonResponse({
        "total": groups.count(),
        "active": groups.filter(is_suspended=False, is_deleted=False).count(),
        "suspended": groups.filter(is_suspended=True).count(),
        "deleted": groups.filter(is_deleted=True).count(),
    })


@api_view("GET")
@admin_required
def reported_groups(request):
    filters = filters_or_client_error(request)
    reported = Report.objects.filter(target_type='group').values('target_id')
    queryset = Group.objects.filter(id__in=reported).select_related('image', 'industry', 'created_by__profile_image')
    return JsonResponse(paginated(queryset, filters, _serialize_admin_group))


def _group(group_id):
    return get_object_or_404(Group.objects.select_related('image', 'industry', 'created_by__profile_image'),
                             id=group_id)


@api_view("GET")
@admin_required
def admin_group_detail(request, group_id):
    return JsonResponse(_serialize_admin_group(_group(group_id)))


@api_view("GET")
@admin_required
def admin_group_media(request, group_id):
    filters = filters_or_client_error(request)
    queryset = Upload.objects.filter(id__in=Post.media.through.objects.filter(
        post__group_id=group_id
    ).values('upload_id')).order_by('-created_at')
    return JsonResponse(paginated(queryset, filters, serialize_upload))


@api_view("GET")
@admin_required
def admin_group_posts(request, group_id):
    filters = filters_or_client_error(request)
    queryset = Post.objects.filter(group=_group(group_id)).select_related('user__profile_image')
    return JsonResponse(paginated(queryset, filters, lambda p: serialize_post(p, request.user)))


@api_view("GET")
@admin_required
def admin_reported_posts(request, group_id):
    filters = filters_or_client_error(request)
    reported = Report.objects.filter(target_type='post').values('target_id')
    queryset = Post.objects.filter(group=_group(group_id), id__in=reported).select_related('user__profile_image')
    return JsonResponse(paginated(queryset, filters, lambda p: serialize_post(p, request.user)))


@api_view("GET")
@admin_required
def admin_reported_comments(request, group_id):
    filters = filters_or_client_error(request)
    reported = Report.objects.filter(target_type='comment').values('target_id')
    queryset = Comment.objects.filter(post__group=_group(group_id), id__in=reported).select_related(
        'user__profile_image'
    )
    return JsonResponse(paginated(queryset, filters, lambda c: serialize_comment(c, request.user)))


@api_view("GET")
@admin_required
def admin_group_members(request, group_id):
    filters = filters_or_client_error(request)
    queryset = GroupMember.objects.filter(group=_group(group_id), status=MEMBER_JOINED).select_related(
        'user__profile_image'
    )
    if filters.search_text:
        queryset = queryset.filter(user__name__icontains=filters.search_text)
    return JsonResponse(paginated(queryset, filters, serialize_group_member))


@api_view("GET")
@admin_required
def group_reporters(request, group_id):
    filters = filters_or_client_error(request)
    group = _group(group_id)
    queryset = Report.objects.filter(target_type='group', target_id=group.id).select_related(
        'reporter__profile_image', 'report_type'
    ).order_by('-created_at')
    return JsonResponse(paginated(queryset, filters, lambda r: {
        "id": r.id,
        "reporter": serialize_user_brief(r.reporter),
        "reportType": r.report_type.name if r.report_type else None,
        "reason": r.reason,
        "createdAt": r.created_at.isoformat(),
    }))


def _admin_post(group_id, post_id):
    return get_object_or_404(Post, id=post_id, group_id=group_id)


@api_view("GET")
@admin_required
def admin_post_likes(request, group_id, post_id):
    filters = filters_or_client_error(request)
    post = _admin_post(group_id, post_id)
    queryset = User.objects.filter(post_likes__post=post).select_related('profile_image').order_by('name', 'id')
    return JsonResponse(paginated(queryset, filters, serialize_user_brief))


@api_view("GET")
@admin_required
def admin_post_comments(request, group_id, post_id):
    filters = filters_or_client_error(request)
    post = _admin_post(group_id, post_id)
    queryset = post.comments.select_related('user__profile_image')
    return JsonResponse(paginated(queryset, filters, lambda c: serialize_comment(c, request.user)))


@api_view("DELETE")
@admin_required
def admin_delete_post(request, group_id, post_id):
    _admin_post(group_id, post_id).delete()
    logger.info(f"admin_delete_post: post {post_id} deleted by admin {request.user.id}")
    return JsonResponse({"message": "success"})


@api_view("DELETE")
@admin_required
def admin_delete_comment(request, group_id, post_id, comment_id):
    comment = get_object_or_404(Comment, id=comment_id, post=_admin_post(group_id, post_id))
    comment.delete()
    return JsonResponse({"message": "success"})


# ============================================================================
# SHOWCASE
# ============================================================================

def _admin_companies(request):
    filters = filters_or_client_error(request)
    queryset = CompanyProfile.objects.select_related('owner__profile_image', 'industry', 'logo')
    status = request.GET.get('status')
    if status:
        queryset = queryset.filter(status=status)
    if request.GET.get('isArchived'):
        queryset = queryset.filter(is_archived=request.GET['isArchived'] == 'true')
    if request.GET.get('reported') == 'true':
        queryset = queryset.filter(id__in=Report.objects.filter(target_type='showcase').values('target_id'))
    if filters.industries:
        queryset = queryset.filter(industry_id__in=filters.industries)
    if filters.countries:
        queryset = queryset.filter(country__in=filters.countries)
    if filters.search_text:
        queryset = queryset.filter(name__icontains=filters.search_text)
    return filters, queryset


@api_view("POST")
@admin_required
def update_company_status(request):
    data = parse_json_body(request)
    company = get_object_or_404(CompanyProfile, id=int_value(data.get('companyId'), "invalid company id"))
    status = data.get('status')
    if status not in ('approved', 'rejected', 'pending'):
        return respond_client_error(request, f"invalid status {status!r}", 400, "invalid status")

    company.status = status
    company.save(update_fields=['status', 'updated_at'])
    if status != 'pending':
        notify(
            company.owner, f'company_{status}', "Showcase update",
            f"{company.name} was {status}", data={"companyId": company.id},
        )
    return JsonResponse(serialize_company(company))


@api_view("GET")
@admin_required
def admin_companies(request):
    filters, queryset = _admin_companies(request)
    return JsonResponse(paginated(queryset, filters, serialize_company))


@api_view("GET")
@admin_required
def companies_count(request):
    rows = CompanyProfile.objects.values('status').annotate(count=Count('id'))
    counts = {'pending': 0, 'approved': 0, 'rejected': 0}
    counts.update({r['status']: r['count'] for r in rows})
    counts['archived'] = CompanyProfile.objects.filter(is_archived=True).count()
    counts['total'] = sum(counts[s] for s in ('pending', 'approved', 'rejected'))
    return JsonResponse(counts)


@api_view("GET")
@admin_required
def export_companies(request):
    _, queryset = _admin_companies(request)
    rows = (
        [
            c.id, c.name, c.owner.name, c.owner.email, c.industry.name if c.industry else '', c.country,
            c.funding_goal if c.funding_goal is not None else '', c.status,
            'yes' if c.is_archived else 'no', c.views, c.created_at.date().isoformat(),
        ]
        for c in queryset
    )
    header = ['ID', 'Name', 'Owner', 'Owner email', 'Industry', 'Country', 'Funding goal', 'Status',
              'Archived', 'Views', 'Created']
    return _csv_response('companies.csv', header, rows)


@api_view("GET")
@admin_required
def admin_company_detail(request, company_id):
    company = get_object_or_404(CompanyProfile, id=company_id)
    data = serialize_company(company)
    data["reportsCount"] = Report.objects.filter(target_type='showcase', target_id=company.id).count()
    return JsonResponse(data)


@api_view("PUT")
@admin_required
def admin_archive_company(request, company_id):
    company = get_object_or_404(CompanyProfile, id=company_id)
    company.is_archived = not company.is_archived
    company.archived_by_admin = company.is_archived
    company.save(update_fields=['is_archived', 'archived_by_admin', 'updated_at'])
    return JsonResponse({"isArchived": company.is_archived})
