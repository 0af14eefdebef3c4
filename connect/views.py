import logging
import secrets
import time
from datetime import date, timedelta

import pytz
from django.conf import settings
from django.contrib.auth import authenticate
from django.db import IntegrityError, transaction
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone

from . import dynamic_config, ratelimit
from .accounts import delete_account, end_all_sessions, end_session, start_session
from .decorators import api_view, auth_required, local_env_only
from .emails import send_otp_email, send_verification_email
from .errors import (
    ClientError, int_list, int_or_none, parse_json_body, respond_client_error, respond_server_error,
)
from .filters import filters_or_client_error, paginated
from .middleware import touch_last_seen
from .models import (
    Block, EmailVerificationLink, FAQ, Feedback, Industry, Notification,
    OneTimePassword, Report, ReportType, Upload, User, UserSettings,
    GENDER_CHOICES, INDUSTRY_CATEGORY_CONNECTIONS_AND_GROUPS, REPORT_CATEGORY_CHOICES,
    ROLE_ADMIN, generate_token,
)
from .notifications import send_push
from .serializers import (
    serialize_industry, serialize_notification, serialize_session, serialize_upload,
    serialize_user_info, serialize_user_profile,
)
from .storage import BINARY_TYPE_FOLDERS, store_upload


# Logger
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
GENDERS = {value for value, _ in GENDER_CHOICES}


def health_check(request):
    return JsonResponse({"status": "ok"})


def _elapsed_ms(start):
    return int((time.monotonic() - start) * 1000)


def _session_payload(session, status=200):
    return JsonResponse({
        "token": session.token,
        "session": serialize_session(session),
        "user": serialize_user_info(session.user),
    }, status=status)


def _validate_password(password):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ClientError(400, f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")


def _normalize_email(email):
    email = (email or '').strip().lower()
    if not email or '@' not in email or '.' not in email.split('@')[-1]:
        raise ClientError(400, "Please enter a valid email address.")
    return email


def create_report(request, target_type, target_id, data):
    report_type = None
    report_type_id = int_or_none(data.get('reportTypeId'), "invalid report type")
    if report_type_id is not None:
        report_type = get_object_or_404(ReportType, id=report_type_id)
    report = Report.objects.create(
        reporter=request.user,
        report_type=report_type,
        reason=(data.get('reason') or '').strip(),
        target_type=target_type,
        target_id=target_id,
    )
    logger.info(f"report: {target_type} {target_id} by user {request.user.id}")
    return JsonResponse({"message": "success", "id": report.id}, status=201)


# ============================================================================
# ACCOUNTS
# ============================================================================

@api_view("POST")
def register(request):
    data = parse_json_body(request)
    name = (data.get('name') or '').strip()
    email = _normalize_email(data.get('email'))
    password = data.get('password') or ''
    phone = (data.get('phone') or '').strip() or None

    if not name:
        raise ClientError(400, "Name is required.")
    _validate_password(password)

    if User.objects.filter(email__iexact=email).exists():
        return respond_client_error(request, "email taken", 400, "Email already registered.")
    if phone and User.objects.filter(phone=phone).exists():
        return respond_client_error(request, "phone taken", 400, "Phone number already registered.")

    try:
        with transaction.atomic():
            user = User.objects.create_user(username=email, email=email, password=password, name=name, phone=phone)
            UserSettings.objects.create(user=user)
            session = start_session(user, data.get('platform'), data.get('deviceId'))
    except IntegrityError as e:
        logger.warning(f"IntegrityError during registration: {str(e)}")
        return respond_client_error(request, e, 400, "Email or phone already registered.")

    logger.info(f"Registration success for user {user.id}")
    return _session_payload(session, status=201)


def _login(request, admin_only=False):
    data = parse_json_body(request)
    email = (data.get('email') or '').strip().lower()
    user = authenticate(request, username=email, password=data.get('password') or '')
    if user is None:
        return respond_client_error(request, "invalid credentials", 401, "Invalid email or password.")
    if user.is_suspended:
        return respond_client_error(request, "user suspended", 403, "Your account has been suspended")
    if admin_only and not user.is_admin:
        return respond_client_error(request, "admin role required", 403, "Forbidden")

    session = start_session(user, data.get('platform'), data.get('deviceId'))
    touch_last_seen(user, force=True)
    return _session_payload(session)


@api_view("POST")
def login_view(request):
    return _login(request)


@api_view("POST")
def admin_login(request):
    return _login(request, admin_only=True)


@api_view("POST")
def send_otp(request):
    data = parse_json_body(request)
    email = _normalize_email(data.get('email'))

    email_limit = dynamic_config.get_int(dynamic_config.EMAIL_LIMIT) or 120
    if ratelimit.hit(f"otp_limit:{email}") > email_limit:
        return respond_client_error(request, "too many attempts", 429, "too many attempts")

    # Unknown addresses get the same answer so emails cannot be probed.
    if not User.objects.filter(email__iexact=email).exists():
        logger.info("send_otp: unknown email")
        return JsonResponse({"message": "success"})

    OneTimePassword.objects.filter(email=email, used_at__isnull=True, is_expired=False).update(is_expired=True)
    code = f"{secrets.randbelow(10 ** 6):06d}"
    OneTimePassword.objects.create(
        email=email,
        code=code,
        reason='reset_password',
        expires_at=timezone.now() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
    )
    send_otp_email(email, code)
    return JsonResponse({"message": "success"})


@api_view("POST")
def verify_otp(request):
    data = parse_json_body(request)
    email = (data.get('email') or '').strip().lower()
    otp = OneTimePassword.objects.filter(
        email=email, code=str(data.get('otp') or ''), reason='reset_password', verified_at__isnull=True
    ).first()
    if otp is None:
        return respond_client_error(request, "invalid otp", 400, "invalid otp")
    if otp.is_expired or otp.expires_at <= timezone.now():
        return respond_client_error(request, "otp expired", 400, "otp expired")

    otp.verified_at = timezone.now()
    otp.reset_token = generate_token()
    otp.save(update_fields=['verified_at', 'reset_token'])
    return JsonResponse({"token": otp.reset_token})


@api_view("POST")
def change_password_using_otp(request):
    data = parse_json_body(request)
    token = data.get('token') or ''
    otp = OneTimePassword.objects.filter(
        reset_token=token, verified_at__isnull=False, used_at__isnull=True
    ).first() if token else None
    if otp is None:
        return respond_client_error(request, "invalid token", 400, "invalid token")
    if otp.verified_at + timedelta(minutes=settings.OTP_EXPIRY_MINUTES) <= timezone.now():
        return respond_client_error(request, "token expired", 400, "token expired")

    password = data.get('password') or ''
    _validate_password(password)
    user = get_object_or_404(User, email__iexact=otp.email)
    user.set_password(password)
    user.save(update_fields=['password'])
    otp.used_at = timezone.now()
    otp.save(update_fields=['used_at'])
    end_all_sessions(user)
    return JsonResponse({"message": "success"})


@api_view("POST")
@auth_required
def change_password(request):
    data = parse_json_body(request)
    if not request.user.check_password(data.get('oldPassword') or ''):
        return respond_client_error(request, "wrong password", 400, "Old password is incorrect.")
    _validate_password(data.get('newPassword'))
    request.user.set_password(data['newPassword'])
    request.user.save(update_fields=['password'])
    return JsonResponse({"message": "success"})


@api_view("GET")
@local_env_only
def token_for_user(request, user_id):
    user = get_object_or_404(User, id=user_id)
    session = start_session(user, 'web')
    return JsonResponse({"token": session.token, "userId": user.id})


@api_view("POST")
@local_env_only
def create_test_admin(request):
    data = parse_json_body(request)
    email = _normalize_email(data.get('email'))
    password = data.get('password') or ''
    _validate_password(password)
    if User.objects.filter(email__iexact=email).exists():
        return respond_client_error(request, "email taken", 400, "Email already registered.")
    user = User.objects.create_user(
        username=email, email=email, password=password,
        name=data.get('name') or 'Admin', role=ROLE_ADMIN, is_staff=True,
    )
    UserSettings.objects.create(user=user)
    return JsonResponse({"id": user.id, "email": user.email}, status=201)


# ============================================================================
# USER INFO & VERIFICATION
# ============================================================================

@api_view("GET")
@auth_required
def user_info(request):
    start = time.monotonic()
    user = User.objects.select_related('profile_image', 'cover_image').get(id=request.user.id)
    data = serialize_user_info(user)
    logger.info(f"userInfo: db end {_elapsed_ms(start)}")

    data["verificationFlows"] = {
        "phoneVerificationFlows": {
            "isPhoneVerificationFlowNeeded": dynamic_config.get_bool(dynamic_config.PHONE_VERIFICATION_FLOW),
            "isPhoneVerificationCompulsory": dynamic_config.get_bool(dynamic_config.PHONE_VERIFICATION_COMPULSORY),
        },
        "emailVerificationFlows": {
            "isEmailVerificationFlowNeeded": dynamic_config.get_bool(dynamic_config.EMAIL_VERIFICATION_FLOW),
            "isEmailVerificationCompulsory": dynamic_config.get_bool(dynamic_config.EMAIL_VERIFICATION_COMPULSORY),
        },
    }
    data["isAllDataAvailable"] = user.has_all_data()
    data["isProfileCompleted"] = user.is_profile_completed()
    return JsonResponse(data)


@api_view("POST")
@auth_required
def send_verification_email_view(request):
    user = request.user
    if user.is_email_verified:
        return respond_client_error(
            request, "email already verified", 400, "You are already Verified, Please reopen the app"
        )

    email_limit = dynamic_config.get_int(dynamic_config.EMAIL_LIMIT) or 120
    if ratelimit.hit(ratelimit.EMAIL_LIMIT_CACHE_KEY) > email_limit:
        return respond_client_error(request, "too many attempts", 429, "too many attempts")

    EmailVerificationLink.objects.filter(user=user, email=user.email, is_expired=False).update(is_expired=True)
    link = EmailVerificationLink.objects.create(
        user=user,
        email=user.email,
        expires_at=timezone.now() + timedelta(hours=settings.EMAIL_LINK_EXPIRY_HOURS),
    )
    try:
        send_verification_email(user, link.token)
    except Exception as e:
        return respond_server_error(request, e, "error in sending verification email")
    return JsonResponse({"message": "success"})


@api_view("POST")
def verify_email_link(request):
    data = parse_json_body(request)
    link = EmailVerificationLink.objects.select_related('user').filter(token=data.get('token') or '').first()
    if link is None:
        return respond_client_error(request, "invalid token", 400, "invalid token")
    if not link.is_valid or link.email != link.user.email:
        return respond_client_error(request, "token expired", 400, "token expired")

    now = timezone.now()
    link.verified_at = now
    link.save(update_fields=['verified_at'])
    user = link.user
    user.email_verified_at = now
    user.save(update_fields=['email_verified_at'])
    send_push(user, {"type": "email_verified", "userId": user.id}, silent=True)
    return JsonResponse({"message": "success"})


@api_view("PUT")
@auth_required
def update_email(request):
    data = parse_json_body(request)
    email = _normalize_email(data.get('email'))
    user = request.user
    if email == user.email:
        return JsonResponse({"message": "success"})
    if User.objects.filter(email__iexact=email).exclude(id=user.id).exists():
        return respond_client_error(request, "email taken", 400, "Email already registered.")

    user.email = email
    user.username = email
    user.email_verified_at = None
    user.save(update_fields=['email', 'username', 'email_verified_at'])
    return JsonResponse({"message": "success"})


@api_view("PUT")
@auth_required
def update_phone(request):
    data = parse_json_body(request)
    phone = (data.get('phone') or '').strip()
    if not phone:
        raise ClientError(400, "phone is required")
    user = request.user
    if User.objects.filter(phone=phone).exclude(id=user.id).exists():
        return respond_client_error(request, "phone taken", 400, "Phone number already registered.")

    if phone != user.phone:
        user.phone = phone
        user.phone_verified_at = None
    user.is_phone_skipped = False
    user.save(update_fields=['phone', 'phone_verified_at', 'is_phone_skipped'])
    return JsonResponse({"message": "success"})


@api_view("PUT")
@auth_required
def skip_phone(request):
    request.user.is_phone_skipped = True
    request.user.save(update_fields=['is_phone_skipped'])
    return JsonResponse({"message": "success"})


@api_view("POST")
@auth_required
def update_location(request):
    data = parse_json_body(request)
    request.user.country = (data.get('country') or '').strip()
    request.user.state = (data.get('state') or '').strip()
    request.user.save(update_fields=['country', 'state'])
    return JsonResponse({"message": "success"})


# ============================================================================
# PRESENCE & SETTINGS
# ============================================================================

@api_view("POST")
@auth_required
def ping(request):
    touch_last_seen(request.user, force=True)
    return JsonResponse({"message": "pong"})


@api_view("POST")
@auth_required
def online_status(request):
    start = time.monotonic()
    data = parse_json_body(request)
    user_ids = int_list(data.get('userIds'), "unable to parse")

    users = User.objects.filter(id__in=user_ids).select_related('preferences')
    statuses = []
    for user in users:
        visible = user.shows_presence
        statuses.append({
            "userId": user.id,
            "isOnline": visible and user.is_online,
            "lastSeen": user.last_seen.isoformat() if visible and user.last_seen else None,
        })

    logger.info(f"getOnlineStatusOfUsers: {len(statuses)} statuses in {_elapsed_ms(start)}")
    return JsonResponse({"statuses": statuses})


SETTINGS_FIELDS = {
    'pushNotifications': 'push_notifications',
    'emailNotifications': 'email_notifications',
    'showOnlineStatus': 'show_online_status',
    'messagePreviews': 'message_previews',
}


@api_view("GET", "POST")
@auth_required
def user_settings(request):
    prefs, _ = UserSettings.objects.get_or_create(user=request.user)
    if request.method == "POST":
        data = parse_json_body(request)
        for key, field in SETTINGS_FIELDS.items():
            if key in data:
                setattr(prefs, field, bool(data[key]))
        prefs.save()
    return JsonResponse({key: getattr(prefs, field) for key, field in SETTINGS_FIELDS.items()})


# ============================================================================
# PROFILE
# ============================================================================

def _parse_date(value):
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ClientError(400, "invalid date of birth", f"expected YYYY-MM-DD, got {value!r}")


def _upload_for(user, upload_id, binary_type='image'):
    upload_id = int_or_none(upload_id, "invalid upload id")
    if upload_id is None:
        return None
    return get_object_or_404(Upload, id=upload_id, uploaded_by=user, binary_type=binary_type)


@api_view("GET", "PUT")
@auth_required
def my_profile(request):
    user = request.user
    if request.method == "PUT":
        data = parse_json_body(request)
        for key, field in (('name', 'name'), ('about', 'about'), ('headline', 'headline'),
                           ('lookingFor', 'looking_for'), ('currentPosition', 'current_position'),
                           ('country', 'country'), ('state', 'state')):
            if key in data:
                setattr(user, field, (data[key] or '').strip())
        if 'gender' in data:
            if data['gender'] not in GENDERS:
                raise ClientError(400, "invalid gender")
            user.gender = data['gender']
        if 'dateOfBirth' in data:
            user.date_of_birth = _parse_date(data['dateOfBirth']) if data['dateOfBirth'] else None
        if 'timezone' in data:
            try:
                pytz.timezone(data['timezone'])
            except pytz.UnknownTimeZoneError:
                raise ClientError(400, "invalid timezone")
            user.timezone = data['timezone']
        user.save()
        if 'industryIds' in data:
            user.industries.set(Industry.objects.filter(id__in=int_list(data['industryIds']), archived_at__isnull=True))

    return JsonResponse(serialize_user_profile(user, viewer=user))


@api_view("GET")
@auth_required
def user_profile(request, user_id):
    other = get_object_or_404(User.objects.select_related('profile_image', 'cover_image'), id=user_id)
    if Block.between(request.user, other):
        return respond_client_error(request, "blocked", 403, "You cannot view this profile")
    data = serialize_user_profile(other, viewer=request.user)
    data.pop('phone')
    return JsonResponse(data)


@api_view("PUT")
@auth_required
def update_profile_image(request):
    data = parse_json_body(request)
    user = request.user
    if 'imageId' in data:
        user.profile_image = _upload_for(user, data['imageId'])
    if 'coverImageId' in data:
        user.cover_image = _upload_for(user, data['coverImageId'])
    user.save(update_fields=['profile_image', 'cover_image'])
    return JsonResponse(serialize_user_profile(user, viewer=user))


@api_view("DELETE")
@auth_required
def delete_user(request):
    start = time.monotonic()
    delete_account(request.user)
    logger.info(f"deleteUser: request time after success fully deleting: {_elapsed_ms(start)}")
    return JsonResponse({"message": "success"})


# ============================================================================
# INDUSTRIES, REPORT TYPES & SUPPORT
# ============================================================================

@api_view("GET", "POST")
@auth_required
def user_industries(request):
    if request.method == "POST":
        data = parse_json_body(request)
        ids = int_list(data.get('industryIds'))
        request.user.industries.set(Industry.objects.filter(id__in=ids, archived_at__isnull=True))
        return JsonResponse({"industries": [serialize_industry(i) for i in request.user.industries.all()]})

    start = time.monotonic()
    category = request.GET.get('category') or INDUSTRY_CATEGORY_CONNECTIONS_AND_GROUPS
    industries = Industry.objects.filter(category=category, archived_at__isnull=True).select_related('image')
    selected = set(request.user.industries.values_list('id', flat=True))
    payload = [dict(serialize_industry(i), isSelected=i.id in selected) for i in industries]
    logger.info(f"getAllIndustriesForUser: {_elapsed_ms(start)}")
    return JsonResponse({"industries": payload})


@api_view("GET")
@auth_required
def report_types(request):
    types = ReportType.objects.all()
    category = request.GET.get('category')
    if category:
        if category not in dict(REPORT_CATEGORY_CHOICES):
            raise ClientError(400, "invalid category")
        types = types.filter(category=category)
    return JsonResponse({"reportTypes": [
        {"id": t.id, "name": t.name, "category": t.category} for t in types
    ]})


@api_view("POST")
@auth_required
def report_user(request, user_id):
    target = get_object_or_404(User, id=user_id)
    if target.id == request.user.id:
        raise ClientError(400, "You cannot report yourself")
    return create_report(request, 'user', target.id, parse_json_body(request))


@api_view("GET")
def faqs(request):
    return JsonResponse({"faqs": [
        {"id": f.id, "question": f.question, "answer": f.answer}
        for f in FAQ.objects.filter(is_active=True)
    ]})


@api_view("POST")
def feedback(request):
    data = parse_json_body(request)
    message = (data.get('message') or '').strip()
    if not message:
        raise ClientError(400, "message is required")
    user = request.user if request.user.is_authenticated else None
    Feedback.objects.create(
        user=user,
        email=(data.get('email') or (user.email if user else '')).strip(),
        message=message,
    )
    return JsonResponse({"message": "success"}, status=201)


# ============================================================================
# SESSIONS
# ============================================================================

@api_view("GET", "POST")
@auth_required
def user_session(request):
    if request.method == "POST":
        start = time.monotonic()
        data = parse_json_body(request)
        session = start_session(request.user, data.get('platform'), data.get('deviceId'))
        logger.info(f"createUserSession: {_elapsed_ms(start)}")
        return JsonResponse(serialize_session(session))

    session = request.app_session
    if session is None or session.ended_at is not None:
        return respond_client_error(request, "session not found", 400, "session not found")
    session.last_active_at = timezone.now()
    session.save(update_fields=['last_active_at'])
    return JsonResponse(serialize_session(session))


@api_view("PUT")
@auth_required
def end_user_session(request):
    session = request.app_session
    logger.info(f"endUserSession: end session for userId: {request.user.id}, deviceID: {request.headers.get('deviceID', '')}")
    end_session(session)
    return JsonResponse({"message": "success"})


@api_view("PUT")
@auth_required
def update_fcm_token(request):
    data = parse_json_body(request)
    request.app_session.fcm_token = (data.get('fcmToken') or '').strip()
    request.app_session.save(update_fields=['fcm_token'])
    return JsonResponse({"message": "success"})


@api_view("PUT")
@auth_required
def update_voip_token(request):
    data = parse_json_body(request)
    request.app_session.voip_token = (data.get('voipToken') or '').strip()
    request.app_session.save(update_fields=['voip_token'])
    return JsonResponse({"message": "success"})


# ============================================================================
# UPLOADS
# ============================================================================

@api_view("POST")
@auth_required
def upload(request):
    start = time.monotonic()
    try:
        content_length = int(request.META.get('CONTENT_LENGTH') or 0)
    except ValueError:
        return respond_client_error(request, "bad content length", 400, "unable to parse file", "error parsing file")
    if content_length > settings.MAX_UPLOAD_BYTES:
        return respond_client_error(request, "request too large", 400, "unable to parse file", "error parsing file")

    file = request.FILES.get('file')
    if file is None:
        return respond_client_error(request, "no file", 400, "unable to read file")
    if file.size > settings.MAX_UPLOAD_BYTES:
        return respond_client_error(request, "file too large", 400, "unable to parse file", "error parsing file")

    binary_type = request.POST.get('upload_binary_type', '')
    upload_type = request.POST.get('type', '')
    if binary_type not in BINARY_TYPE_FOLDERS:
        return respond_client_error(request, "file type not valid", 400, "invalid file type")

    logger.info(f"current branch : {settings.BRANCH}")
    try:
        stored = store_upload(file, file.name, binary_type, upload_type, request.user)
    except Exception as e:
        return respond_server_error(request, e, "unable to upload file")

    logger.info(f"upload: request time upload data successfully: {_elapsed_ms(start)}")
    return JsonResponse({
        "id": stored.id,
        "imageUID": str(stored.uid),
        "url": stored.url,
        "thumbnailUrl": stored.thumbnail_url,
    })


@api_view("GET")
def attachment_detail(request, attachment_id):
    return JsonResponse(serialize_upload(get_object_or_404(Upload, uid=attachment_id)))


# ============================================================================
# NOTIFICATIONS
# ============================================================================

@api_view("GET")
@auth_required
def notifications_list(request):
    filters = filters_or_client_error(request)
    queryset = Notification.objects.filter(user=request.user).select_related('actor__profile_image')
    return JsonResponse(paginated(queryset, filters, serialize_notification))


@api_view("PUT")
@auth_required
def read_notifications(request):
    data = parse_json_body(request)
    queryset = Notification.objects.filter(user=request.user, is_read=False)
    if not data.get('all'):
        queryset = queryset.filter(id__in=int_list(data.get('notificationIds')))
    updated = queryset.update(is_read=True)
    return JsonResponse({"message": "success", "updated": updated})


@api_view("GET")
@auth_required
def notifications_count(request):
    return JsonResponse({
        "unreadCount": Notification.objects.filter(user=request.user, is_read=False).count(),
    })
