"""
================================================================================
CONNECTUP - DATABASE MODELS
================================================================================

@file        models.py
@description Django ORM models defining the ConnectUp database schema

MODULE PURPOSE
================================================================================
This module defines all database models for the ConnectUp platform:
- User model (extended from AbstractUser) with profile and presence fields
- Sessions, email verification links and one-time passwords
- Uploads and industries
- Social relationships (Connection, Block)
- Messaging (ChatGroup, ChatGroupMember, ChatMessage)
- Community groups (Group, GroupMember, Post, Comment and reactions)
- Showcase company profiles (likes, bookmarks, Q&A, investments)
- Notifications, broadcasts, reports and runtime configuration

MODEL RELATIONSHIPS
================================================================================
User (1) ──────> (N) UserSession
User (1) ──────> (N) Notification
User (N) <─────> (N) Industry
User (N) <─────> (N) User (Connection, Block)
User (N) <─────> (N) ChatGroup (via ChatGroupMember)
User (N) <─────> (N) Group (via GroupMember)

Group (1) ─────> (N) Post ─────> (N) Comment ─────> (N) Comment (replies)
CompanyProfile (1) ──> (N) CompanyQuestion ──> (N) QuestionReply
CompanyProfile (1) ──> (N) Investment

TIMEZONE HANDLING
================================================================================
All timestamp fields are timezone-aware. Users store a pytz timezone name
which TimezoneMiddleware activates per request.

================================================================================
"""

import secrets
import uuid
from datetime import date, timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q
from django.utils import timezone as dj_timezone


def generate_token():
    return secrets.token_hex(32)


# ============================================================================
# CONSTANTS & CHOICES
# ============================================================================

GENDER_NONE = 'none'

GENDER_CHOICES = [
    ('male', 'Male'),
    ('female', 'Female'),
    ('other', 'Other'),
    (GENDER_NONE, 'Not specified'),
]

ROLE_USER = 'user'
ROLE_ADMIN = 'admin'

ROLE_CHOICES = [
    (ROLE_USER, 'User'),
    (ROLE_ADMIN, 'Admin'),
]

BINARY_TYPE_CHOICES = [
    ('image', 'Image'),
    ('video', 'Video'),
    ('audio', 'Audio'),
    ('document', 'Document'),
]

INDUSTRY_CATEGORY_CONNECTIONS_AND_GROUPS = 'connections_and_groups'

INDUSTRY_CATEGORY_CHOICES = [
    (INDUSTRY_CATEGORY_CONNECTIONS_AND_GROUPS, 'Connections and groups'),
    ('showcase', 'Showcase'),
    ('jobs', 'Jobs'),
]

OTP_REASON_CHOICES = [
    ('reset_password', 'Reset password'),
    ('verify_email', 'Verify email'),
]

REPORT_CATEGORY_CHOICES = [
    ('user', 'User'),
    ('group', 'Group'),
    ('post', 'Post'),
    ('comment', 'Comment'),
    ('showcase', 'Showcase profile'),
]


# ============================================================================
# SECTION 1: USER & AUTHENTICATION MODELS
# ============================================================================

class User(AbstractUser):
    """
    Extended User model with professional profile features.

    The username mirrors the (lower-cased) email address; clients only ever
    see ``email`` and ``name``.

    Properties:
        is_admin: role is admin
        is_online: seen within ONLINE_WINDOW_MINUTES
        is_email_verified: email_verified_at is set
    """

    # --- Profile Information ---
    name = models.CharField(max_length=150, blank=True, help_text="Display name")
    phone = models.CharField(
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        help_text="Phone number in E.164 format"
    )
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default=GENDER_NONE)
    date_of_birth = models.DateField(null=True, blank=True)
    profile_image = models.ForeignKey(
        'Upload',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Profile avatar upload"
    )
    cover_image = models.ForeignKey(
        'Upload',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Profile cover upload"
    )
    about = models.TextField(null=True, blank=True)
    headline = models.CharField(max_length=255, null=True, blank=True)
    looking_for = models.CharField(max_length=100, blank=True, default='')
    current_position = models.CharField(max_length=255, null=True, blank=True)
    industries = models.ManyToManyField('Industry', blank=True, related_name='users')

    # --- Location ---
    country = models.CharField(max_length=100, blank=True, default='')
    state = models.CharField(max_length=100, blank=True, default='')
    timezone = models.CharField(
        max_length=100,
        default='UTC',
        help_text="pytz timezone name used for display"
    )

    # --- Access ---
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_USER)
    is_suspended = models.BooleanField(default=False)
    suspended_at = models.DateTimeField(null=True, blank=True)

    # --- Verification ---
    email_verified_at = models.DateTimeField(null=True, blank=True)
    phone_verified_at = models.DateTimeField(null=True, blank=True)
    is_phone_skipped = models.BooleanField(default=False)

    # --- Presence ---
    last_seen = models.DateTimeField(
        null=True,
        blank=True,
        default=dj_timezone.now,
        help_text="Last activity timestamp for online status"
    )

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @property
    def is_email_verified(self):
        return self.email_verified_at is not None

    @property
    def is_online(self):
        if not self.last_seen:
            return False
        window = timedelta(minutes=settings.ONLINE_WINDOW_MINUTES)
        return dj_timezone.now() - self.last_seen < window

    @property
    def shows_presence(self):
        prefs = getattr(self, 'preferences', None)
        return prefs is None or prefs.show_online_status

    def age(self, today=None):
        if not self.date_of_birth:
            return None
        today = today or date.today()
        dob = self.date_of_birth
        return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))

    def has_all_data(self):
        """Phone, gender, date of birth, email and name are all present."""
        return bool(
            self.phone
            and self.gender != GENDER_NONE
            and self.date_of_birth
            and self.email
            and self.name
        )

    def is_profile_completed(self):
        return bool(
            self.email
            and self.phone
            and self.gender != GENDER_NONE
            and self.date_of_birth
            and self.profile_image_id
            and self.about
            and self.headline
            and self.looking_for
            and self.current_position
        )

    def __str__(self):
        return self.name or self.email or self.username


def profile_completed_q(prefix=''):
    """Queryset filter equivalent of ``User.is_profile_completed``."""
    def field(name):
        return f"{prefix}{name}"

    return (
        ~Q(**{field('email'): ''})
        & Q(**{field('phone__isnull'): False}) & ~Q(**{field('phone'): ''})
        & ~Q(**{field('gender'): GENDER_NONE})
        & Q(**{field('date_of_birth__isnull'): False})
        & Q(**{field('profile_image__isnull'): False})
        & Q(**{field('about__isnull'): False}) & ~Q(**{field('about'): ''})
        & Q(**{field('headline__isnull'): False}) & ~Q(**{field('headline'): ''})
        & ~Q(**{field('looking_for'): ''})
        & Q(**{field('current_position__isnull'): False}) & ~Q(**{field('current_position'): ''})
    )


class UserSettings(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='preferences'
    )
    push_notifications = models.BooleanField(default=True)
    email_notifications = models.BooleanField(default=True)
    show_online_status = models.BooleanField(default=True)
    message_previews = models.BooleanField(default=True)


class UserSession(models.Model):
    """
    An authenticated device session.

    The token is the bearer credential sent in the Authorization header.
    A session is active until ``ended_at`` is set.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='app_sessions'
    )
    token = models.CharField(max_length=64, unique=True, default=generate_token)
    platform = models.CharField(max_length=20, blank=True, default='web')
    device_id = models.CharField(max_length=255, blank=True, default='')
    fcm_token = models.CharField(max_length=255, blank=True, default='')
    voip_token = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    last_active_at = models.DateTimeField(default=dj_timezone.now)
    ended_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    @property
    def is_active(self):
        return self.ended_at is None

    def __str__(self):
        return f"{self.user} on {self.platform or 'unknown'}"


class EmailVerificationLink(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='email_links'
    )
    email = models.EmailField()
    token = models.CharField(max_length=64, unique=True, default=generate_token)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()
    is_expired = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)

    @property
    def is_valid(self):
        return not self.is_expired and self.verified_at is None and self.expires_at > dj_timezone.now()


class OneTimePassword(models.Model):
    email = models.EmailField(db_index=True)
    code = models.CharField(max_length=6)
    reason = models.CharField(max_length=30, choices=OTP_REASON_CHOICES)
    reset_token = models.CharField(max_length=64, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()
    verified_at = models.DateTimeField(null=True, blank=True)
    used_at = models.DateTimeField(null=True, blank=True)
    is_expired = models.BooleanField(default=False)

    class Meta:
        ordering = ['-created_at']


# ============================================================================
# SECTION 2: UPLOADS & INDUSTRIES
# ============================================================================

class Upload(models.Model):
    """
    A file stored through the default storage backend.

    ``path`` is laid out as ``<binary folder>/<type>/<unix>-<filename>``.
    """

    uid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    name = models.CharField(max_length=255)
    bucket = models.CharField(max_length=100)
    path = models.CharField(max_length=500)
    type = models.CharField(max_length=50, help_text="Upload purpose, e.g. profile or post")
    binary_type = models.CharField(max_length=10, choices=BINARY_TYPE_CHOICES)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='uploads'
    )
    url = models.CharField(max_length=1000)
    thumbnail_url = models.CharField(max_length=1000, blank=True, default='')
    url_expiration_time = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.path


class Industry(models.Model):
    name = models.CharField(max_length=150)
    category = models.CharField(
        max_length=40,
        choices=INDUSTRY_CATEGORY_CHOICES,
        default=INDUSTRY_CATEGORY_CONNECTIONS_AND_GROUPS
    )
    image = models.ForeignKey(Upload, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    archived_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'industries'

    def __str__(self):
        return self.name


# ============================================================================
# SECTION 3: SOCIAL RELATIONSHIP MODELS
# ============================================================================

class Block(models.Model):
    """One-way block. Either direction prevents interaction."""

    blocker = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='blocks'
    )
    blocked = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='blocked_by'
    )
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('blocker', 'blocked')

    @classmethod
    def between(cls, user, other):
        return cls.objects.filter(
            Q(blocker=user, blocked=other) | Q(blocker=other, blocked=user)
        ).exists()


CONNECTION_STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('accepted', 'Accepted'),
    ('declined', 'Declined'),
    ('removed', 'Removed'),
]


class Connection(models.Model):
    """
    Connection request between two users.

    One row per ordered pair; an accepted row makes both users connections.
    """

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_connection_requests'
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='received_connection_requests'
    )
    status = models.CharField(max_length=10, choices=CONNECTION_STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('sender', 'receiver')
        ordering = ['-updated_at']

    @classmethod
    def between(cls, user, other):
        return cls.objects.filter(
            Q(sender=user, receiver=other) | Q(sender=other, receiver=user)
        )

    @classmethod
    def connected_user_ids(cls, user):
        rows = cls.objects.filter(
            Q(sender=user) | Q(receiver=user), status='accepted'
        ).values_list('sender_id', 'receiver_id')
        return {s if r == user.id else r for s, r in rows}


# ============================================================================
# SECTION 4: NOTIFICATIONS, BROADCASTS & REPORTS
# ============================================================================

class Notification(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    type = models.CharField(max_length=50, help_text="e.g. connection_request, post_like, broadcast")
    title = models.CharField(max_length=255)
    body = models.TextField(blank=True)
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']


class Broadcast(models.Model):
    title = models.CharField(max_length=255)
    message = models.TextField()
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    recipients_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']


class ReportType(models.Model):
    name = models.CharField(max_length=150)
    category = models.CharField(max_length=20, choices=REPORT_CATEGORY_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']


class Report(models.Model):
    """A report against a user, group, post, comment or showcase profile."""

    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reports_made'
    )
    report_type = models.ForeignKey(ReportType, on_delete=models.SET_NULL, null=True, blank=True)
    reason = models.TextField(blank=True)
    target_type = models.CharField(max_length=20, choices=REPORT_CATEGORY_CHOICES)
    target_id = models.PositiveBigIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['target_type', 'target_id'], name='report_target_idx')]


# ============================================================================
# SECTION 5: CONFIGURATION & SUPPORT
# ============================================================================

class DynamicConfig(models.Model):
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.key}={self.value}"


class Feedback(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    email = models.EmailField(blank=True)
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)


class FAQ(models.Model):
    question = models.CharField(max_length=500)
    answer = models.TextField()
    position = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['position', 'id']
        verbose_name = 'FAQ'


# ============================================================================
# SECTION 6: MESSAGING SYSTEM MODELS
# ============================================================================

class ChatGroup(models.Model):
    """
    Chat conversation (direct or group).

    A direct chat has exactly two members and no name.
    """

    name = models.CharField(max_length=255, blank=True)
    is_direct = models.BooleanField(default=False)
    image = models.ForeignKey(Upload, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_chat_groups'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        if self.is_direct:
            return f"Direct #{self.id}"
        return self.name or f"Chat group #{self.id}"


class ChatGroupMember(models.Model):
    chat_group = models.ForeignKey(ChatGroup, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='chat_memberships'
    )
    is_admin = models.BooleanField(default=False)
    is_muted = models.BooleanField(default=False)
    joined_at = models.DateTimeField(auto_now_add=True)
    last_read_at = models.DateTimeField(null=True, blank=True)
    cleared_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Messages before this point are hidden for this member"
    )

    class Meta:
        unique_together = ('chat_group', 'user')
        ordering = ['joined_at', 'id']


class ChatMessage(models.Model):
    chat_group = models.ForeignKey(ChatGroup, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='chat_messages'
    )
    content = models.TextField(blank=True)
    attachment = models.ForeignKey(Upload, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(default=dj_timezone.now, db_index=True)
    deleted_for = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name='hidden_chat_messages'
    )

    class Meta:
        ordering = ['-created_at', '-id']


# ============================================================================
# SECTION 7: COMMUNITY GROUPS, POSTS & COMMENTS
# ============================================================================

GROUP_ROLE_OWNER = 'owner'
GROUP_ROLE_ADMIN = 'admin'
GROUP_ROLE_MEMBER = 'member'

GROUP_ROLE_CHOICES = [
    (GROUP_ROLE_OWNER, 'Owner'),
    (GROUP_ROLE_ADMIN, 'Admin'),
    (GROUP_ROLE_MEMBER, 'Member'),
]

MEMBER_JOINED = 'joined'
MEMBER_REQUESTED = 'requested'
MEMBER_INVITED = 'invited'
MEMBER_BLOCKED = 'blocked'

MEMBER_STATUS_CHOICES = [
    (MEMBER_JOINED, 'Joined'),
    (MEMBER_REQUESTED, 'Requested'),
    (MEMBER_INVITED, 'Invited'),
    (MEMBER_BLOCKED, 'Blocked'),
]


class Group(models.Model):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    is_private = models.BooleanField(default=False)
    image = models.ForeignKey(Upload, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    industry = models.ForeignKey(Industry, on_delete=models.SET_NULL, null=True, blank=True, related_name='groups')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_groups'
    )
    is_suspended = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False, help_text="Hidden by an admin")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class GroupMember(models.Model):
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='group_memberships'
    )
    role = models.CharField(max_length=10, choices=GROUP_ROLE_CHOICES, default=GROUP_ROLE_MEMBER)
    status = models.CharField(max_length=10, choices=MEMBER_STATUS_CHOICES, default=MEMBER_JOINED)
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('group', 'user')
        ordering = ['created_at', 'id']

    @property
    def is_group_admin(self):
        return self.status == MEMBER_JOINED and self.role in (GROUP_ROLE_OWNER, GROUP_ROLE_ADMIN)


class Post(models.Model):
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='posts')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='posts')
    content = models.TextField(blank=True)
    media = models.ManyToManyField(Upload, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.user} - {self.content[:50]}"


class PostLike(models.Model):
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='likes')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='post_likes')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('post', 'user')


class Comment(models.Model):
    """
    Comment on a post.

    Replies are comments with a parent; a reply may only target a root
    comment, so threads are at most one level deep.
    """

    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='comments')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='comments')
    parent = models.ForeignKey(
        'self',
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name='replies'
    )
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']


class CommentReaction(models.Model):
    LIKE = 1
    DISLIKE = -1

    comment = models.ForeignKey(Comment, on_delete=models.CASCADE, related_name='reactions')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='comment_reactions'
    )
    value = models.SmallIntegerField(choices=[(LIKE, 'Like'), (DISLIKE, 'Dislike')])
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('comment', 'user')


# ============================================================================
# SECTION 8: SHOWCASE (COMPANY PROFILES)
# ============================================================================

COMPANY_STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('approved', 'Approved'),
    ('rejected', 'Rejected'),
]

INVESTMENT_STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('approved', 'Approved'),
    ('declined', 'Declined'),
]


class CompanyProfile(models.Model):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='company_profiles'
    )
    name = models.CharField(max_length=255)
    tagline = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    industry = models.ForeignKey(
        Industry,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='company_profiles'
    )
    logo = models.ForeignKey(Upload, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    website = models.CharField(max_length=500, blank=True)
    country = models.CharField(max_length=100, blank=True)
    funding_goal = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=10, choices=COMPANY_STATUS_CHOICES, default='pending')
    is_archived = models.BooleanField(default=False)
    archived_by_admin = models.BooleanField(default=False)
    views = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class CompanyLike(models.Model):
    company = models.ForeignKey(CompanyProfile, on_delete=models.CASCADE, related_name='likes')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='company_likes')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('company', 'user')


class Bookmark(models.Model):
    company = models.ForeignKey(CompanyProfile, on_delete=models.CASCADE, related_name='bookmarks')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookmarks')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('company', 'user')
        ordering = ['-created_at']


class CompanyQuestion(models.Model):
    company = models.ForeignKey(CompanyProfile, on_delete=models.CASCADE, related_name='questions')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='company_questions'
    )
    question = models.TextField()
    is_archived = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']


class QuestionReply(models.Model):
    question = models.ForeignKey(CompanyQuestion, on_delete=models.CASCADE, related_name='replies')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='question_replies'
    )
    reply = models.TextField()
    is_archived = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']


class Investment(models.Model):
    company = models.ForeignKey(CompanyProfile, on_delete=models.CASCADE, related_name='investments')
    investor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='investments'
    )
    amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    message = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=INVESTMENT_STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('company', 'investor')
        ordering = ['-updated_at']
