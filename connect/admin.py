from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import Group as AuthGroup
from django.urls import reverse
from django.utils import timezone
from django.utils.html import format_html

from .accounts import clear_cached_contexts
from .models import (
    Broadcast, ChatGroup, ChatGroupMember, ChatMessage, Comment, CompanyProfile, DynamicConfig,
    FAQ, Feedback, Group, GroupMember, Industry, Investment, Notification, Post, Report, ReportType,
    Upload, User, UserSession,
)


def _short(text, length=80, empty="(no content)"):
    if text:
        return text[:length] + '...' if len(text) > length else text
    return empty


# ==================== ADMIN CLASSES ====================

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'name', 'role', 'country', 'is_suspended', 'date_joined')
    list_filter = ('role', 'is_suspended', 'gender')
    search_fields = ('email', 'name', 'phone')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Profile', {'fields': (
            'name', 'phone', 'gender', 'date_of_birth', 'headline', 'about', 'looking_for',
            'current_position', 'country', 'state', 'timezone',
        )}),
        ('Status', {'fields': ('role', 'is_suspended', 'email_verified_at', 'phone_verified_at')}),
    )
    actions = ['suspend_users', 'unsuspend_users']

    def suspend_users(self, request, queryset):
        queryset.update(is_suspended=True, suspended_at=timezone.now())
        for user in queryset:
            clear_cached_contexts(user)
        self.message_user(request, f"{queryset.count()} users suspended")
    suspend_users.short_description = "Suspend selected users"

    def unsuspend_users(self, request, queryset):
        queryset.update(is_suspended=False, suspended_at=None)
        for user in queryset:
            clear_cached_contexts(user)
        self.message_user(request, f"{queryset.count()} users unsuspended")
    unsuspend_users.short_description = "Unsuspend selected users"


@admin.register(UserSession)
class UserSessionAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'platform', 'device_id', 'created_at', 'ended_at')
    list_filter = ('platform',)
    search_fields = ('user__email', 'device_id')


@admin.register(Upload)
class UploadAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'binary_type', 'type', 'uploaded_by', 'created_at')
    list_filter = ('binary_type',)
    search_fields = ('name', 'path')


@admin.register(Industry)
class IndustryAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'category', 'archived_at')
    list_filter = ('category',)
    search_fields = ('name',)


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'actor', 'type', 'created_at', 'is_read')
    list_filter = ('is_read', 'type')
    search_fields = ('user__email', 'actor__email', 'title')


@admin.register(ChatGroup)
class ChatGroupAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'is_direct', 'created_by', 'created_at', 'member_count')
    list_filter = ('is_direct', 'created_at')
    search_fields = ('name', 'created_by__email')

    def member_count(self, obj):
        return obj.members.count()
    member_count.short_description = 'Members'


@admin.register(ChatGroupMember)
class ChatGroupMemberAdmin(admin.ModelAdmin):
    list_display = ('id', 'chat_group', 'user', 'joined_at', 'is_admin', 'is_muted')
    list_filter = ('is_admin', 'is_muted')


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'chat_group', 'sender', 'created_at', 'content_short')
    search_fields = ('content', 'sender__email')

    def content_short(self, obj):
        return _short(obj.content, 50, "(attachment)")
    content_short.short_description = 'Content'


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'is_private', 'is_suspended', 'is_deleted', 'created_at')
    list_filter = ('is_private', 'is_suspended', 'is_deleted')
    search_fields = ('name',)


@admin.register(GroupMember)
class GroupMemberAdmin(admin.ModelAdmin):
    list_display = ('id', 'group', 'user', 'role', 'status', 'created_at')
    list_filter = ('role', 'status')


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ('id', 'user_link', 'group', 'created_at', 'content_short')
    search_fields = ('content', 'user__email')

    def user_link(self, obj):
        url = reverse("admin:connect_user_change", args=[obj.user.id])
        return format_html('<a href="{}">{}</a>', url, obj.user.email)
    user_link.short_description = 'User'
    user_link.admin_order_field = 'user__email'

    def content_short(self, obj):
        return _short(obj.content)
    content_short.short_description = 'Content'


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'post', 'parent', 'created_at', 'content_short')
    search_fields = ('content', 'user__email', 'post__id')

    def content_short(self, obj):
        return _short(obj.content, 50)
    content_short.short_description = 'Content'


@admin.register(CompanyProfile)
class CompanyProfileAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'owner', 'status', 'is_archived', 'views', 'created_at')
    list_filter = ('status', 'is_archived')
    search_fields = ('name', 'owner__email')


@admin.register(Investment)
class InvestmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'company', 'investor', 'amount', 'status', 'updated_at')
    list_filter = ('status',)


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ('id', 'reporter', 'target_type', 'target_id', 'report_type', 'created_at')
    list_filter = ('target_type',)


admin.site.register(ReportType)
admin.site.register(Broadcast)
admin.site.register(DynamicConfig)
admin.site.register(Feedback)
admin.site.register(FAQ)

# Unregister Django's default Group
admin.site.unregister(AuthGroup)

admin.site.site_header = "ConnectUp Admin"
admin.site.site_title = "ConnectUp Admin Portal"
admin.site.index_title = "Welcome"
