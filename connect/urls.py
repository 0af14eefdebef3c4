"""
================================================================================
CONNECTUP - API URL CONFIGURATION
================================================================================

Every route here is mounted under /api/ by connectup/urls.py.

URL STRUCTURE OVERVIEW
================================================================================
1. Accounts & local developer helpers (register, login, otp, test)
2. User, profile, settings & sessions (/user/...)
3. Connections & blocks (/user/connection/..., /user/toggle_block)
4. Uploads & notifications
5. Chat groups & messages (/chat/chat_group/...)
6. Community groups, posts & comments (/groups/..., /group/...)
7. Showcase company profiles (/showcase/...)
8. Admin dashboard (/admin/...)

Int path converters reject malformed ids with a 404 before a view runs.
================================================================================
"""

from django.urls import path

from . import admin_views, chat_views, connection_views, group_views, showcase_views, views

app_name = "connect"

urlpatterns = [
    # ========================================================================
    # ACCOUNTS
    # ========================================================================
    path("health", views.health_check, name="api_health"),
    path("register", views.register, name="register"),
    path("login", views.login_view, name="login"),
    path("send_otp", views.send_otp, name="send_otp"),
    path("verify_otp", views.verify_otp, name="verify_otp"),
    path("change_password_using_otp", views.change_password_using_otp, name="change_password_using_otp"),
    path("verify_email_link", views.verify_email_link, name="verify_email_link"),
    path("faqs", views.faqs, name="faqs"),
    path("feedback", views.feedback, name="feedback"),
    path("attachment/<uuid:attachment_id>", views.attachment_detail, name="attachment_detail"),
    path("test/create", views.create_test_admin, name="create_test_admin"),
    path("<int:user_id>/", views.token_for_user, name="token_for_user"),

    # ========================================================================
    # USER
    # ========================================================================
    path("user/", views.delete_user, name="delete_user"),
    path("user/info", views.user_info, name="user_info"),
    path("user/send_verification_email", views.send_verification_email_view, name="send_verification_email"),
    path("user/email", views.update_email, name="update_email"),
    path("user/phone", views.update_phone, name="update_phone"),
    path("user/skip_phone", views.skip_phone, name="skip_phone"),
    path("user/location", views.update_location, name="update_location"),
    path("user/ping", views.ping, name="ping"),
    path("user/online_status", views.online_status, name="online_status"),
    path("user/settings", views.user_settings, name="user_settings"),
    path("user/change_password", views.change_password, name="change_password"),
    path("user/industries", views.user_industries, name="user_industries"),
    path("user/report_type", views.report_types, name="report_types"),
    path("user/report/<int:user_id>", views.report_user, name="report_user"),
    path("user/profile/", views.my_profile, name="my_profile"),
    path("user/profile/image", views.update_profile_image, name="update_profile_image"),
    path("user/profile/<int:user_id>", views.user_profile, name="user_profile"),

    # Sessions
    path("user/session", views.user_session, name="user_session"),
    path("user/session/end", views.end_user_session, name="end_user_session"),
    path("user/session/fcm", views.update_fcm_token, name="update_fcm_token"),
    path("user/session/voip_token", views.update_voip_token, name="update_voip_token"),

    # Uploads & notifications
    path("user/upload_image", views.upload, name="upload"),
    path("user/notifications", views.notifications_list, name="notifications"),
    path("user/read_notification", views.read_notifications, name="read_notifications"),
    path("user/notifications_count", views.notifications_count, name="notifications_count"),

    # ========================================================================
    # CONNECTIONS & BLOCKS
    # ========================================================================
    path("user/connection/request/send", connection_views.send_connection_request, name="send_connection_request"),
    path("user/connection/request/inbound", connection_views.inbound_requests, name="inbound_requests"),
    path("user/connection/request/outbound", connection_views.outbound_requests, name="outbound_requests"),
    path("user/connection/request/all", connection_views.pending_requests, name="pending_requests"),
    path("user/connection/request/<int:connection_id>/status", connection_views.update_connection_request,
         name="update_connection_request"),
    path("user/connection/<int:user_id>/remove", connection_views.remove_connection, name="remove_connection"),
    path("user/connections/all", connection_views.connections_list, name="connections"),
    path("user/connections_count", connection_views.connections_count, name="connections_count"),
    path("user/toggle_block", connection_views.toggle_block, name="toggle_block"),
    path("user/blocked_contacts", connection_views.blocked_contacts, name="blocked_contacts"),

    # ========================================================================
    # CHAT
    # ========================================================================
    path("chat/chat_group/", chat_views.chat_groups, name="chat_groups"),
    path("chat/chat_group/<int:chat_group_id>/details", chat_views.chat_group_detail, name="chat_group_detail"),
    path("chat/chat_group/<int:chat_group_id>/toggle_notification", chat_views.toggle_mute, name="toggle_mute"),
    path("chat/chat_group/<int:chat_group_id>/notification", chat_views.set_notifications,
         name="set_notifications"),
    path("chat/chat_group/<int:chat_group_id>/leave", chat_views.leave, name="leave_chat_group"),
    path("chat/chat_group/<int:chat_group_id>/admin/delete", chat_views.delete_chat_group,
         name="delete_chat_group"),
    path("chat/chat_group/<int:chat_group_id>/admin/", chat_views.edit_chat_group, name="edit_chat_group"),
    path("chat/chat_group/<int:chat_group_id>/admin/toggle_admins", chat_views.toggle_admins,
         name="toggle_admins"),
    path("chat/chat_group/<int:chat_group_id>/admin/set_admin", chat_views.set_admin, name="set_admin"),
    path("chat/chat_group/<int:chat_group_id>/admin/edit_participants", chat_views.edit_participants,
         name="edit_participants"),
    path("chat/chat_group/<int:chat_group_id>/message/", chat_views.messages, name="messages"),
    path("chat/chat_group/<int:chat_group_id>/message/send", chat_views.send_message, name="send_message"),
    path("chat/chat_group/<int:chat_group_id>/message/delete", chat_views.delete_messages_for_me,
         name="delete_messages"),
    path("chat/chat_group/<int:chat_group_id>/message/after_time", chat_views.messages_after,
         name="messages_after"),
    path("chat/chat_group/<int:chat_group_id>/message/clear_all", chat_views.clear_messages,
         name="clear_messages"),
    path("chat/chat_group/<int:chat_group_id>/message/<int:message_id>", chat_views.message_attachment,
         name="message_attachment"),

    # ========================================================================
    # GROUPS
    # ========================================================================
    path("groups/joined", group_views.joined_groups, name="joined_groups"),
    path("groups/owned", group_views.owned_groups, name="owned_groups"),
    path("groups/requested", group_views.requested_groups, name="requested_groups"),
    path("groups/invited", group_views.invited_groups, name="invited_groups"),
    path("groups/explore", group_views.explore_groups, name="explore_groups"),
    path("group/", group_views.create_group, name="create_group"),
    path("group/feeds", group_views.feeds, name="feeds"),
    path("group/<int:group_id>/", group_views.group_detail, name="group_detail"),
    path("group/<int:group_id>/report", group_views.report_group, name="report_group"),
    path("group/<int:group_id>/join_request", group_views.join_group, name="join_group"),
    path("group/<int:group_id>/cancel_request", group_views.cancel_join_request, name="cancel_join_request"),
    path("group/<int:group_id>/decline_invite", group_views.decline_invite, name="decline_invite"),
    path("group/<int:group_id>/leave", group_views.leave_group_view, name="leave_group"),
    path("group/<int:group_id>/members", group_views.group_members, name="group_members"),
    path("group/<int:group_id>/invite_users", group_views.invite_users, name="invite_users"),
    path("group/<int:group_id>/connections", group_views.connections_not_in_group,
         name="connections_not_in_group"),

    # Group admin
    path("group/<int:group_id>/update", group_views.update_group, name="update_group"),
    path("group/<int:group_id>/image", group_views.update_group_image, name="update_group_image"),
    path("group/<int:group_id>/delete", group_views.delete_group, name="delete_group"),
    path("group/<int:group_id>/toggle_admin", group_views.toggle_group_admin, name="toggle_group_admin"),
    path("group/<int:group_id>/members/<int:user_id>", group_views.remove_group_user, name="remove_group_user"),
    path("group/<int:group_id>/requests/<int:user_id>", group_views.answer_join_request,
         name="answer_join_request"),
    path("group/<int:group_id>/block", group_views.toggle_group_block, name="toggle_group_block"),
    path("group/<int:group_id>/blocked_users", group_views.blocked_users, name="group_blocked_users"),
    path("group/<int:group_id>/invites/list", group_views.pending_invites, name="group_invites"),
    path("group/<int:group_id>/requested/list", group_views.join_requests, name="group_requests"),
    path("group/<int:group_id>/reported_posts", group_views.reported_posts, name="group_reported_posts"),
    path("group/<int:group_id>/reported_comments", group_views.reported_comments,
         name="group_reported_comments"),

    # Posts & comments
    path("group/<int:group_id>/post/", group_views.group_posts, name="group_posts"),
    path("group/<int:group_id>/post/<int:post_id>/", group_views.post_detail, name="post_detail"),
    path("group/<int:group_id>/post/<int:post_id>/report", group_views.report_post, name="report_post"),
    path("group/<int:group_id>/post/<int:post_id>/like", group_views.toggle_post_like, name="toggle_post_like"),
    path("group/<int:group_id>/post/<int:post_id>/likes", group_views.post_likes, name="post_likes"),
    path("group/<int:group_id>/post/<int:post_id>/comments", group_views.post_comments, name="post_comments"),
    path("group/<int:group_id>/comment/<int:comment_id>/", group_views.comment_detail, name="comment_detail"),
    path("group/<int:group_id>/comment/<int:comment_id>/report", group_views.report_comment,
         name="report_comment"),
    path("group/<int:group_id>/comment/<int:comment_id>/like", group_views.like_comment, name="like_comment"),
    path("group/<int:group_id>/comment/<int:comment_id>/dislike", group_views.dislike_comment,
         name="dislike_comment"),
    path("group/<int:group_id>/comment/<int:comment_id>/reply", group_views.comment_replies,
         name="comment_replies"),

    # ========================================================================
    # SHOWCASE
    # ========================================================================
    path("showcase/create_profile", showcase_views.create_company, name="create_company"),
    path("showcase/explore", showcase_views.explore_companies, name="explore_companies"),
    path("showcase/trending", showcase_views.trending_companies, name="trending_companies"),
    path("showcase/my_profiles", showcase_views.my_companies, name="my_companies"),
    path("showcase/archived", showcase_views.archived_companies, name="archived_companies"),
    path("showcase/bookmarks", showcase_views.bookmarks, name="bookmarks"),
    path("showcase/investors", showcase_views.search_investors, name="search_investors"),
    path("showcase/investments/pending", showcase_views.pending_investments, name="pending_investments"),
    path("showcase/investments/<int:investment_id>", showcase_views.answer_investment,
         name="answer_investment"),
    path("showcase/invested", showcase_views.invested_companies, name="invested_companies"),
    path("showcase/question/<int:question_id>/replies", showcase_views.question_replies,
         name="question_replies"),
    path("showcase/question/<int:question_id>/archive", showcase_views.archive_question,
         name="archive_question"),
    path("showcase/reply/<int:reply_id>/archive", showcase_views.archive_reply, name="archive_reply"),
    path("showcase/<int:company_id>/", showcase_views.company_detail, name="company_detail"),
    path("showcase/<int:company_id>/archive", showcase_views.toggle_archive_company,
         name="toggle_archive_company"),
    path("showcase/<int:company_id>/like", showcase_views.toggle_company_like, name="toggle_company_like"),
    path("showcase/<int:company_id>/bookmark", showcase_views.toggle_bookmark, name="toggle_bookmark"),
    path("showcase/<int:company_id>/report", showcase_views.report_company, name="report_company"),
    path("showcase/<int:company_id>/invite", showcase_views.invite_to_company, name="invite_to_company"),
    path("showcase/<int:company_id>/questions", showcase_views.company_questions, name="company_questions"),
    path("showcase/<int:company_id>/all_questions", showcase_views.all_company_questions,
         name="all_company_questions"),
    path("showcase/<int:company_id>/invest", showcase_views.express_interest, name="express_interest"),
    path("showcase/<int:company_id>/investors", showcase_views.company_investors, name="company_investors"),
    path("showcase/<int:company_id>/my_investment", showcase_views.my_investment, name="my_investment"),

    # ========================================================================
    # ADMIN
    # ========================================================================
    path("admin/login", views.admin_login, name="admin_login"),
    path("admin/report_type", admin_views.admin_report_types, name="admin_report_types"),
    path("admin/broadcast", admin_views.send_broadcast, name="send_broadcast"),
    path("admin/broadcasts", admin_views.broadcast_history, name="broadcast_history"),
    path("admin/broadcast/<int:broadcast_id>", admin_views.broadcast_detail, name="broadcast_detail"),
    path("admin/cover-image", admin_views.update_default_cover_image, name="update_default_cover_image"),
    path("admin/category", admin_views.industry_categories, name="industry_categories"),
    path("admin/country", admin_views.countries, name="countries"),

    path("admin/users/", admin_views.users_list, name="admin_users"),
    path("admin/users/downloads", admin_views.download_users, name="download_users"),
    path("admin/users/filters", admin_views.user_filter_options, name="user_filter_options"),
    path("admin/users/<int:user_id>/", admin_views.user_detail, name="admin_user_detail"),
    path("admin/users/<int:user_id>/suspend_user", admin_views.toggle_suspend_user, name="toggle_suspend_user"),

    path("admin/dashboard/details", admin_views.dashboard_details, name="dashboard_details"),
    path("admin/dashboard/charts/", admin_views.user_chart, name="user_chart"),
    path("admin/dashboard/charts/industry_user_count", admin_views.top_industries, name="top_industries"),
    path("admin/dashboard/charts/country_user_count", admin_views.country_user_count,
         name="country_user_count"),
    path("admin/dashboard/charts/country_active_user_count", admin_views.country_active_user_count,
         name="country_active_user_count"),
    path("admin/dashboard/charts/state_user_count", admin_views.state_user_count, name="state_user_count"),
    path("admin/dashboard/charts/state_active_user_count", admin_views.state_active_user_count,
         name="state_active_user_count"),
    path("admin/dashboard/charts/most_active_time_user", admin_views.most_active_time, name="most_active_time"),

    path("admin/industries/", admin_views.industries, name="admin_industries"),
    path("admin/industries/industries_count", admin_views.industries_count, name="industries_count"),
    path("admin/industries/<int:industry_id>", admin_views.industry_detail, name="industry_detail"),

    path("admin/groups/", admin_views.admin_groups, name="admin_groups"),
    path("admin/groups/toggle_suspend", admin_views.toggle_suspend_groups, name="toggle_suspend_groups"),
    path("admin/groups/toggle_delete", admin_views.toggle_delete_groups, name="toggle_delete_groups"),
    path("admin/groups/export_groups", admin_views.export_groups, name="export_groups"),
    path("admin/groups/count", admin_views.groups_count, name="groups_count"),
    path("admin/groups/reported_groups", admin_views.reported_groups, name="reported_groups"),
    path("admin/groups/<int:group_id>/details", admin_views.admin_group_detail, name="admin_group_detail"),
    path("admin/groups/<int:group_id>/media", admin_views.admin_group_media, name="admin_group_media"),
    path("admin/groups/<int:group_id>/posts", admin_views.admin_group_posts, name="admin_group_posts"),
    path("admin/groups/<int:group_id>/reported_posts", admin_views.admin_reported_posts,
         name="admin_reported_posts"),
    path("admin/groups/<int:group_id>/reported_comments", admin_views.admin_reported_comments,
         name="admin_reported_comments"),
    path("admin/groups/<int:group_id>/members", admin_views.admin_group_members, name="admin_group_members"),
    path("admin/groups/<int:group_id>/reported_by", admin_views.group_reporters, name="group_reporters"),
    path("admin/groups/<int:group_id>/post/<int:post_id>/", admin_views.admin_delete_post,
         name="admin_delete_post"),
    path("admin/groups/<int:group_id>/post/<int:post_id>/likes", admin_views.admin_post_likes,
         name="admin_post_likes"),
    path("admin/groups/<int:group_id>/post/<int:post_id>/comments", admin_views.admin_post_comments,
         name="admin_post_comments"),
    path("admin/groups/<int:group_id>/post/<int:post_id>/comment/<int:comment_id>/",
         admin_views.admin_delete_comment, name="admin_delete_comment"),

    path("admin/showcase/update_company_status", admin_views.update_company_status,
         name="update_company_status"),
    path("admin/showcase/all", admin_views.admin_companies, name="admin_companies"),
    path("admin/showcase/profiles_count", admin_views.companies_count, name="companies_count"),
    path("admin/showcase/export", admin_views.export_companies, name="export_companies"),
    path("admin/showcase/<int:company_id>/", admin_views.admin_company_detail, name="admin_company_detail"),
    path("admin/showcase/<int:company_id>/archive", admin_views.admin_archive_company,
         name="admin_archive_company"),
]
