from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

from connect import views

urlpatterns = [
    path("health", views.health_check, name="health"),
    path("django-admin/", admin.site.urls),
    path("api/", include("connect.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=getattr(settings, 'MEDIA_ROOT', None))
