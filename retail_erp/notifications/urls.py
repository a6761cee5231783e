from django.urls import path
from .views import notification_list_create, notification_mark_read, notification_mark_all_read

urlpatterns = [
    path('notifications/', notification_list_create, name='notification-list-create'),
    path('notifications/read-all/', notification_mark_all_read, name='notification-read-all'),
    path('notifications/<int:pk>/read/', notification_mark_read, name='notification-read'),
]
