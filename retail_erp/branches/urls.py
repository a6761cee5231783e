from django.urls import path
from .views import branch_list_create, branch_detail

urlpatterns = [
    path('branches/', branch_list_create, name='branch-list-create'),
    path('branches/<int:pk>/', branch_detail, name='branch-detail'),
]
