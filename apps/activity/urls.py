from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'activity'

router = DefaultRouter()
router.register(r'', views.ActivityLogViewSet, basename='activity-log')

urlpatterns = [
    # GET /api/activity-logs/        - List log entries
    # GET /api/activity-logs/{id}/   - Log entry details
    path('', include(router.urls)),
]
