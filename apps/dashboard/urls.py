from django.urls import path
from . import views

app_name = 'dashboard'

urlpatterns = [
    # GET /api/dashboard/            - Overview
    path('', views.dashboard, name='overview'),
    # GET /api/dashboard/reminders/  - Upcoming tax due dates
    path('reminders/', views.tax_reminders, name='reminders'),
]
