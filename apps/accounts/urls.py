from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # POST /api/auth/login/   - Obtain JWT pair
    path('login/', views.login, name='login'),
    # GET  /api/auth/user/    - Logged-in account
    path('user/', views.current_user, name='current-user'),
]
