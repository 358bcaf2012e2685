from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'investors'

router = DefaultRouter()
router.register(r'', views.InvestorViewSet, basename='investor')

urlpatterns = [
    # GET    /api/investors/                - List investors
    # POST   /api/investors/                - Register investor
    # GET    /api/investors/{id}/           - Investor details
    # PUT    /api/investors/{id}/           - Update investor
    # PATCH  /api/investors/{id}/           - Partial update
    # DELETE /api/investors/{id}/           - Delete investor
    # GET    /api/investors/{id}/summary/   - Capital, profit and payouts
    path('', include(router.urls)),
]
