from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'units'

router = DefaultRouter()
router.register(r'', views.UnitViewSet, basename='unit')

urlpatterns = [
    # GET    /api/units/             - List units
    # POST   /api/units/             - Register unit
    # GET    /api/units/next-code/   - Suggest next code
    # GET    /api/units/{id}/        - Unit details
    # PUT    /api/units/{id}/        - Update unit
    # PATCH  /api/units/{id}/        - Partial update
    # DELETE /api/units/{id}/        - Delete unit
    path('', include(router.urls)),
]
