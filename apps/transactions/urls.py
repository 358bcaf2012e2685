from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'transactions'

router = DefaultRouter()
router.register(r'', views.TransactionViewSet, basename='transaction')

urlpatterns = [
    # GET    /api/transactions/                          - List transactions
    # POST   /api/transactions/                          - Open transaction
    # GET    /api/transactions/next-code/                - Suggest next code
    # GET    /api/transactions/{id}/                     - Transaction details
    # PUT    /api/transactions/{id}/                     - Edit / move status
    # PATCH  /api/transactions/{id}/                     - Edit / move status
    # DELETE /api/transactions/{id}/                     - Delete transaction
    # POST   /api/transactions/{id}/sell/                - Record sale
    # POST   /api/transactions/{id}/revert/              - Undo sale
    # PATCH  /api/transactions/{id}/profit-sharing/      - Change split
    # GET    /api/transactions/{id}/payments/            - Payout history
    # POST   /api/transactions/{id}/payments/            - Record payout
    # GET    /api/transactions/{id}/costs/               - List costs
    # POST   /api/transactions/{id}/costs/               - Add cost
    # PUT    /api/transactions/{id}/costs/{cost_id}/     - Edit cost
    # PATCH  /api/transactions/{id}/costs/{cost_id}/     - Edit cost
    # DELETE /api/transactions/{id}/costs/{cost_id}/     - Remove cost
    path('', include(router.urls)),
]
