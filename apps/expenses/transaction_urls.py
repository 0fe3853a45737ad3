from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'transactions'

router = DefaultRouter()
router.register(r'', views.TransactionViewSet, basename='transaction')

urlpatterns = [
    # GET    /api/transactions/                - Transaction history
    # POST   /api/transactions/{token}/settle/ - Settle (sender only)

    path('', include(router.urls)),
]
