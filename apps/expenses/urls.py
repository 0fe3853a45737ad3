from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'expenses'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.ExpenseViewSet, basename='expense')

urlpatterns = [
    # GET    /api/expenses/                   - List user's expenses
    # POST   /api/expenses/                   - Create expense
    # GET    /api/expenses/{id}/              - Expense details
    # DELETE /api/expenses/{id}/              - Delete expense (payer)
    # GET    /api/expenses/group/{group_id}/  - Group expenses
    # GET    /api/expenses/recent/            - Five most recent expenses

    path('', include(router.urls)),
]
