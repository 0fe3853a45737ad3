from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'groups'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.GroupViewSet, basename='group')

urlpatterns = [
    # Group ViewSet routes
    # GET    /api/groups/              - List user's groups
    # POST   /api/groups/              - Create group
    # GET    /api/groups/{id}/         - Get group details
    # PATCH  /api/groups/{id}/         - Update / archive / favorite (creator)
    # DELETE /api/groups/{id}/         - Delete group (creator)

    # Custom group actions
    # GET    /api/groups/{id}/members/        - List members
    # POST   /api/groups/{id}/add_members/    - Add members
    # POST   /api/groups/{id}/remove_member/  - Remove member / leave
    # GET    /api/groups/{id}/owes/           - Netted debts between members
    # GET    /api/groups/{id}/stats/          - Totals and contributions
    # GET    /api/groups/{id}/transactions/   - Transactions by status

    path('', include(router.urls)),
]
