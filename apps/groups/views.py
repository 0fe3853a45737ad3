from drf_spectacular.utils import extend_schema
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination

from .models import Group
from .serializers import (
    GroupSerializer,
    GroupCreateSerializer,
    GroupUpdateSerializer,
    GroupListSerializer,
    GroupMemberSerializer,
    AddMembersSerializer,
    RemoveMemberSerializer,
    GroupOweSerializer,
    GroupStatsSerializer,
    GroupTransactionsSerializer,
)
from .permissions import IsGroupMember

from apps.groups.services import (
    create_group,
    update_group,
    delete_group,
    add_members,
    remove_member,
    get_group_members,
    calculate_group_owes,
    get_group_stats,
    get_group_transactions,
)


class GroupPagination(PageNumberPagination):
    """Custom pagination for groups."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class GroupViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Group operations.

    All business logic is handled by services; domain errors are rendered
    by the API exception handler.

    list: Groups the user is a member of
    create: Create a new group (creator becomes owner)
    retrieve: Get a specific group
    partial_update: Rename, archive or favorite a group (creator only)
    destroy: Delete a group (creator only)
    """

    serializer_class = GroupSerializer
    permission_classes = [IsAuthenticated, IsGroupMember]
    pagination_class = GroupPagination
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        """Return only groups where user is a member."""
        user = self.request.user
        return Group.objects.filter(
            memberships__user=user
        ).select_related('created_by').prefetch_related('memberships').distinct()

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return GroupListSerializer
        elif self.action == 'create':
            return GroupCreateSerializer
        return GroupSerializer

    def create(self, request, *args, **kwargs):
        """Create a new group."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group = create_group(
            name=serializer.validated_data['name'],
            creator=request.user,
            description=serializer.validated_data.get('description', ''),
            member_ids=serializer.validated_data.get('member_ids'),
        )

        output_serializer = GroupSerializer(group, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        """Update group details."""
        group = self.get_object()
        serializer = GroupUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group = update_group(group_id=group.id, user=request.user, **serializer.validated_data)
        return Response(GroupSerializer(group, context={'request': request}).data)

    def destroy(self, request, *args, **kwargs):
        """Delete a group."""
        group = self.get_object()
        delete_group(group_id=group.id, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get'])
    def members(self, request, pk=None):
        """Get all members of the group."""
        group = self.get_object()
        memberships = get_group_members(group_id=group.id)
        serializer = GroupMemberSerializer(memberships, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['post'])
    def add_members(self, request, pk=None):
        """Add people to the group."""
        group = self.get_object()
        serializer = AddMembersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        memberships = add_members(
            group_id=group.id,
            user_ids=serializer.validated_data['user_ids'],
            added_by=request.user
        )
        output_serializer = GroupMemberSerializer(memberships, many=True)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def remove_member(self, request, pk=None):
        """Remove a member (or leave when removing yourself)."""
        group = self.get_object()
        serializer = RemoveMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        remove_member(
            group_id=group.id,
            user_id=serializer.validated_data['user_id'],
            removed_by=request.user
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(responses={200: GroupOweSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def owes(self, request, pk=None):
        """Who still owes whom, netted per pair of members."""
        group = self.get_object()
        owes = calculate_group_owes(group_id=group.id, user=request.user)
        return Response(GroupOweSerializer(owes, many=True).data)

    @extend_schema(responses={200: GroupStatsSerializer})
    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        group = self.get_object()
        stats = get_group_stats(group_id=group.id, user=request.user)
        return Response(GroupStatsSerializer(stats).data)

    @extend_schema(responses={200: GroupTransactionsSerializer})
    @action(detail=True, methods=['get'])
    def transactions(self, request, pk=None):
        """Transactions of the group's expenses by status."""
        group = self.get_object()
        grouped = get_group_transactions(group_id=group.id, user=request.user)
        return Response(GroupTransactionsSerializer(grouped).data)
