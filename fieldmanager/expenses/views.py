import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.cache import cache
from django.db.models import Count
from django.shortcuts import get_object_or_404
from django.utils import timezone
from fieldmanager.core.cache_utils import (
    make_namespaced_key, EXPENSE_CATEGORIES_NAMESPACE, EXPENSE_CATEGORIES_CACHE_TTL
)
from fieldmanager.core.events import broadcast_event
from fieldmanager.core.utils import create_audit_log, is_manager_or_admin, organization_required
from .models import ExpenseCategory, Expense
from .serializers import ExpenseCategorySerializer, ExpenseSerializer
from .filters import ExpenseFilter
from .defaults import seed_default_categories

logger = logging.getLogger('fieldmanager.expenses')


# Expense category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def expense_category_list_create(request):
    """
    List expense categories or create a new one (create requires manager).

    The first listing for an organization seeds the default categories.
    """
    organization = request.user.organization
    if request.method == 'GET':
        if not ExpenseCategory.objects.filter(organization=organization).exists():
            seed_default_categories(organization)

        include_inactive = request.query_params.get('include_inactive', '').lower() in ('true', '1')
        cache_key = make_namespaced_key(EXPENSE_CATEGORIES_NAMESPACE, organization.id, include_inactive)
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            return Response(cached_data)

        categories = ExpenseCategory.objects.filter(organization=organization).annotate(
            expense_count=Count('expenses')
        )
        if not include_inactive:
            categories = categories.filter(is_active=True)
        response_data = ExpenseCategorySerializer(categories, many=True).data
        cache.set(cache_key, response_data, EXPENSE_CATEGORIES_CACHE_TTL)
        return Response(response_data)

    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only managers can create expense categories'}, status=status.HTTP_403_FORBIDDEN)

    serializer = ExpenseCategorySerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        category = serializer.save(organization=organization)
        logger.info(f"Expense category '{category.name}' created by {request.user.username}")
        create_audit_log(request, 'create', 'ExpenseCategory', category.id, object_name=category.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def expense_category_detail(request, pk):
    """
    Retrieve, update or delete an expense category.

    Default categories cannot be deleted; categories with expenses are
    deactivated instead of deleted.
    """
    organization = request.user.organization
    category = get_object_or_404(ExpenseCategory, pk=pk, organization=organization)

    if request.method == 'GET':
        return Response(ExpenseCategorySerializer(category).data)

    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only managers can modify expense categories'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = ExpenseCategorySerializer(category, data=request.data, partial=request.method == 'PATCH',
                                               context={'organization': organization})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'ExpenseCategory', category.id, changes=request.data,
                             object_name=category.name)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    if category.is_default:
        return Response({'error': 'Default categories cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)

    if category.expenses.exists():
        category.is_active = False
        category.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"Expense category {pk} has expenses, deactivated instead of deleted")
        create_audit_log(request, 'update', 'ExpenseCategory', category.id, changes={'is_active': False},
                         object_name=category.name)
        return Response({'message': 'Category has expenses and was deactivated',
                         'category': ExpenseCategorySerializer(category).data})

    create_audit_log(request, 'delete', 'ExpenseCategory', category.id, object_name=category.name)
    category.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Expense views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def expense_list_create(request):
    """List expenses (own only for non-managers) or record a new expense"""
    organization = request.user.organization
    if request.method == 'GET':
        queryset = Expense.objects.select_related('category', 'vehicle', 'user').filter(organization=organization)
        if not is_manager_or_admin(request.user):
            queryset = queryset.filter(user=request.user)
        filterset = ExpenseFilter(request.query_params, queryset=queryset)
        return Response(ExpenseSerializer(filterset.qs, many=True).data)

    serializer = ExpenseSerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        expense = serializer.save(organization=organization, user=request.user)
        logger.info(f"Expense {expense.id} ({expense.amount}) recorded by {request.user.username}")
        create_audit_log(request, 'create', 'Expense', expense.id, changes={'amount': str(expense.amount)},
                         object_name=expense.category.name)
        broadcast_event(organization, 'expense_updated', {'expense_id': expense.id})
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def expense_detail(request, pk):
    """Retrieve, update or delete an expense (owner or manager)"""
    organization = request.user.organization
    expense = get_object_or_404(Expense.objects.select_related('category'), pk=pk, organization=organization)
    manager = is_manager_or_admin(request.user)

    if not manager and expense.user_id != request.user.id:
        return Response({'error': 'You can only access your own expenses'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'GET':
        return Response(ExpenseSerializer(expense).data)

    if expense.status != 'pending' and not manager:
        return Response({'error': 'Reviewed expenses can only be changed by managers'}, status=status.HTTP_400_BAD_REQUEST)

    if request.method in ('PUT', 'PATCH'):
        serializer = ExpenseSerializer(expense, data=request.data, partial=request.method == 'PATCH',
                                       context={'organization': organization})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Expense', expense.id, changes=request.data)
            broadcast_event(organization, 'expense_updated', {'expense_id': expense.id})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        expense_id = expense.id
        create_audit_log(request, 'delete', 'Expense', expense_id, changes={'amount': str(expense.amount)})
        expense.delete()
        broadcast_event(organization, 'expense_updated', {'expense_id': expense_id})
        return Response(status=status.HTTP_204_NO_CONTENT)


def _review_expense(request, pk, new_status, action):
    organization = request.user.organization
    expense = get_object_or_404(Expense, pk=pk, organization=organization)
    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only managers can review expenses'}, status=status.HTTP_403_FORBIDDEN)
    if expense.status != 'pending':
        return Response({'error': f'Expense is already {expense.status}'}, status=status.HTTP_400_BAD_REQUEST)

    expense.status = new_status
    expense.reviewed_by = request.user
    expense.reviewed_at = timezone.now()
    expense.save(update_fields=['status', 'reviewed_by', 'reviewed_at', 'updated_at'])
    logger.info(f"Expense {pk} {new_status} by {request.user.username}")
    create_audit_log(request, action, 'Expense', expense.id, changes={'status': new_status})
    broadcast_event(organization, 'expense_updated', {'expense_id': expense.id})
    return Response(ExpenseSerializer(expense).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def expense_approve(request, pk):
    """Approve a pending expense"""
    return _review_expense(request, pk, 'approved', 'expense_approve')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def expense_reject(request, pk):
    """Reject a pending expense"""
    return _review_expense(request, pk, 'rejected', 'expense_reject')
