import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import IntegrityError, transaction
from django.utils import timezone
from fieldmanager.core.utils import create_audit_log, is_manager_or_admin, organization_required
from .models import Customer, Lead, Invoice
from .serializers import CustomerSerializer, LeadSerializer, InvoiceSerializer
from .filters import CustomerFilter, LeadFilter, InvoiceFilter

logger = logging.getLogger('fieldmanager.crm')


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def customer_list_create(request):
    """List the organization's customers or create a new customer"""
    if request.method == 'GET':
        queryset = Customer.objects.filter(organization=request.user.organization)
        filterset = CustomerFilter(request.query_params, queryset=queryset)
        serializer = CustomerSerializer(filterset.qs, many=True)
        return Response(serializer.data)

    serializer = CustomerSerializer(data=request.data)
    if serializer.is_valid():
        customer = serializer.save(organization=request.user.organization)
        logger.info(f"Customer '{customer.name}' created by {request.user.username}")
        create_audit_log(request, 'create', 'Customer', customer.id, object_name=customer.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk, organization=request.user.organization)

    if request.method == 'GET':
        return Response(CustomerSerializer(customer).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'Customer', customer.id, changes=request.data, object_name=customer.name)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not is_manager_or_admin(request.user):
            return Response({'error': 'Only managers can delete customers'}, status=status.HTTP_403_FORBIDDEN)
        create_audit_log(request, 'delete', 'Customer', customer.id, object_name=customer.name)
        customer.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Lead views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def lead_list_create(request):
    """List the organization's leads or create a new lead"""
    if request.method == 'GET':
        queryset = Lead.objects.filter(organization=request.user.organization)
        filterset = LeadFilter(request.query_params, queryset=queryset)
        serializer = LeadSerializer(filterset.qs, many=True)
        return Response(serializer.data)

    serializer = LeadSerializer(data=request.data)
    if serializer.is_valid():
        lead = serializer.save(organization=request.user.organization)
        logger.info(f"Lead '{lead.name}' created by {request.user.username}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def lead_detail(request, pk):
    """Retrieve, update or delete a lead"""
    lead = get_object_or_404(Lead, pk=pk, organization=request.user.organization)

    if request.method == 'GET':
        return Response(LeadSerializer(lead).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = LeadSerializer(lead, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        lead.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Invoice views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@organization_required
def invoice_list_create(request):
    """List the organization's invoices or create a new invoice"""
    organization = request.user.organization
    if request.method == 'GET':
        queryset = Invoice.objects.select_related('customer').filter(organization=organization)
        filterset = InvoiceFilter(request.query_params, queryset=queryset)
        serializer = InvoiceSerializer(filterset.qs, many=True)
        return Response(serializer.data)

    serializer = InvoiceSerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        try:
            with transaction.atomic():
                invoice = serializer.save(organization=organization, created_by=request.user)
        except IntegrityError as e:
            logger.error(f"IntegrityError creating invoice: {str(e)}", exc_info=True)
            return Response({'error': 'An invoice with this number already exists'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Invoice {invoice.invoice_number} created by {request.user.username}")
        create_audit_log(request, 'create', 'Invoice', invoice.id, object_reference=invoice.invoice_number)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def invoice_detail(request, pk):
    """Retrieve, update or delete an invoice"""
    organization = request.user.organization
    invoice = get_object_or_404(Invoice, pk=pk, organization=organization)

    if request.method == 'GET':
        return Response(InvoiceSerializer(invoice).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = InvoiceSerializer(invoice, data=request.data, partial=request.method == 'PATCH',
                                       context={'organization': organization})
        if serializer.is_valid():
            try:
                with transaction.atomic():
                    serializer.save()
            except IntegrityError:
                return Response({'error': 'An invoice with this number already exists'}, status=status.HTTP_400_BAD_REQUEST)
            create_audit_log(request, 'update', 'Invoice', invoice.id, changes=request.data,
                             object_reference=invoice.invoice_number)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not is_manager_or_admin(request.user):
            return Response({'error': 'Only managers can delete invoices'}, status=status.HTTP_403_FORBIDDEN)
        create_audit_log(request, 'delete', 'Invoice', invoice.id, object_reference=invoice.invoice_number)
        invoice.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def invoice_mark_paid(request, pk):
    """Mark an invoice as paid"""
    invoice = get_object_or_404(Invoice, pk=pk, organization=request.user.organization)
    if invoice.status in ('paid', 'refunded', 'cancelled'):
        return Response({'error': f'Invoice is already {invoice.status}'}, status=status.HTTP_400_BAD_REQUEST)

    invoice.status = 'paid'
    invoice.paid_at = timezone.now()
    invoice.save(update_fields=['status', 'paid_at', 'updated_at'])
    logger.info(f"Invoice {invoice.invoice_number} marked paid by {request.user.username}")
    create_audit_log(request, 'update', 'Invoice', invoice.id, changes={'status': 'paid'},
                     object_reference=invoice.invoice_number)
    return Response(InvoiceSerializer(invoice).data)
