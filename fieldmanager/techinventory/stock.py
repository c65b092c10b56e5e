"""
Quantity rules for technician inventory.

``use`` subtracts and stops at zero, ``restock`` and ``return`` add,
``adjustment`` sets the quantity outright. Every change is written to the
transaction log.
"""
import logging

from django.db import transaction
from django.utils import timezone

from .models import TechnicianInventory, TechnicianInventoryTransaction

logger = logging.getLogger('fieldmanager.techinventory')

TRANSACTION_TYPES = ('use', 'restock', 'return', 'adjustment')


class InventoryError(ValueError):
    pass


def compute_new_quantity(transaction_type, current, quantity):
    if transaction_type not in TRANSACTION_TYPES:
        raise InventoryError(f"Unknown transaction type '{transaction_type}'")
    if quantity < 0:
        raise InventoryError('Quantity cannot be negative')
    if transaction_type == 'use':
        return max(current - quantity, 0)
    if transaction_type in ('restock', 'return'):
        return current + quantity
    return quantity


def is_low_stock(quantity, min_quantity):
    return bool(min_quantity) and quantity <= min_quantity


def apply_transaction(inventory, transaction_type, quantity, performed_by=None, notes=''):
    """
    Apply a quantity change to an inventory item and log it.

    The item is re-read under a row lock so concurrent changes serialize.
    """
    if transaction_type != 'adjustment' and quantity == 0:
        raise InventoryError('Quantity must be greater than zero')

    with transaction.atomic():
        item = TechnicianInventory.objects.select_for_update().get(pk=inventory.pk)
        previous = item.current_quantity
        new = compute_new_quantity(transaction_type, previous, quantity)

        now = timezone.now()
        item.current_quantity = new
        item.is_low_stock = is_low_stock(new, item.min_quantity)
        if transaction_type == 'use':
            item.last_used_at = now
        elif transaction_type == 'restock':
            item.last_restocked_at = now
        item.save()

        log = TechnicianInventoryTransaction.objects.create(
            organization_id=item.organization_id,
            inventory=item,
            user_id=item.user_id,
            transaction_type=transaction_type,
            quantity=quantity,
            previous_quantity=previous,
            new_quantity=new,
            notes=notes or '',
            performed_by=performed_by,
        )

    logger.info(f"Inventory {item.id} {transaction_type} {quantity}: {previous} -> {new}")
    if inventory is not item:
        inventory.refresh_from_db()
    return log


def assign_part(organization, user, part, assigned_quantity, performed_by=None, vehicle=None,
                min_quantity=None, location=None, notes=None):
    """
    Assign a part to a technician.

    Re-assigning a part the technician already has updates the assignment
    and resets the current quantity to the assigned quantity. Returns
    ``(item, created)``.
    """
    with transaction.atomic():
        item, created = TechnicianInventory.objects.select_for_update().get_or_create(
            user=user, part=part,
            defaults={'organization': organization, 'assigned_quantity': assigned_quantity},
        )
        item.organization = organization
        item.assigned_quantity = assigned_quantity
        item.is_active = True
        if vehicle is not None:
            item.vehicle = vehicle
        if min_quantity is not None:
            item.min_quantity = min_quantity
        if location is not None:
            item.location = location
        if notes is not None:
            item.notes = notes
        item.save()

        transaction_type = 'restock' if created and assigned_quantity > 0 else 'adjustment'
        apply_transaction(item, transaction_type, assigned_quantity, performed_by=performed_by,
                          notes='Initial assignment' if created else 'Re-assigned')
    return item, created


def evaluate_counts(expected_by_part, counted):
    """
    Compare counted quantities with expected ones.

    ``expected_by_part`` maps part id to expected quantity, ``counted`` is a
    list of ``{part_id, actual_qty}``. Returns the detail rows (with
    ``expected_qty`` and ``matches``) and the number of discrepancies.
    """
    details = []
    discrepancies = 0
    for entry in counted:
        part_id = entry['part_id']
        expected = expected_by_part[part_id]
        actual = entry['actual_qty']
        matches = expected == actual
        if not matches:
            discrepancies += 1
        details.append({
            'part_id': part_id,
            'expected_qty': expected,
            'actual_qty': actual,
            'matches': matches,
        })
    return details, discrepancies
