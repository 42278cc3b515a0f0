"""
Bill store.

Persists bills and their items and reads them back as BillWithItems, the
value the receipt layer renders.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q, Sum

from apps.core.exceptions import PersistenceError

from . import pricing
from .models import Bill, BillItem

logger = logging.getLogger(__name__)

BILL_NUMBER_PREFIX = "BILL"


@dataclass(frozen=True)
class BillLine:
    product_name: str
    item_number: str
    product_price: Decimal
    discount_percentage: Decimal
    selected_size: Optional[str]
    quantity: int
    total: Decimal

    @property
    def mrp_total(self) -> Decimal:
        return self.product_price * self.quantity

    def as_dict(self):
        return {
            "product_name": self.product_name,
            "item_number": self.item_number,
            "product_price": str(self.product_price),
            "discount_percentage": str(self.discount_percentage),
            "selected_size": self.selected_size,
            "quantity": self.quantity,
            "total": str(self.total),
        }


@dataclass(frozen=True)
class BillWithItems:
    """A bill and its lines, detached from the ORM."""

    id: str
    bill_number: str
    created_at: datetime
    operator_name: str
    counter_number: int
    customer_name: str
    customer_phone: str
    customer_email: str
    payment_method: str
    subtotal: Decimal
    tax: Decimal
    tax_rate: Decimal
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    total: Decimal
    status: str
    reconciliation_warnings: List[str] = field(default_factory=list)
    items: List[BillLine] = field(default_factory=list)

    @classmethod
    def from_bill(cls, bill):
        operator = bill.operator
        return cls(
            id=str(bill.id),
            bill_number=bill.bill_number,
            created_at=bill.created_at,
            operator_name=operator.get_full_name() or operator.get_username(),
            counter_number=bill.counter_number,
            customer_name=bill.customer_name,
            customer_phone=bill.customer_phone,
            customer_email=bill.customer_email,
            payment_method=bill.payment_method,
            subtotal=bill.subtotal,
            tax=bill.tax,
            tax_rate=bill.tax_rate,
            discount_type=bill.discount_type,
            discount_value=bill.discount_value,
            discount_amount=bill.discount_amount,
            total=bill.total,
            status=bill.status,
            reconciliation_warnings=list(bill.reconciliation_warnings or []),
            items=[
                BillLine(
                    product_name=item.product_name,
                    item_number=item.item_number,
                    product_price=item.product_price,
                    discount_percentage=item.discount_percentage,
                    selected_size=item.selected_size or None,
                    quantity=item.quantity,
                    total=item.total,
                )
                for item in bill.items.all()
            ],
        )

    @property
    def payment_method_display(self):
        return dict(Bill.PAYMENT_METHOD_CHOICES).get(self.payment_method, self.payment_method)

    @property
    def total_quantity(self):
        return sum(item.quantity for item in self.items)

    @property
    def total_mrp(self) -> Decimal:
        return sum((item.mrp_total for item in self.items), Decimal("0.00"))

    @property
    def savings(self) -> Decimal:
        """What the customer saved against MRP, product and cart discounts combined."""
        return max(self.total_mrp - self.subtotal + self.discount_amount, Decimal("0.00"))

    def as_dict(self):
        return {
            "id": self.id,
            "bill_number": self.bill_number,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "operator_name": self.operator_name,
            "counter_number": self.counter_number,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "payment_method": self.payment_method,
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "tax_rate": str(self.tax_rate),
            "discount_type": self.discount_type,
            "discount_value": str(self.discount_value),
            "discount_amount": str(self.discount_amount),
            "total": str(self.total),
            "status": self.status,
            "reconciliation_warnings": list(self.reconciliation_warnings),
            "total_quantity": self.total_quantity,
            "items": [item.as_dict() for item in self.items],
        }


class BillStore:
    """Reads and writes bills."""

    @staticmethod
    def next_bill_number():
        """
        Next sequential bill number, e.g. BILL-00000042.

        The unique constraint on bill_number rejects a duplicate if two
        checkouts race for the same number.
        """
        last_bill = (
            Bill.objects.filter(bill_number__startswith=f"{BILL_NUMBER_PREFIX}-")
            .order_by("-bill_number")
            .first()
        )
        if last_bill:
            try:
                last_number = int(last_bill.bill_number.split("-")[-1])
            except (ValueError, IndexError):
                last_number = Bill.objects.count()
        else:
            last_number = 0
        return f"{BILL_NUMBER_PREFIX}-{last_number + 1:08d}"

    @staticmethod
    def insert_bill(**fields):
        """
        Write a bill header.

        Raises:
            PersistenceError: If the database rejects the write.
        """
        try:
            with transaction.atomic():
                bill = Bill(**fields)
                if not bill.bill_number:
                    bill.bill_number = BillStore.next_bill_number()
                bill.save()
        except (IntegrityError, DatabaseError) as e:
            logger.error(f"Failed to save bill: {str(e)}", exc_info=True)
            raise PersistenceError(f"Failed to save bill: {str(e)}")

        logger.info(f"Saved bill {bill.bill_number} ({bill.total})")
        return bill

    @staticmethod
    def insert_bill_items(bill, lines):
        """
        Write the items of a bill in one statement.

        Args:
            bill: The saved Bill.
            lines: Iterable of dicts with the BillItem snapshot fields.

        Raises:
            PersistenceError: If the database rejects the write.
        """
        items = [
            BillItem(bill=bill, position=position, **line)
            for position, line in enumerate(lines, start=1)
        ]
        try:
            with transaction.atomic():
                created = BillItem.objects.bulk_create(items)
        except (IntegrityError, DatabaseError) as e:
            logger.error(f"Failed to save items for bill {bill.bill_number}: {str(e)}", exc_info=True)
            raise PersistenceError(f"Failed to save bill items: {str(e)}")
        return created

    @staticmethod
    def list_bills(search=None, date_from=None, date_to=None, operator=None):
        """
        Bills newest first.

        Args:
            search: Matches bill number, customer name or phone.
            date_from: Only bills created on or after this date.
            date_to: Only bills created on or before this date.
            operator: Only bills processed by this user.
        """
        queryset = Bill.objects.select_related("operator").prefetch_related("items")

        if search:
            queryset = queryset.filter(
                Q(bill_number__icontains=search)
                | Q(customer_name__icontains=search)
                | Q(customer_phone__icontains=search)
            )
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)
        if operator is not None:
            queryset = queryset.filter(operator=operator)

        return queryset.order_by("-created_at")

    @staticmethod
    def get_bill(bill_id):
        try:
            return Bill.objects.select_related("operator").prefetch_related("items").get(id=bill_id)
        except (Bill.DoesNotExist, DjangoValidationError, ValueError):
            return None

    @staticmethod
    def get_bill_with_items(bill_id) -> Optional[BillWithItems]:
        bill = BillStore.get_bill(bill_id)
        if bill is None:
            return None
        return BillWithItems.from_bill(bill)

    @staticmethod
    def summary(date_from=None, date_to=None):
        """
        Sales summary for the admin dashboard.

        Returns revenue, bill count and revenue per payment method for
        completed bills in the date range.
        """
        queryset = Bill.objects.filter(status=Bill.COMPLETED)
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)

        totals = queryset.aggregate(revenue=Sum("total"), bill_count=Count("id"))
        by_payment = (
            queryset.order_by()
            .values("payment_method")
            .annotate(revenue=Sum("total"), bill_count=Count("id"))
            .order_by("payment_method")
        )

        return {
            "date_from": date_from.isoformat() if date_from else None,
            "date_to": date_to.isoformat() if date_to else None,
            "revenue": str(pricing.quantize(totals["revenue"] or 0)),
            "bill_count": totals["bill_count"],
            "by_payment_method": [
                {
                    "payment_method": row["payment_method"],
                    "revenue": str(pricing.quantize(row["revenue"] or 0)),
                    "bill_count": row["bill_count"],
                }
                for row in by_payment
            ],
            "bills_with_warnings": sum(
                1
                for warnings in queryset.values_list("reconciliation_warnings", flat=True)
                if warnings
            ),
        }
