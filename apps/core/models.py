"""
Core models for the retail POS.

Holds the operator account model. Operators sign in to the POS and are
either shop administrators (catalog, inventory, reports) or cashiers
(billing and bill history only).
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Extended user model with a POS role.

    Role-based access control is enforced by the permission classes in
    apps.core.permissions.
    """

    # Role choices
    ADMIN = "ADMIN"
    CASHIER = "CASHIER"

    ROLE_CHOICES = [
        (ADMIN, "Administrator"),
        (CASHIER, "Cashier"),
    ]

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=CASHIER,
        help_text="User's role in the shop",
    )

    phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="User's phone number",
    )

    counter_number = models.PositiveIntegerField(
        default=1,
        help_text="Billing counter the user normally operates (printed on receipts)",
    )

    class Meta:
        db_table = "users"
        ordering = ["username"]
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=["role"], name="user_role_idx"),
        ]

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    def is_admin(self):
        """Check if user is a shop administrator."""
        return self.role == self.ADMIN or self.is_superuser

    def is_cashier(self):
        """Check if user is a cashier."""
        return self.role == self.CASHIER

    def can_manage_inventory(self):
        """Check if user can create and edit products."""
        return self.is_admin()

    def can_view_reports(self):
        """Check if user can view sales reports."""
        return self.is_admin()
