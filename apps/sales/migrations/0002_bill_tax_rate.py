# Generated migration to keep the tax rate a bill was charged at

import decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("sales", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="bill",
            name="tax_rate",
            field=models.DecimalField(
                decimal_places=4,
                default=decimal.Decimal("0.0000"),
                help_text="Tax rate applied at checkout as a fraction (0.18 for 18%)",
                max_digits=6,
                validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.0000"))],
            ),
        ),
    ]
