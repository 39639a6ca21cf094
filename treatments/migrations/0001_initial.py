from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.db.models.functions.text
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='TreatmentType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('label', models.CharField(max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['label'],
                'constraints': [
                    models.UniqueConstraint(django.db.models.functions.text.Lower('label'), name='treatment_type_label_ci_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PriceListItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('price', models.DecimalField(decimal_places=2, help_text='Price charged per completed appointment', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('treatment_type', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='price_item', to='treatments.treatmenttype')),
            ],
            options={
                'verbose_name': 'Price List Item',
                'verbose_name_plural': 'Price List',
                'ordering': ['treatment_type__label'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('price__gt', 0)), name='price_list_item_price_positive'),
                ],
            },
        ),
    ]
