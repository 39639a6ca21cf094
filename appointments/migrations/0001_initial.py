from decimal import Decimal

import appointments.models
import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('patients', '0001_initial'),
        ('treatments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(help_text='Date of appointment')),
                ('time', models.TimeField(help_text='Start time, aligned to 30-minute slots', validators=[appointments.models.validate_slot_time])),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='scheduled', max_length=20)),
                ('notes', models.TextField(blank=True, help_text='Becomes the clinical report on completion', null=True)),
                ('payroll_deduction_months', models.PositiveIntegerField(blank=True, help_text='Number of monthly instalments', null=True)),
                ('payroll_deduction_amount', models.DecimalField(blank=True, decimal_places=2, help_text='Total amount deducted over the instalment months', max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(blank=True, help_text='Required before the appointment can be completed', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='appointments', to='patients.patient')),
                ('treatment_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='treatments.treatmenttype')),
            ],
            options={
                'ordering': ['date', 'time'],
                'indexes': [
                    models.Index(fields=['status', 'date'], name='appt_status_date_idx'),
                    models.Index(fields=['patient'], name='appt_patient_idx'),
                    models.Index(fields=['date', 'time'], name='appt_date_time_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(models.Q(('status', 'completed'), _negated=True), ('patient__isnull', False), _connector='OR'), name='appt_completed_requires_patient'),
                ],
            },
        ),
    ]
