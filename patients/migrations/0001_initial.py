from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('contact_number', models.CharField(blank=True, max_length=20)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('address', models.TextField(blank=True)),
                ('has_payroll_deduction', models.BooleanField(default=False, help_text="Treatment costs are deducted from the patient's payroll in monthly instalments")),
                ('company_name', models.CharField(blank=True, help_text='Employer handling payroll deductions (required when payroll deduction is enabled)', max_length=200, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['last_name', 'first_name'], name='patient_name_idx'),
                    models.Index(fields=['company_name'], name='patient_company_idx'),
                ],
            },
        ),
    ]
