from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Report',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('report_type', models.CharField(choices=[('daily', 'Daily'), ('weekly', 'Weekly'), ('monthly', 'Monthly'), ('payrollDeduction', 'Payroll Deduction')], max_length=20)),
                ('date', models.DateField(help_text='Reference date the report was generated for')),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('data', models.JSONField(blank=True, default=list)),
                ('company_name', models.CharField(blank=True, help_text='Company filter (payroll deduction reports only)', max_length=200, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at', '-pk'],
                'indexes': [
                    models.Index(fields=['report_type', 'created_at'], name='report_type_created_idx'),
                ],
            },
        ),
    ]
