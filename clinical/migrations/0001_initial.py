import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('appointments', '0001_initial'),
        ('patients', '0001_initial'),
        ('treatments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ClinicalRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='clinical_record', to='patients.patient')),
            ],
            options={
                'verbose_name': 'Clinical Record',
                'verbose_name_plural': 'Clinical Records',
            },
        ),
        migrations.CreateModel(
            name='ClinicalRecordEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('report', models.TextField(blank=True, help_text="Dentist's report for this treatment")),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.OneToOneField(blank=True, help_text='Appointment whose completion created this entry', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='clinical_entry', to='appointments.appointment')),
                ('record', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='entries', to='clinical.clinicalrecord')),
                ('treatment_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='clinical_entries', to='treatments.treatmenttype')),
            ],
            options={
                'verbose_name': 'Clinical Record Entry',
                'verbose_name_plural': 'Clinical Record Entries',
                'ordering': ['-date', '-created_at'],
                'indexes': [
                    models.Index(fields=['record', 'date'], name='clinical_entry_rec_date_idx'),
                ],
            },
        ),
    ]
