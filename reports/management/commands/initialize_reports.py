# reports/management/commands/initialize_reports.py
from django.conf import settings
from django.core.management.base import BaseCommand

from core.models import SystemSetting


class Command(BaseCommand):
    help = 'Initialize the clinic settings printed on exported reports'

    def handle(self, *args, **options):
        settings_to_create = [
            {
                'key': 'clinic_name',
                'value': settings.CLINIC_NAME,
                'description': 'Clinic name for reports and documents'
            },
            {
                'key': 'clinic_address',
                'value': '',
                'description': 'Clinic address for reports and documents'
            },
            {
                'key': 'clinic_phone',
                'value': '',
                'description': 'Clinic phone number for reports and documents'
            },
            {
                'key': 'clinic_email',
                'value': '',
                'description': 'Clinic email for reports and documents'
            },
        ]

        created_count = 0
        updated_count = 0

        for setting_data in settings_to_create:
            setting, created = SystemSetting.objects.get_or_create(
                key=setting_data['key'],
                defaults={
                    'value': setting_data['value'],
                    'description': setting_data['description'],
                    'is_active': True
                }
            )

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"Created setting: {setting_data['key']}"))
            elif not setting.description:
                setting.description = setting_data['description']
                setting.save()
                updated_count += 1
                self.stdout.write(self.style.WARNING(f"Updated setting: {setting_data['key']}"))
            else:
                self.stdout.write(self.style.NOTICE(f"Setting already exists: {setting_data['key']}"))

        self.stdout.write(
            self.style.SUCCESS(
                f"\nReport settings initialized: {created_count} created, {updated_count} updated"
            )
        )
