# treatments/management/commands/seed_treatment_types.py
from django.core.management.base import BaseCommand

from treatments.models import TreatmentType

DEFAULT_TREATMENT_TYPES = [
    'Cleaning',
    'Filling',
    'Root Canal',
    'Extraction',
    'Whitening',
]


class Command(BaseCommand):
    help = 'Create the default treatment types'

    def handle(self, *args, **options):
        self.stdout.write('Creating default treatment types...')

        created_count = 0
        for label in DEFAULT_TREATMENT_TYPES:
            treatment_type, created = TreatmentType.objects.get_or_create(
                label__iexact=label,
                defaults={'label': label}
            )
            if created:
                created_count += 1
                self.stdout.write(f'  Created treatment type: {treatment_type.label}')
            else:
                self.stdout.write(f'  Treatment type already exists: {treatment_type.label}')

        self.stdout.write(self.style.SUCCESS(f'Done: {created_count} treatment type(s) created'))
