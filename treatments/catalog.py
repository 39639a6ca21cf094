# treatments/catalog.py
from django.db import DEFAULT_DB_ALIAS

from .models import PriceListItem


class PriceCatalog:
    """
    Read-only lookup from treatment type id to current price.

    A treatment type without a price list entry is a valid state:
    ``price_for`` returns None for it instead of raising.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def find_all(self):
        """Load the whole catalog in one query as {treatment_type_id: price}"""
        return dict(
            PriceListItem.objects.using(self.using).values_list('treatment_type_id', 'price')
        )

    def price_for(self, treatment_type_id):
        return (
            PriceListItem.objects.using(self.using)
            .filter(treatment_type_id=treatment_type_id)
            .values_list('price', flat=True)
            .first()
        )
