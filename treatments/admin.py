# treatments/admin.py
from django.contrib import admin

from .models import TreatmentType, PriceListItem


class PriceListItemInline(admin.StackedInline):
    model = PriceListItem
    extra = 0
    max_num = 1
    fields = ['price']


@admin.register(TreatmentType)
class TreatmentTypeAdmin(admin.ModelAdmin):
    list_display = ['label', 'price_display', 'created_at']
    search_fields = ['label']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [PriceListItemInline]

    def price_display(self, obj):
        item = getattr(obj, 'price_item', None)
        return item.price_display if item else '-'
    price_display.short_description = 'Price'

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('price_item')


@admin.register(PriceListItem)
class PriceListItemAdmin(admin.ModelAdmin):
    list_display = ['treatment_type', 'price_display', 'updated_at']
    search_fields = ['treatment_type__label']
    readonly_fields = ['created_at', 'updated_at']
    list_select_related = ['treatment_type']
