from django.contrib import admin

from .models import DisplaySequence


@admin.register(DisplaySequence)
class DisplaySequenceAdmin(admin.ModelAdmin):
    list_display = ('name', 'last_value', 'updated_at')
    search_fields = ('name',)
    readonly_fields = ('updated_at',)
