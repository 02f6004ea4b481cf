"""
Base classes for Unfold admin in Consignman.

Provides BaseModelAdmin, BaseTabularInline and ReadOnlyTabularInline with
compact textareas, plus the quantity/money/date formatters used in lists.
"""

from decimal import Decimal

from django import forms
from django.contrib.admin.widgets import AdminTextareaWidget
from unfold.admin import ModelAdmin, TabularInline
from unfold.widgets import UnfoldAdminTextareaWidget

TEXTAREA_WIDGETS = (forms.Textarea, AdminTextareaWidget, UnfoldAdminTextareaWidget)


def format_quantity(value: Decimal | None, decimal_places: int = 3) -> str:
    """
    Format a counted/replenish quantity, dropping trailing zeros.

    Examples:
        Decimal('12.000') → "12"
        Decimal('2.500')  → "2.5"
    """
    if value is None:
        return "-"
    text = f"{value:.{decimal_places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_money(value: Decimal | None) -> str:
    """Format a unit price with two decimals."""
    if value is None:
        return "-"
    return f"{value:.2f}"


def format_datetime(dt) -> str:
    """Format datetime as DD/MM/AA · HH:MM."""
    if dt:
        return dt.strftime('%d/%m/%y · %H:%M')
    return '-'


def format_date(d) -> str:
    """Format date as DD/MM/AA."""
    if d:
        return d.strftime('%d/%m/%y')
    return '-'


def _compact_textarea(widget) -> None:
    """Halve the rows of a textarea widget (minimum 1)."""
    try:
        rows = int(widget.attrs.get("rows", 4))
    except (ValueError, TypeError):
        rows = 4
    widget.attrs["rows"] = max(1, rows // 2)


class BaseTabularInline(TabularInline):
    """TabularInline with compact textareas (notes rows)."""

    def get_formset(self, request, obj=None, **kwargs):
        formset = super().get_formset(request, obj, **kwargs)
        for field in formset.form.base_fields.values():
            if isinstance(field.widget, TEXTAREA_WIDGETS):
                _compact_textarea(field.widget)
        return formset


class ReadOnlyTabularInline(BaseTabularInline):
    """Inline for rows that are only written by the consignment service."""

    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class BaseModelAdmin(ModelAdmin):
    """
    ModelAdmin with compact textareas.

    - Half the rows
    - Max width of 42rem (aligned with other form fields)
    """

    def get_form(self, request, obj=None, **kwargs):
        form = super().get_form(request, obj, **kwargs)
        for field in form.base_fields.values():
            widget = field.widget
            if not isinstance(widget, TEXTAREA_WIDGETS):
                continue
            style_parts = [
                s for s in widget.attrs.get("style", "").split(";")
                if s.strip() and "width" not in s.lower()
            ]
            style_parts.append("width: 100%; max-width: 42rem")
            widget.attrs["style"] = "; ".join(s.strip() for s in style_parts)
            _compact_textarea(widget)
        return form
