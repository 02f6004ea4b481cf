"""Django app configuration for Consignman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class ConsignmanConfig(AppConfig):
    """Configuration for Consignman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "consignman"
    verbose_name = _("Consignação")
