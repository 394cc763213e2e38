# cashiering/apps.py
"""Cashiering app configuration."""

from django.apps import AppConfig


class CashieringConfig(AppConfig):
    """Configuration for the cashiering app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "cashiering"
    verbose_name = "Cashiering"
