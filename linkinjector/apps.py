from django.apps import AppConfig


class LinkInjectorConfig(AppConfig):
    """Configuration for the linkinjector Django app."""

    name = 'linkinjector'
    verbose_name = 'Internal link injector'
