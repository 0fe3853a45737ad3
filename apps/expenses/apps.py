from django.apps import AppConfig


class ExpensesConfig(AppConfig):
    name = 'apps.expenses'
    verbose_name = 'Expenses'

    def ready(self):
        # Connect notification receivers
        from . import notifications  # noqa: F401
