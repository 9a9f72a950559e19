def get_coordinator():
    from django.apps import apps

    return apps.get_app_config("payments").coordinator
