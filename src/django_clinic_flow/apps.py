from django.apps import AppConfig


class DjangoClinicFlowConfig(AppConfig):
    name = "django_clinic_flow"
    verbose_name = "Clinic Flow"
    default_auto_field = "django.db.models.BigAutoField"
