"""
django-clinic-flow: Visit lifecycle for a station-based eye clinic.

Provides:
- Visit: one patient's day at the clinic, moved between stations by status
- Per-day queue numbers allocated atomically
- Eye measurements, prescriptions, pharmacy dispensing and sales
- Medicine stock ledger with clamp-at-zero decrements
- Request-scoped station roles (reception, eye_measurement, doctor, pharmacy, admin)
"""

__version__ = "0.1.0"

default_app_config = "django_clinic_flow.apps.DjangoClinicFlowConfig"
