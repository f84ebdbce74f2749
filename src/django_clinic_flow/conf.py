"""Configuration helpers for django-clinic-flow."""

from functools import lru_cache
from importlib import import_module

from django.conf import settings

from .exceptions import ConfigurationError


DEFAULTS = {
    "QUEUE_RETRIES": 1,
    "TRANSITION_VALIDATORS": [],
    "PRINT_BACKEND": "django_clinic_flow.printing.ConsolePrintBackend",
    "CLINIC_NAME": "Eye Care Clinic",
}


def get_setting(name: str, default=None):
    """Get a setting with CLINIC_FLOW_ prefix."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"CLINIC_FLOW_{name}", default)


def import_class(dotted_path: str, base_class: type) -> type:
    """
    Import a class from a dotted path and check it subclasses base_class.

    Raises ConfigurationError for bad paths, missing classes or wrong types.
    """
    try:
        module_path, class_name = dotted_path.rsplit('.', 1)
    except ValueError:
        raise ConfigurationError(dotted_path, "Invalid dotted path format")

    try:
        module = import_module(module_path)
    except ImportError as e:
        raise ConfigurationError(dotted_path, f"Cannot import module: {e}")

    try:
        klass = getattr(module, class_name)
    except AttributeError:
        raise ConfigurationError(dotted_path, f"Class '{class_name}' not found in module")

    if not isinstance(klass, type) or not issubclass(klass, base_class):
        raise ConfigurationError(
            dotted_path,
            f"'{class_name}' must be a subclass of {base_class.__name__}"
        )

    return klass


@lru_cache(maxsize=128)
def load_validator(dotted_path: str):
    """Import and instantiate a transition validator from dotted path."""
    from .validators import BaseVisitValidator

    return import_class(dotted_path, BaseVisitValidator)()


def get_transition_validators() -> list:
    """
    Load the built-in validators followed by CLINIC_FLOW_TRANSITION_VALIDATORS.
    """
    from .validators import BUILTIN_VALIDATORS

    paths = list(BUILTIN_VALIDATORS) + list(get_setting("TRANSITION_VALIDATORS") or [])
    return [load_validator(path) for path in paths]


def load_print_backend():
    """Instantiate the configured print backend."""
    from .printing import BasePrintBackend

    path = get_setting("PRINT_BACKEND")
    return import_class(path, BasePrintBackend)()


def clear_caches():
    """Clear the validator loading cache. Useful for testing."""
    load_validator.cache_clear()
