"""Transition validators for visit status changes."""

from typing import TYPE_CHECKING

from . import graph

if TYPE_CHECKING:
    from .models import Visit


BUILTIN_VALIDATORS = [
    "django_clinic_flow.validators.PrescriptionRequiredValidator",
]


class BaseVisitValidator:
    """
    Base class for visit transition validators.

    Register extra validators with CLINIC_FLOW_TRANSITION_VALIDATORS:

        class PaymentBeforeDoctorValidator(BaseVisitValidator):
            def validate(self, visit, from_status, to_status):
                if to_status != 'with_doctor':
                    return [], []
                if visit.payment_amount is None:
                    return ["Payment required before seeing the doctor"], []
                return [], []
    """

    def validate(
        self,
        visit: "Visit",
        from_status: str,
        to_status: str
    ) -> tuple[list[str], list[str]]:
        """
        Validate a status transition.

        Returns:
            Tuple of (hard_blocks, soft_warnings)
        """
        return [], []


class PrescriptionRequiredValidator(BaseVisitValidator):
    """
    Keeps the visit status in step with its prescription.

    - Leaving a doctor-owned status for pharmacy/completed needs a prescription
    - pharmacy -> completed needs the prescription dispensed
    """

    def validate(self, visit, from_status, to_status):
        blocks = []
        prescription = _prescription_or_none(visit)

        if from_status in graph.DOCTOR_STATUSES and to_status in (graph.PHARMACY, graph.COMPLETED):
            if prescription is None:
                blocks.append("A prescription is required before leaving the doctor")
            elif to_status == graph.PHARMACY and not prescription.buy_from_clinic:
                blocks.append("Prescription is not marked for purchase at the clinic pharmacy")

        if from_status == graph.PHARMACY and to_status == graph.COMPLETED:
            if prescription is None or not prescription.dispensed:
                blocks.append("Prescription must be dispensed before completing the visit")

        return blocks, []


def _prescription_or_none(visit):
    from .models import Prescription

    # Query instead of the reverse accessor so a stale cached value is never used
    return Prescription.objects.filter(visit=visit).first()
