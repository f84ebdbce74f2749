"""Custom exceptions for django-clinic-flow."""


class ClinicFlowError(Exception):
    """Base exception for clinic flow errors."""
    pass


class ValidationError(ClinicFlowError):
    """Raised when a required field is missing or invalid."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)


class InvalidTransition(ClinicFlowError):
    """Raised when a visit cannot move from its current status to the target."""

    def __init__(self, from_status: str, to_status: str, reason: str = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason or f"Cannot transition from '{from_status}' to '{to_status}'"
        super().__init__(self.reason)


class TransitionBlocked(InvalidTransition):
    """Raised when validators block an otherwise allowed transition."""

    def __init__(self, from_status: str, to_status: str, blocks: list[str]):
        self.blocks = blocks
        super().__init__(from_status, to_status, "Transition blocked: " + "; ".join(blocks))


class NotFoundError(ClinicFlowError):
    """Raised when a referenced patient, visit, medicine or prescription is missing."""

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} '{identifier}' not found")


class ConflictError(ClinicFlowError):
    """Raised when a write collides with existing state."""
    pass


class QueueNumberConflict(ConflictError):
    """Raised when a queue number cannot be allocated after retrying."""

    def __init__(self, day, attempts: int):
        self.day = day
        self.attempts = attempts
        super().__init__(f"Could not allocate a queue number for {day} after {attempts} attempts")


class AlreadyDispensedError(ConflictError):
    """Raised when dispensing a prescription that is already dispensed."""

    def __init__(self, prescription_id):
        self.prescription_id = prescription_id
        super().__init__(f"Prescription '{prescription_id}' has already been dispensed")


class ConsultationInProgressError(ConflictError):
    """Raised when a doctor already has a visit in consultation."""

    def __init__(self, doctor, active_visit_id):
        self.doctor = doctor
        self.active_visit_id = active_visit_id
        super().__init__(f"Doctor '{doctor}' already has visit '{active_visit_id}' in consultation")


class DuplicateRecordError(ConflictError):
    """Raised when a visit already has its one-per-visit record."""

    def __init__(self, record: str, visit_id):
        self.record = record
        self.visit_id = visit_id
        super().__init__(f"Visit '{visit_id}' already has a {record}")


class SaleAlreadyPaidError(ConflictError):
    """Raised when settling a sale that is already paid."""

    def __init__(self, sale_id):
        self.sale_id = sale_id
        super().__init__(f"Sale '{sale_id}' is already paid")


class ReferentialIntegrityError(ClinicFlowError):
    """Raised when deleting a record that other records still reference."""
    pass


class ConfigurationError(ClinicFlowError):
    """Raised when a configured dotted path cannot be loaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load '{path}': {reason}")
