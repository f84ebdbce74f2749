"""Tests for printable documents and the print seam."""

import logging
from unittest import mock

import pytest

from django_clinic_flow.conf import load_print_backend
from django_clinic_flow.exceptions import ConfigurationError
from django_clinic_flow.models import PharmacySale, Prescription, Visit
from django_clinic_flow.printing import (
    ConsolePrintBackend,
    LocMemPrintBackend,
    print_document,
    render_document,
)
from django_clinic_flow.services import create_prescription, create_visit, dispense


@pytest.mark.django_db
class TestRenderDocuments:
    """Tests for rendering each document kind."""

    def test_reception_slip(self, visit):
        html = render_document("reception_slip", visit)

        assert "Eye Care Clinic" in html
        assert "Amina Khan" in html
        assert "Dr. Smith" in html
        assert 'class="number">1<' in html

    def test_clinic_name_setting(self, visit, settings):
        settings.CLINIC_FLOW_CLINIC_NAME = "Lahore Vision Centre"

        assert "Lahore Vision Centre" in render_document("reception_slip", visit)

    def test_prescription_sheet(self, prescribed_visit):
        prescription = Prescription.objects.get(visit=prescribed_visit)

        html = render_document("prescription", prescription)

        assert "Bacterial conjunctivitis" in html
        assert "Moxifloxacin Eye Drops" in html
        assert "1 drop 4x daily" in html

    def test_pharmacy_receipt(self, prescribed_visit, pharmacy_ctx, medicines):
        dispense(
            pharmacy_ctx,
            Prescription.objects.get(visit=prescribed_visit).pk,
            sale_items=[{"medicine_id": medicines["drops"].pk, "quantity": 2}],
            payment_method="cash",
        )
        sale = PharmacySale.objects.get()

        html = render_document("pharmacy_receipt", sale)

        assert "Moxifloxacin Eye Drops" in html
        assert "700.00" in html
        assert "Paula Pharmacy" in html

    def test_unknown_kind(self, visit):
        with pytest.raises(ValueError):
            render_document("invoice", visit)


@pytest.mark.django_db
class TestPrintSeam:
    """Printing runs after commit and never breaks the data change."""

    def test_slip_printed_after_commit(self, reception_ctx, patient, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            visit = create_visit(reception_ctx, patient.pk, print_slip=True)

        assert len(callbacks) == 1
        assert len(LocMemPrintBackend.outbox) == 1
        document = LocMemPrintBackend.outbox[0]
        assert document.kind == "reception_slip"
        assert document.object_id == str(visit.pk)

    def test_nothing_printed_without_flag(self, reception_ctx, patient, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            create_visit(reception_ctx, patient.pk)

        assert callbacks == []
        assert LocMemPrintBackend.outbox == []

    def test_print_failure_keeps_visit(self, reception_ctx, patient, django_capture_on_commit_callbacks, caplog):
        """A broken printer is logged; the visit stays persisted."""
        with mock.patch.object(LocMemPrintBackend, "send", side_effect=OSError("printer offline")):
            with caplog.at_level(logging.WARNING, logger="django_clinic_flow.printing"):
                with django_capture_on_commit_callbacks(execute=True):
                    visit = create_visit(reception_ctx, patient.pk, print_slip=True)

        assert Visit.objects.filter(pk=visit.pk).exists()
        assert "printer offline" in caplog.text
        assert LocMemPrintBackend.outbox == []

    def test_render_failure_returns_none(self, visit):
        with mock.patch(
            "django_clinic_flow.printing.render_to_string", side_effect=RuntimeError("bad template")
        ):
            assert print_document("reception_slip", visit) is None

    def test_prescription_sheet_and_receipt_flags(
        self, visit_with_doctor, doctor_ctx, pharmacy_ctx, medicines, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            create_prescription(
                doctor_ctx,
                visit_with_doctor.pk,
                diagnosis="Dry eye",
                medicines=[{"medicine_id": medicines["tears"].pk, "quantity": 1, "dosage": "4x daily"}],
                print_sheet=True,
            )
        with django_capture_on_commit_callbacks(execute=True):
            dispense(
                pharmacy_ctx,
                Prescription.objects.get(visit=visit_with_doctor).pk,
                sale_items=[{"medicine_id": medicines["tears"].pk, "quantity": 1}],
                print_receipt=True,
            )

        assert [d.kind for d in LocMemPrintBackend.outbox] == ["prescription", "pharmacy_receipt"]


class TestPrintBackendConfig:
    def test_loads_configured_backend(self):
        assert isinstance(load_print_backend(), LocMemPrintBackend)

    def test_default_is_console(self, settings):
        del settings.CLINIC_FLOW_PRINT_BACKEND

        assert isinstance(load_print_backend(), ConsolePrintBackend)

    @pytest.mark.parametrize(
        "path",
        [
            "noseparator",
            "django_clinic_flow.nope.Backend",
            "django_clinic_flow.printing.Missing",
            "django_clinic_flow.models.Visit",
        ],
    )
    def test_bad_backend_path(self, settings, path):
        settings.CLINIC_FLOW_PRINT_BACKEND = path

        with pytest.raises(ConfigurationError):
            load_print_backend()
