# backend/tests/unit/test_availability_engine.py
"""
Unit tests for AvailabilityEngine.

Clinic "now" is Monday 2025-01-13 10:00; 2025-01-20 is the next Monday.
"""

from datetime import datetime

import pytest
import pytz

from app.core.constants import REASON_BLOCKED, REASON_OCCUPIED
from app.core.enums import ActorRole, AppointmentStatus
from app.core.exceptions import (
    AvailabilityCalculationException,
    DateDisplacementException,
    ValidationException,
)
from tests._utils.scheduling import (
    DOCTOR,
    ORG,
    TODAY,
    appointment,
    block,
    interval,
    policy_document,
)

pytestmark = pytest.mark.unit

MONDAY = "2025-01-20"


def _times(slots, available=None):
    return [
        slot.start_time for slot in slots if available is None or slot.available == available
    ]


@pytest.fixture
def engine(stack):
    stack.schedule_repo.intervals.append(interval(1, "09:00", "17:00"))
    return stack.engine


class TestGrid:
    def test_full_day_without_rules(self, engine):
        slots = engine.calculate_availability(ORG, MONDAY, use_configurable_rules=False)

        assert len(slots) == 16
        assert all(slot.available for slot in slots)
        assert slots[0].id == f"{DOCTOR}-{MONDAY}-09:00"

    def test_no_intervals_is_empty_not_error(self, engine):
        # Tuesday has no working interval
        assert engine.calculate_availability(ORG, "2025-01-21") == []

    def test_doctor_filter(self, stack, engine):
        stack.schedule_repo.intervals.append(interval(1, "09:00", "10:00", doctor_id="doc-2"))

        slots = engine.calculate_availability(ORG, MONDAY, doctor_id="doc-2")

        assert {slot.doctor_id for slot in slots} == {"doc-2"}
        assert _times(slots) == ["09:00", "09:30"]

    def test_multiple_doctors_sorted_by_time_then_doctor(self, stack, engine):
        stack.schedule_repo.intervals.append(interval(1, "09:00", "10:00", doctor_id="doc-0"))

        slots = engine.calculate_availability(ORG, MONDAY)

        assert [(s.start_time, s.doctor_id) for s in slots[:4]] == [
            ("09:00", "doc-0"),
            ("09:00", DOCTOR),
            ("09:30", "doc-0"),
            ("09:30", DOCTOR),
        ]

    def test_overlapping_intervals_are_deduplicated(self, stack):
        stack.schedule_repo.intervals.extend(
            [interval(1, "09:00", "11:00"), interval(1, "10:00", "12:00")]
        )

        slots = stack.engine.calculate_availability(ORG, MONDAY)

        assert _times(slots) == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]

    def test_same_inputs_same_output(self, stack, engine):
        stack.schedule_repo.appointments.append(appointment(MONDAY, "10:00", "10:30"))

        first = engine.calculate_availability(ORG, MONDAY)
        second = engine.calculate_availability(ORG, MONDAY)

        assert first == second


class TestConflicts:
    def test_appointment_marks_slot_occupied(self, stack, engine):
        stack.schedule_repo.appointments.append(appointment(MONDAY, "10:00", "10:30"))

        slots = engine.calculate_availability(ORG, MONDAY)
        busy = [slot for slot in slots if not slot.available]

        assert len(slots) == 16
        assert [(slot.start_time, slot.reason) for slot in busy] == [("10:00", REASON_OCCUPIED)]

    def test_unaligned_appointment_blocks_every_overlapping_slot(self, stack, engine):
        stack.schedule_repo.appointments.append(appointment(MONDAY, "10:15", "10:45"))

        slots = engine.calculate_availability(ORG, MONDAY)

        assert _times(slots, available=False) == ["10:00", "10:30"]

    @pytest.mark.parametrize(
        "status",
        [
            AppointmentStatus.CANCELLED,
            AppointmentStatus.CANCELADA_PACIENTE,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.NO_SHOW,
        ],
    )
    def test_non_blocking_statuses_free_the_slot(self, stack, engine, status):
        stack.schedule_repo.appointments.append(
            appointment(MONDAY, "10:00", "10:30", status=status)
        )

        assert all(slot.available for slot in engine.calculate_availability(ORG, MONDAY))

    @pytest.mark.parametrize(
        "status",
        [
            AppointmentStatus.PENDING,
            AppointmentStatus.PENDIENTE_PAGO,
            AppointmentStatus.SCHEDULED,
            AppointmentStatus.REAGENDADA,
            AppointmentStatus.EN_CURSO,
        ],
    )
    def test_blocking_statuses_hold_the_slot(self, stack, engine, status):
        stack.schedule_repo.appointments.append(
            appointment(MONDAY, "10:00", "10:30", status=status)
        )

        assert _times(engine.calculate_availability(ORG, MONDAY), available=False) == ["10:00"]

    def test_other_doctors_appointment_is_ignored(self, stack, engine):
        stack.schedule_repo.appointments.append(
            appointment(MONDAY, "10:00", "10:30", doctor_id="doc-2")
        )

        assert all(slot.available for slot in engine.calculate_availability(ORG, MONDAY))

    def test_block_reason_is_reported(self, stack, engine):
        stack.schedule_repo.blocks.append(
            block(datetime(2025, 1, 20, 12, 0), datetime(2025, 1, 20, 13, 0), reason="Almuerzo")
        )

        slots = engine.calculate_availability(ORG, MONDAY)
        busy = [(slot.start_time, slot.reason) for slot in slots if not slot.available]

        assert busy == [("12:00", "Almuerzo"), ("12:30", "Almuerzo")]

    def test_block_without_reason_uses_generic_reason(self, stack, engine):
        stack.schedule_repo.blocks.append(
            block(datetime(2025, 1, 20, 16, 0), datetime(2025, 1, 20, 16, 30))
        )

        slots = engine.calculate_availability(ORG, MONDAY)

        assert [slot.reason for slot in slots if not slot.available] == [REASON_BLOCKED]

    def test_multi_day_block_covers_whole_day(self, stack, engine):
        stack.schedule_repo.blocks.append(
            block(datetime(2025, 1, 18), datetime(2025, 1, 25), reason="Vacaciones")
        )

        slots = engine.calculate_availability(ORG, MONDAY)

        assert len(slots) == 16
        assert not any(slot.available for slot in slots)

    def test_aware_block_is_read_in_clinic_time(self, stack, engine):
        # 17:00 UTC is 12:00 in Bogota
        stack.schedule_repo.blocks.append(
            block(
                pytz.UTC.localize(datetime(2025, 1, 20, 17, 0)),
                pytz.UTC.localize(datetime(2025, 1, 20, 17, 30)),
                reason="Reunión",
            )
        )

        slots = engine.calculate_availability(ORG, MONDAY)

        assert _times(slots, available=False) == ["12:00"]

    def test_appointment_reason_wins_over_block(self, stack, engine):
        stack.schedule_repo.appointments.append(appointment(MONDAY, "12:00", "12:30"))
        stack.schedule_repo.blocks.append(
            block(datetime(2025, 1, 20, 12, 0), datetime(2025, 1, 20, 13, 0), reason="Almuerzo")
        )

        slots = {slot.start_time: slot for slot in engine.calculate_availability(ORG, MONDAY)}

        assert slots["12:00"].reason == REASON_OCCUPIED
        assert slots["12:30"].reason == "Almuerzo"


class TestPolicyFiltering:
    def test_disallowed_day_returns_empty(self, stack):
        stack.schedule_repo.intervals.append(interval(0, "09:00", "12:00"))

        assert stack.engine.calculate_availability(ORG, "2025-01-19") == []

        unfiltered = stack.engine.calculate_availability(
            ORG, "2025-01-19", use_configurable_rules=False
        )
        assert len(unfiltered) == 6

    def test_past_date_returns_empty(self, engine):
        assert engine.calculate_availability(ORG, "2025-01-06", role=ActorRole.ADMIN) == []

    def test_today_keeps_only_slots_with_enough_notice(self, stack, engine):
        stack.org_repo.documents[ORG] = policy_document(advance_booking_hours=6)
        stack.schedule_repo.appointments.append(appointment(TODAY, "16:00", "16:30"))

        slots = engine.calculate_availability(ORG, TODAY)

        assert _times(slots) == ["16:00", "16:30"]
        assert slots[0].available is False
        assert slots[0].reason == REASON_OCCUPIED

    def test_privileged_role_sees_every_future_slot_today(self, engine):
        slots = engine.calculate_availability(ORG, TODAY, role=ActorRole.ADMIN)

        assert slots[0].start_time == "10:30"
        assert len(slots) == 13

    def test_standard_rules_restrict_privileged_roles(self, engine):
        slots = engine.calculate_availability(
            ORG, TODAY, role=ActorRole.ADMIN, use_standard_rules=True
        )

        assert slots[0].start_time == "14:00"

    def test_window_trims_slots(self, stack, engine):
        stack.org_repo.documents[ORG] = policy_document(
            booking_window_start="10:00", booking_window_end="12:00"
        )

        slots = engine.calculate_availability(ORG, MONDAY)

        assert _times(slots) == ["10:00", "10:30", "11:00", "11:30"]

    def test_patient_slots_are_subset_of_privileged_slots(self, engine):
        patient = {s.id for s in engine.calculate_availability(ORG, TODAY)}

        for role in (ActorRole.DOCTOR, ActorRole.STAFF, ActorRole.ADMIN, ActorRole.SUPERADMIN):
            privileged = {s.id for s in engine.calculate_availability(ORG, TODAY, role=role)}
            assert patient <= privileged

    def test_policy_read_failure_falls_back_to_defaults(self, stack, engine):
        stack.org_repo.error = RuntimeError("settings store down")

        slots = engine.calculate_availability(ORG, MONDAY)

        assert len(slots) == 16


class TestErrors:
    def test_displaced_date_raises(self, engine):
        with pytest.raises(DateDisplacementException) as exc_info:
            engine.calculate_availability(ORG, "2025-02-30")

        assert exc_info.value.details["displaced_date"] == "2025-03-02"

    def test_malformed_date_raises(self, engine):
        with pytest.raises(ValidationException) as exc_info:
            engine.calculate_availability(ORG, "20-01-2025")

        assert exc_info.value.code == "INVALID_DATE"

    @pytest.mark.parametrize("duration", [0, 4, 481, True])
    def test_invalid_duration_raises(self, engine, duration):
        with pytest.raises(ValidationException) as exc_info:
            engine.calculate_availability(ORG, MONDAY, duration=duration)

        assert exc_info.value.code == "INVALID_DURATION"

    def test_repository_failure_raises(self, stack, engine):
        stack.schedule_repo.fail_with()

        with pytest.raises(AvailabilityCalculationException) as exc_info:
            engine.calculate_availability(ORG, MONDAY)

        assert exc_info.value.details == {"organization_id": ORG, "date": MONDAY}
