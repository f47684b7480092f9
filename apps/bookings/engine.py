"""
Booking engine — pure business logic, no HTTP/request awareness.

Public API:
  generate_slots(window, duration_minutes)
  generate_day_slots(windows, duration_minutes)
  find_booked_slots(candidate_slots, appointments, duration_minutes, day)
  occupying_appointments(professional_id, start, end, exclude_id=None)
  get_service(service_id)
  get_availability(service_id, day)

Slots are local wall-clock "HH:MM" strings. Appointment instants are aware
datetimes; a slot becomes an instant through slot_instant(day, slot) in the
current Django time zone.
"""
import logging
import uuid
from collections import namedtuple
from dataclasses import dataclass, field
from datetime import datetime, timedelta, date as date_type, time as time_type

from django.conf import settings
from django.utils import timezone

from apps.services.models import BusinessHourWindow, Service, weekday_of
from apps.bookings.models import Appointment
from apps.bookings.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Anything with start_time/end_time works as a window; this is the plain one.
Window = namedtuple('Window', ['start_time', 'end_time'])


# ── Time helpers ──────────────────────────────────────────────────────────────

def _time_to_minutes(t: time_type) -> int:
    return t.hour * 60 + t.minute


def _fmt_minutes(total: int) -> str:
    hour, minute = divmod(total, 60)
    return f"{hour:02d}:{minute:02d}"


def parse_slot(slot: str) -> time_type:
    return datetime.strptime(slot, '%H:%M').time()


def slot_instant(day: date_type, slot: str) -> datetime:
    """Aware datetime for a local HH:MM slot on `day`."""
    return timezone.make_aware(datetime.combine(day, parse_slot(slot)))


def local_day_bounds(day: date_type):
    """[start, end) of the local calendar day as aware datetimes."""
    start = timezone.make_aware(datetime.combine(day, time_type.min))
    end = timezone.make_aware(datetime.combine(day + timedelta(days=1), time_type.min))
    return start, end


def parse_uuid(value, what: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError) as exc:
        raise NotFoundError(f'{what} not found.') from exc


# ── Slot Generator ────────────────────────────────────────────────────────────

def generate_slots(window, duration_minutes: int, require_full_fit: bool = None) -> list:
    """
    Candidate start times for one business-hours window.

    Steps from window.start_time by duration_minutes while the current start
    is before window.end_time, so the last slot's service may run past
    closing (09:00–10:15 at 30 min gives 09:00, 09:30, 10:00). With
    require_full_fit (default: settings.SLOTS_REQUIRE_FULL_FIT) a slot is
    emitted only if the whole service fits before closing.
    """
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError('Service duration must be a positive number of minutes.')
    if require_full_fit is None:
        require_full_fit = settings.SLOTS_REQUIRE_FULL_FIT

    current = _time_to_minutes(window.start_time)
    end = _time_to_minutes(window.end_time)

    slots = []
    while (current + duration_minutes <= end) if require_full_fit else (current < end):
        slots.append(_fmt_minutes(current))
        current += duration_minutes
    return slots


def generate_day_slots(windows, duration_minutes: int, require_full_fit: bool = None) -> list:
    """Union of every window's slots, sorted ascending, de-duplicated."""
    slots = set()
    for window in windows:
        slots.update(generate_slots(window, duration_minutes, require_full_fit))
    return sorted(slots)


# ── Booking Conflict Checker ──────────────────────────────────────────────────

def find_booked_slots(candidate_slots, appointments, duration_minutes: int,
                      day: date_type) -> set:
    """
    Candidate slots whose [start, start + duration) overlaps any appointment's
    [start_at, end_at). Callers pass only appointments that occupy their slot
    (see occupying_appointments), so status filtering happens there.
    """
    intervals = sorted((a.start_at, a.end_at) for a in appointments)
    if not intervals:
        return set()

    length = timedelta(minutes=duration_minutes)
    booked = set()
    for slot in candidate_slots:
        start = slot_instant(day, slot)
        end = start + length
        for occ_start, occ_end in intervals:
            if occ_start >= end:
                break   # sorted by start: nothing later can overlap
            if occ_end > start:
                booked.add(slot)
                break
    return booked


def occupying_appointments(professional_id, start: datetime, end: datetime,
                           exclude_id=None, now=None):
    """
    Appointments holding time in [start, end) for a professional:
    CONFIRMED, plus PENDING_VERIFICATION whose hold has not expired.
    """
    qs = (
        Appointment.objects
        .occupying(now)
        .filter(professional_id=professional_id)
        .overlapping(start, end)
    )
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs


# ── Availability Service ──────────────────────────────────────────────────────

@dataclass
class Availability:
    service: Service
    date: date_type
    business_hours: list = field(default_factory=list)
    slots: list = field(default_factory=list)
    booked_slots: set = field(default_factory=set)
    booked_times: list = field(default_factory=list)

    @property
    def free_slots(self) -> list:
        return [s for s in self.slots if s not in self.booked_slots]

    def as_json(self) -> dict:
        return {
            'serviceId': str(self.service.id),
            'date': self.date.isoformat(),
            'duration': self.service.duration_minutes,
            'businessHours': [w.as_json() for w in self.business_hours],
            'slots': self.slots,
            'bookedSlots': sorted(self.booked_slots),
            'bookedTimes': self.booked_times,
        }


def get_service(service_id) -> Service:
    service = (
        Service.objects
        .select_related('professional')
        .filter(id=parse_uuid(service_id, 'Service'), is_active=True)
        .first()
    )
    if service is None:
        raise NotFoundError('Service not found.', service_id=str(service_id))
    return service


def windows_for(professional_id, day: date_type) -> list:
    return list(
        BusinessHourWindow.objects
        .filter(professional_id=professional_id, day_of_week=weekday_of(day))
        .order_by('start_time')
    )


def slots_for_day(service: Service, day: date_type) -> list:
    return generate_day_slots(windows_for(service.professional_id, day), service.duration_minutes)


def get_availability(service_id, day: date_type) -> Availability:
    """
    All candidate slots for the service on `day` plus the subset already
    taken, so callers can render taken slots as disabled.
    Empty when the professional has no hours that weekday.
    """
    service = get_service(service_id)
    windows = windows_for(service.professional_id, day)
    availability = Availability(service=service, date=day, business_hours=windows)
    if not windows:
        return availability

    availability.slots = generate_day_slots(windows, service.duration_minutes)

    day_start, day_end = local_day_bounds(day)
    taken = list(occupying_appointments(service.professional_id, day_start, day_end))
    availability.booked_slots = find_booked_slots(
        availability.slots, taken, service.duration_minutes, day,
    )
    availability.booked_times = [
        timezone.localtime(a.start_at).isoformat() for a in sorted(taken, key=lambda a: a.start_at)
    ]
    logger.debug(
        'Availability for service %s on %s: %d slots, %d booked',
        service.id, day, len(availability.slots), len(availability.booked_slots),
    )
    return availability
