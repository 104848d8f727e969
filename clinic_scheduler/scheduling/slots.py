"""Schedule template parsing and expansion onto calendar dates.

Templates are stored as window strings such as ``"09:00-10:00"``. Older rows
use ``"09:00 - 10:00"``; both parse to the same window. The start time is the
slot's key everywhere in the scheduler, so two windows may not share a start.
"""

from collections.abc import Sequence
from datetime import date, datetime, time

from clinic_scheduler.scheduling.errors import InvalidTemplate
from clinic_scheduler.scheduling.types import ScheduleTemplate, Slot, SlotWindow

WINDOW_SEPARATOR = '-'


def _parse_time_of_day(value: str, window_text: str) -> time:
    try:
        parsed = time.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidTemplate(f'Invalid time "{value.strip()}" in slot "{window_text}".') from exc

    if parsed.tzinfo is not None:
        raise InvalidTemplate(f'Slot "{window_text}" must not carry a UTC offset.')

    if parsed.second or parsed.microsecond:
        raise InvalidTemplate(f'Slot "{window_text}" must use whole minutes.')

    return parsed


def parse_slot_window(window_text: str) -> SlotWindow:
    if not isinstance(window_text, str):
        raise InvalidTemplate(f'Slot {window_text!r} must be text like "HH:MM-HH:MM".')

    parts = window_text.split(WINDOW_SEPARATOR)
    if len(parts) != 2:
        raise InvalidTemplate(f'Slot "{window_text}" must look like "HH:MM-HH:MM".')

    start = _parse_time_of_day(parts[0], window_text)
    end = _parse_time_of_day(parts[1], window_text)
    if start >= end:
        raise InvalidTemplate(f'Slot "{window_text}" must end after it starts.')

    return SlotWindow(start=start, end=end)


def parse_schedule_template(window_texts: Sequence[str] | None) -> ScheduleTemplate:
    """Build a sorted template, rejecting windows that overlap or share a start."""
    if window_texts is None:
        window_texts = ()
    elif not isinstance(window_texts, (list, tuple)):
        raise InvalidTemplate(f'Schedule {window_texts!r} must be a list of slots.')

    windows = sorted((parse_slot_window(text) for text in window_texts), key=lambda window: window.start)

    for previous, current in zip(windows, windows[1:]):
        if current.start < previous.end:
            raise InvalidTemplate(f'Slots "{previous.label}" and "{current.label}" overlap.')

    return ScheduleTemplate(windows=tuple(windows))


def expand_template(template: ScheduleTemplate, on_date: date) -> list[Slot]:
    slots: list[Slot] = []
    for window in template.windows:
        if window.start >= window.end:
            raise InvalidTemplate(f'Slot "{window.label}" must end after it starts.')

        slots.append(
            Slot(
                start=datetime.combine(on_date, window.start),
                end=datetime.combine(on_date, window.end),
            )
        )

    slots.sort(key=lambda slot: slot.start)
    return slots
