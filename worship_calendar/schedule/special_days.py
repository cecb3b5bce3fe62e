"""Special services held in addition to the weekly principal service.

Each rule knows how to find its date(s) in a given civil year.  Rules are
enabled by slug through the ``SERVICE_SPECIAL_DAYS`` setting.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable

from ..liturgical import anchors_for_year, thanksgiving_day

DEFAULT_SPECIAL_DAYS = ("christmas_eve", "ash_wednesday", "maundy_thursday", "good_friday")


@dataclass(frozen=True)
class SpecialDayRule:
    key: str
    name: str
    dates_for_year: Callable[[int], list]

    def occurrences(self, year):
        return [(day, self.name) for day in self.dates_for_year(year)]


def _lenten_midweeks(year):
    anchors = anchors_for_year(year)
    wednesdays = []
    day = anchors.ash_wednesday + timedelta(weeks=1)
    while day < anchors.palm_sunday:
        wednesdays.append(day)
        day += timedelta(weeks=1)
    return wednesdays


def _thanksgiving_eve(year):
    return [thanksgiving_day(year) - timedelta(days=1)]


SPECIAL_DAY_RULES = {
    rule.key: rule
    for rule in (
        SpecialDayRule("christmas_eve", "Christmas Eve", lambda year: [date(year, 12, 24)]),
        SpecialDayRule("christmas_day", "Christmas Day", lambda year: [date(year, 12, 25)]),
        SpecialDayRule("epiphany", "Epiphany of Our Lord", lambda year: [date(year, 1, 6)]),
        SpecialDayRule("ash_wednesday", "Ash Wednesday", lambda year: [anchors_for_year(year).ash_wednesday]),
        SpecialDayRule("lenten_midweek", "Midweek Lenten Service", _lenten_midweeks),
        SpecialDayRule("maundy_thursday", "Maundy Thursday", lambda year: [anchors_for_year(year).maundy_thursday]),
        SpecialDayRule("good_friday", "Good Friday", lambda year: [anchors_for_year(year).good_friday]),
        SpecialDayRule("ascension", "Ascension of Our Lord", lambda year: [anchors_for_year(year).ascension]),
        SpecialDayRule("all_saints_day", "All Saints Day", lambda year: [date(year, 11, 1)]),
        SpecialDayRule("thanksgiving_eve", "Thanksgiving Eve", _thanksgiving_eve),
    )
}


def parse_special_day_keys(value):
    """Normalize a comma-separated string or sequence of rule slugs.

    Raises ValueError on an unknown slug so misconfiguration fails at startup
    instead of silently dropping a service.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    keys = []
    for raw in value:
        key = raw.strip().lower()
        if not key:
            continue
        if key not in SPECIAL_DAY_RULES:
            known = ", ".join(sorted(SPECIAL_DAY_RULES))
            raise ValueError(f"Unknown special service day '{key}'. Known values: {known}.")
        if key not in keys:
            keys.append(key)
    return tuple(keys)


def special_day_occurrences(year, keys):
    """Return ``(date, name)`` pairs for every enabled rule, in rule order."""
    occurrences = []
    for key in parse_special_day_keys(keys):
        occurrences.extend(SPECIAL_DAY_RULES[key].occurrences(year))
    return occurrences
