"""Liturgical calendar engine.

Computes the moveable feasts of a year and classifies any date into its
liturgical season.  Easter is calculated using the anonymous Gregorian
algorithm (Meeus / Jones / Butcher); every other moveable feast is a fixed
day count away from it.

The church year runs from the First Sunday of Advent to the Saturday before
the next Advent, so late December and early January belong to the same
Christmas season even though they sit in different civil years.  The
classifier works on civil dates and resolves that split explicitly: the
Advent/Christmas boundaries of a late-December date come from its own year,
while January 1-5 continue the Christmas that began on December 25 of the
previous year.
"""

from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from enum import Enum
from functools import lru_cache
from itertools import groupby

SUNDAY = 6  # date.weekday()


class InvalidYearError(ValueError):
    """Raised when a year falls outside the range the engine supports."""


class Season(Enum):
    ADVENT = "advent"
    CHRISTMAS = "christmas"
    EPIPHANY = "epiphany"
    LENT = "lent"
    HOLY_WEEK = "holy_week"
    EASTER = "easter"
    PENTECOST = "pentecost"
    ORDINARY_TIME = "ordinary_time"

    @property
    def display_name(self):
        return _SEASON_DISPLAY_NAMES[self]

    @property
    def base_color(self):
        return _SEASON_COLORS[self]


class LiturgicalColor(Enum):
    PURPLE = "purple"
    WHITE = "white"
    GREEN = "green"
    RED = "red"
    ROSE = "rose"


_SEASON_DISPLAY_NAMES = {
    Season.ADVENT: "Advent",
    Season.CHRISTMAS: "Christmas",
    Season.EPIPHANY: "Epiphany",
    Season.LENT: "Lent",
    Season.HOLY_WEEK: "Holy Week",
    Season.EASTER: "Easter",
    Season.PENTECOST: "Day of Pentecost",
    Season.ORDINARY_TIME: "Ordinary Time",
}

_SEASON_COLORS = {
    Season.ADVENT: LiturgicalColor.PURPLE,
    Season.CHRISTMAS: LiturgicalColor.WHITE,
    Season.EPIPHANY: LiturgicalColor.GREEN,
    Season.LENT: LiturgicalColor.PURPLE,
    Season.HOLY_WEEK: LiturgicalColor.RED,
    Season.EASTER: LiturgicalColor.WHITE,
    Season.PENTECOST: LiturgicalColor.RED,
    Season.ORDINARY_TIME: LiturgicalColor.GREEN,
}

# Order of the seasons within one church year, starting at Advent.
SEASON_ORDER = (
    Season.ADVENT,
    Season.CHRISTMAS,
    Season.EPIPHANY,
    Season.LENT,
    Season.HOLY_WEEK,
    Season.EASTER,
    Season.PENTECOST,
    Season.ORDINARY_TIME,
)


@dataclass(frozen=True)
class Anchors:
    """Moveable feasts of one civil year, all derived from Easter."""

    year: int
    easter: date
    ash_wednesday: date
    palm_sunday: date
    pentecost: date

    @property
    def transfiguration(self):
        # The Sunday immediately preceding Ash Wednesday.
        return self.ash_wednesday - timedelta(days=3)

    @property
    def laetare_sunday(self):
        return self.easter - timedelta(days=21)

    @property
    def maundy_thursday(self):
        return self.easter - timedelta(days=3)

    @property
    def good_friday(self):
        return self.easter - timedelta(days=2)

    @property
    def holy_saturday(self):
        return self.easter - timedelta(days=1)

    @property
    def ascension(self):
        return self.easter + timedelta(days=39)

    @property
    def trinity_sunday(self):
        return self.pentecost + timedelta(days=7)

    def to_dict(self):
        return {
            "year": self.year,
            "easter": self.easter.isoformat(),
            "ash_wednesday": self.ash_wednesday.isoformat(),
            "palm_sunday": self.palm_sunday.isoformat(),
            "pentecost": self.pentecost.isoformat(),
        }


@dataclass(frozen=True)
class SeasonInfo:
    season: Season
    color: LiturgicalColor
    display_name: str
    special_day_name: str | None = None

    def to_dict(self):
        return {
            "season": self.season.value,
            "season_name": self.display_name,
            "color": self.color.value,
            "special_day_name": self.special_day_name,
        }


@dataclass(frozen=True)
class SeasonRun:
    """A contiguous stretch of days in one season; ``end`` is inclusive."""

    season: Season
    start: date
    end: date

    @property
    def days(self):
        return (self.end - self.start).days + 1

    def to_dict(self):
        return {
            "season": self.season.value,
            "season_name": self.season.display_name,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "days": self.days,
        }


def _check_year(year):
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidYearError(f"Year must be an integer, got {year!r}.")
    if not MINYEAR <= year <= MAXYEAR:
        raise InvalidYearError(f"Year must be between {MINYEAR} and {MAXYEAR}, got {year}.")
    return year


def _as_date(day):
    if isinstance(day, datetime):
        return day.date()
    if isinstance(day, date):
        return day
    raise TypeError(f"Expected a date, got {type(day).__name__}.")


def get_easter_date(year):
    """Return the date of Easter Sunday for the given year.

    Uses the anonymous Gregorian algorithm (also known as the
    Meeus/Jones/Butcher algorithm).
    """
    _check_year(year)
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


@lru_cache(maxsize=None)
def anchors_for_year(year):
    """Return the Easter-derived anchor dates for ``year``.

    Memoized process-wide: the result depends on the year alone.
    """
    easter = get_easter_date(year)
    return Anchors(
        year=year,
        easter=easter,
        ash_wednesday=easter - timedelta(days=46),
        palm_sunday=easter - timedelta(days=7),
        pentecost=easter + timedelta(days=49),
    )


@lru_cache(maxsize=None)
def advent_start(year):
    """Return the First Sunday of Advent for the given year.

    Advent begins on the fourth Sunday before Christmas Day, which is the
    Sunday falling between November 27 and December 3.  When Christmas is
    itself a Sunday it does not count as one of the four.
    """
    _check_year(year)
    christmas = date(year, 12, 25)
    last_sunday_before = christmas - timedelta(days=(christmas.weekday() - SUNDAY) % 7 or 7)
    return last_sunday_before - timedelta(weeks=3)


def _season_for(day, anchors):
    christmas = date(day.year, 12, 25)
    epiphany = date(day.year, 1, 6)

    # Late December: Advent and Christmas of this civil year.
    if advent_start(day.year) <= day < christmas:
        return Season.ADVENT
    if day >= christmas:
        return Season.CHRISTMAS
    # Early January: Christmas that began on Dec 25 of the previous year.
    if day < epiphany:
        return Season.CHRISTMAS

    if day < anchors.ash_wednesday:
        return Season.EPIPHANY
    if day < anchors.palm_sunday:
        return Season.LENT
    if day < anchors.easter:
        return Season.HOLY_WEEK
    if day < anchors.pentecost:
        return Season.EASTER
    if day == anchors.pentecost:
        return Season.PENTECOST
    return Season.ORDINARY_TIME


def _color_for(day, season, anchors):
    if day == anchors.transfiguration:
        return LiturgicalColor.WHITE
    if day == anchors.laetare_sunday:
        return LiturgicalColor.ROSE
    if day == advent_start(day.year) + timedelta(weeks=2):
        return LiturgicalColor.ROSE
    return season.base_color


def classify(day):
    """Return the :class:`SeasonInfo` for a single date.

    Total over every date in the supported range; the season rules are
    evaluated in church-year order and the last branch catches everything
    between Pentecost and Advent, so every day matches exactly one season.
    """
    day = _as_date(day)
    anchors = anchors_for_year(day.year)
    season = _season_for(day, anchors)
    return SeasonInfo(
        season=season,
        color=_color_for(day, season, anchors),
        display_name=season.display_name,
        special_day_name=special_day_name(day),
    )


def get_current_liturgical_info(today=None):
    """Classify ``today`` (defaults to the current local date)."""
    if today is None:
        today = date.today()
    return classify(today)


def thanksgiving_day(year):
    """Return US Thanksgiving, the fourth Thursday of November."""
    november_1 = date(year, 11, 1)
    return november_1 + timedelta(days=(3 - november_1.weekday()) % 7 + 21)


def _sunday_on_or_after(day):
    return day + timedelta(days=(SUNDAY - day.weekday()) % 7)


def _sunday_after(day):
    return day + timedelta(days=(SUNDAY - day.weekday()) % 7 or 7)


@lru_cache(maxsize=64)
def _feasts_for_year(year):
    anchors = anchors_for_year(year)
    first_advent = advent_start(year)
    october_31 = date(year, 10, 31)
    november_1 = date(year, 11, 1)
    thanksgiving = thanksgiving_day(year)

    # Later entries win when two observances share a date.
    feasts = {
        _sunday_after(date(year, 1, 6)): "Baptism of Our Lord",
        date(year, 1, 6): "Epiphany of Our Lord",
        anchors.transfiguration: "Transfiguration of Our Lord",
        anchors.ash_wednesday: "Ash Wednesday",
        anchors.laetare_sunday: "Laetare Sunday",
        anchors.palm_sunday: "Palm Sunday",
        anchors.maundy_thursday: "Maundy Thursday",
        anchors.good_friday: "Good Friday",
        anchors.holy_saturday: "Holy Saturday",
        anchors.easter: "Easter Sunday",
        anchors.ascension: "Ascension of Our Lord",
        anchors.pentecost: "Day of Pentecost",
        anchors.trinity_sunday: "Holy Trinity",
        october_31 - timedelta(days=(october_31.weekday() - SUNDAY) % 7): "Reformation Sunday",
        _sunday_on_or_after(november_1): "All Saints Sunday",
        thanksgiving - timedelta(days=1): "Thanksgiving Eve",
        thanksgiving: "Thanksgiving Day",
        first_advent - timedelta(weeks=1): "Christ the King",
        first_advent: "First Sunday of Advent",
        first_advent + timedelta(weeks=2): "Gaudete Sunday",
        date(year, 12, 24): "Christmas Eve",
        date(year, 12, 25): "Christmas Day",
    }
    return feasts


def special_day_name(day):
    """Return the name of the feast or observance on ``day``, if any."""
    day = _as_date(day)
    return _feasts_for_year(day.year).get(day)


def liturgical_year(day):
    """Return the church year ``day`` belongs to.

    The church year is numbered by the civil year in which most of it
    falls, so Advent 2024 opens liturgical year 2025.
    """
    day = _as_date(day)
    if day >= advent_start(day.year):
        return day.year + 1
    return day.year


def season_runs(year):
    """Partition January 1 through December 31 of ``year`` into season runs."""
    return list(_season_runs(_check_year(year)))


@lru_cache(maxsize=64)
def _season_runs(year):
    first = date(year, 1, 1)
    days = [first + timedelta(days=n) for n in range((date(year, 12, 31) - first).days + 1)]
    runs = []
    for season, group in groupby(days, key=lambda d: classify(d).season):
        group = list(group)
        runs.append(SeasonRun(season=season, start=group[0], end=group[-1]))
    return tuple(runs)


def season_end(day):
    """Return the last day of the season ``day`` falls in.

    A Christmas that starts on December 25 runs on into January of the
    following civil year.
    """
    day = _as_date(day)
    run = next(run for run in _season_runs(day.year) if run.start <= day <= run.end)
    end = run.end
    if end == date(day.year, 12, 31) and day.year < MAXYEAR:
        following = _season_runs(day.year + 1)[0]
        if following.season == run.season:
            end = following.end
    return end


def days_remaining_in_season(day):
    """Days left in the current season after ``day``; 0 on its last day."""
    day = _as_date(day)
    return (season_end(day) - day).days


def next_season(season):
    """Return the season that follows ``season`` in the church year."""
    index = SEASON_ORDER.index(season)
    return SEASON_ORDER[(index + 1) % len(SEASON_ORDER)]


def season_info_for(season):
    """Return the display name and base color of ``season`` as a SeasonInfo."""
    return SeasonInfo(season=season, color=season.base_color, display_name=season.display_name)
