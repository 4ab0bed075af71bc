"""Head counts and upcoming anniversaries for a set of people."""

from collections.abc import Iterable
from datetime import date

from famitree.application.dto import BranchStats, UpcomingEvent
from famitree.domain import Gender, Person
from famitree.domain.dates import current_age, next_occurrence

# (label, min age, max age inclusive or None for open-ended)
AGE_BANDS = (
    ("0-5", 0, 5),
    ("6-17", 6, 17),
    ("18-35", 18, 35),
    ("36-50", 36, 50),
    ("51-70", 51, 70),
    ("71+", 71, None),
)


def branch_stats(people: Iterable[Person], today: date | None = None) -> BranchStats:
    people = list(people)
    ages = [current_age(p.birth_date, p.death_date, today) for p in people]
    bands = {}
    for label, low, high in AGE_BANDS:
        bands[label] = sum(
            1 for age in ages if age is not None and age >= low and (high is None or age <= high)
        )
    deceased = sum(1 for p in people if p.death_date)
    male_deceased_60_plus = sum(
        1
        for p, age in zip(people, ages)
        if p.gender is Gender.MALE and p.death_date and age is not None and age >= 60
    )
    return BranchStats(
        total=len(people),
        living=len(people) - deceased,
        deceased=deceased,
        male=sum(1 for p in people if p.gender is Gender.MALE),
        female=sum(1 for p in people if p.gender is Gender.FEMALE),
        male_deceased_60_plus=male_deceased_60_plus,
        age_bands=bands,
    )


def upcoming_birthdays(
    people: Iterable[Person], limit: int, today: date | None = None
) -> list[UpcomingEvent]:
    """Next birthdays of living people, soonest first. age is the age being turned, when known."""
    today = today or date.today()
    items = []
    for p in people:
        if not p.birth_date or p.death_date:
            continue
        nxt = next_occurrence(p.birth_date, today)
        if nxt is None:
            continue
        next_date, days_until = nxt
        age = current_age(p.birth_date, None, next_date)
        items.append(UpcomingEvent(person=p, next_date=next_date, days_until=days_until, age=age))
    items.sort(key=lambda e: e.days_until)
    return items[:limit]


def upcoming_death_anniversaries(
    people: Iterable[Person], limit: int, today: date | None = None
) -> list[UpcomingEvent]:
    today = today or date.today()
    items = []
    for p in people:
        if not p.death_date:
            continue
        nxt = next_occurrence(p.death_date, today)
        if nxt is None:
            continue
        next_date, days_until = nxt
        items.append(UpcomingEvent(person=p, next_date=next_date, days_until=days_until))
    items.sort(key=lambda e: e.days_until)
    return items[:limit]
