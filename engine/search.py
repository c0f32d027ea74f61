from typing import Callable, Iterable, Iterator

from engine.dates import Instant, to_local
from engine.domain import ALL, Category, Transaction
from engine.functional import pipe, safe_category

Predicate = Callable[[Transaction], bool]


def iter_transactions(trans: Iterable[Transaction], pred: Predicate) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def all_of(*preds: Predicate) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return all(p(t) for p in preds)

    return _filter


def by_type(type_filter: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return type_filter == ALL or t.type == type_filter

    return _filter


def by_text(search_text: str, cats: tuple[Category, ...]) -> Predicate:
    """Case-insensitive substring match on the note or the category name.

    A missing category matches as an empty name.
    """
    needle = search_text.lower()

    def _filter(t: Transaction) -> bool:
        if not needle:
            return True
        cat_name = safe_category(cats, t.category_id).map(lambda c: c.name).get_or_else("")
        return needle in t.note.lower() or needle in cat_name.lower()

    return _filter


def by_category(cat_id: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.category_id == cat_id

    return _filter


def by_date_range(start: Instant, end: Instant) -> Predicate:
    """Instant range, both ends inclusive."""
    lo, hi = to_local(start).timestamp(), to_local(end).timestamp()

    def _filter(t: Transaction) -> bool:
        return lo <= to_local(t.date).timestamp() <= hi

    return _filter


def filter_transactions(
    trans: Iterable[Transaction],
    cats: tuple[Category, ...],
    search_text: str = "",
    type_filter: str = ALL,
) -> tuple[Transaction, ...]:
    pred = all_of(by_type(type_filter), by_text(search_text, cats))
    return pipe(trans, lambda ts: iter_transactions(ts, pred), tuple)
