import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

from .config import build_options
from .errors import InvalidDateFormat, InvalidRangeError, MalformedRecordError
from .models import AvailabilityOptions, SiteId

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"

DateRange = Tuple[date, date]  # (start, end), both inclusive


class Reservation(NamedTuple):
    site_id: Any
    start: date
    end: date


@dataclass
class SiteReservations:
    site_id: Any
    reservations: List[DateRange] = field(default_factory=list)


@dataclass(frozen=True)
class RequestContext:
    """The requested interval, passed explicitly through every stage of one call."""

    start: date
    end: date


def parse_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise InvalidDateFormat(value) from None
    # strptime also takes unpadded fields such as 2000-1-8
    if parsed.strftime(DATE_FORMAT) != value:
        raise InvalidDateFormat(value)
    return parsed


def day_distance(start: date, end: date) -> int:
    return (end - start).days


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    # closed intervals: touching on the same day counts as an overlap
    return a_start <= b_end and b_start <= a_end


def request_context(start: Union[str, date], end: Union[str, date]) -> RequestContext:
    ctx = RequestContext(start=parse_date(start), end=parse_date(end))
    if ctx.start > ctx.end:
        raise InvalidRangeError(ctx.start, ctx.end)
    return ctx


def read_reservation(record: Mapping[str, Any], options: AvailabilityOptions) -> Reservation:
    """Pull site id, start and end out of a raw record using the configured key names."""
    values = []
    for key in (options.id_key, options.start_key, options.end_key):
        try:
            value = record[key]
        except (KeyError, TypeError, IndexError):
            raise MalformedRecordError(key, record) from None
        if value is None:
            raise MalformedRecordError(key, record)
        values.append(value)

    site_id, start, end = values
    try:
        hash(site_id)
    except TypeError:
        raise MalformedRecordError(options.id_key, record, problem="has an unhashable value for") from None
    return Reservation(site_id=site_id, start=parse_date(start), end=parse_date(end))


def overlaps_request(reservation: Reservation, ctx: RequestContext) -> bool:
    return ranges_overlap(reservation.start, reservation.end, ctx.start, ctx.end)


def find_unavailable_sites(reservations: Iterable[Reservation], ctx: RequestContext) -> frozenset:
    """Sites owning at least one reservation that overlaps the requested interval."""
    return frozenset(r.site_id for r in reservations if overlaps_request(r, ctx))


def is_site_available(reservation: Reservation, unavailable: frozenset) -> bool:
    return reservation.site_id not in unavailable


def group_by_site(reservations: Iterable[Reservation]) -> List[SiteReservations]:
    """Fold reservations into one group per site, in order of first appearance."""
    groups: Dict[Any, SiteReservations] = {}
    for r in reservations:
        site = groups.get(r.site_id)
        if site is None:
            site = groups[r.site_id] = SiteReservations(site_id=r.site_id)
        site.reservations.append((r.start, r.end))
    return list(groups.values())


def sort_reservations(reservations: Iterable[DateRange]) -> List[DateRange]:
    return sorted(reservations, key=lambda r: r[0])


def check_site_availability(site: SiteReservations, ctx: RequestContext, min_gap: int) -> Optional[Any]:
    """Return the site id if the request fits into an opening without leaving a gap larger than min_gap.

    The opening is bounded by the reservation ending before the request and the
    first reservation starting after it. At either end of the schedule the
    request's own boundary stands in, so that side's gap is 0.
    """
    ranges = sort_reservations(site.reservations)

    after_index = next((i for i, (start, _) in enumerate(ranges) if start > ctx.end), None)

    if after_index is None:
        # after every reservation: only the front gap matters
        opening_start, opening_end = ranges[-1][1], ctx.end
    elif after_index == 0:
        # before every reservation: only the back gap matters
        opening_start, opening_end = ctx.start, ranges[0][0]
    else:
        opening_start, opening_end = ranges[after_index - 1][1], ranges[after_index][0]

    front_gap = day_distance(opening_start, ctx.start)
    back_gap = day_distance(ctx.end, opening_end)

    if front_gap > min_gap or back_gap > min_gap:
        return None
    return site.site_id


class AvailabilityEngine:
    """Filters a pool of sites down to those that can take a reservation for a date range.

    The engine only holds its options; every call works on its own locals, so a
    single instance can be shared between threads.
    """

    def __init__(self, options: Union[AvailabilityOptions, Mapping[str, Any], None] = None, **overrides: Any):
        options = build_options(options)
        if overrides:
            options = build_options(overrides, base=options)
        self.options = options
        self.min_gap = options.min_gap

    def check_availability(
        self,
        start: Union[str, date],
        end: Union[str, date],
        reservations: Iterable[Mapping[str, Any]] = (),
        site_ids: Optional[Iterable[SiteId]] = None,
    ) -> List[Any]:
        """Site ids that can accommodate [start, end], in order of first appearance.

        Only sites with at least one reservation on record are evaluated. Pass
        ``site_ids`` with the full pool to also report sites that have no
        reservations at all; those come after the evaluated sites. Sites with
        reservations are reported whether or not they appear in ``site_ids``:
        the pool only adds, it never restricts.
        """
        ctx = request_context(start, end)
        records = [read_reservation(r, self.options) for r in reservations]

        unavailable = find_unavailable_sites(records, ctx)
        survivors = [r for r in records if is_site_available(r, unavailable)]
        groups = group_by_site(survivors)

        available = []
        for site in groups:
            site_id = check_site_availability(site, ctx, self.min_gap)
            if site_id is not None:
                available.append(site_id)

        if site_ids is not None:
            seen = {r.site_id for r in records}
            for site_id in site_ids:
                if site_id not in seen:
                    seen.add(site_id)
                    available.append(site_id)

        logger.debug(
            "Availability %s..%s: records=%d unavailable=%d groups=%d available=%d",
            ctx.start, ctx.end, len(records), len(unavailable), len(groups), len(available),
        )
        return available
