from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from common.types import Venue
from common.utils import try_parse_iso8601


def _month_start(year: int, month: int) -> datetime:
    """First instant of a month; `month` may run outside 1..12."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _month_key(dt: datetime) -> str:
    return f"{dt.year:04d}-{dt.month:02d}"


def summary(venues: List[Venue], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Headline numbers. A venue counts as new in the month of its `enrichedAt`
    stamp; growth compares this month with [start of last month, start of
    this month) and is floored at 0.
    """
    now = now or datetime.now(timezone.utc)
    this_month = _month_start(now.year, now.month)
    last_month = _month_start(now.year, now.month - 1)

    new_this, new_last = 0, 0
    countries = set()
    for v in venues:
        if v.country:
            countries.add(v.country)
        dt = try_parse_iso8601(v.enriched_at)
        if dt is None:
            continue
        if dt >= this_month:
            new_this += 1
        elif dt >= last_month:
            new_last += 1

    growth = round((new_this - new_last) / new_last * 100) if new_last > 0 else 0
    return {
        "totalVenues": len(venues),
        "newThisMonth": new_this,
        "countries": len(countries),
        "growthPercent": max(0, growth),
    }


def _top(counts: Dict[str, int], n: int = 10) -> List[Dict[str, Any]]:
    ranked: List[Tuple[str, int]] = sorted(counts.items(), key=lambda kv: -kv[1])
    return [{"name": k, "count": c} for k, c in ranked[:n]]


def detailed(venues: List[Venue], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Top 10 countries and categories by venue count, plus a 12-month series
    of venues added per month (by `enrichedAt`) with the running total,
    which includes everything added before the window.
    """
    now = now or datetime.now(timezone.utc)
    by_country: Dict[str, int] = {}
    by_category: Dict[str, int] = {}
    by_month: Dict[str, int] = {}
    for v in venues:
        country = v.country or "Unknown"
        by_country[country] = by_country.get(country, 0) + 1
        category = v.category or "Other"
        by_category[category] = by_category.get(category, 0) + 1
        dt = try_parse_iso8601(v.enriched_at)
        if dt is not None:
            key = _month_key(dt.astimezone(timezone.utc))
            by_month[key] = by_month.get(key, 0) + 1

    window_start = _month_key(_month_start(now.year, now.month - 11))
    cumulative = sum(c for k, c in by_month.items() if k < window_start)
    growth = []
    for back in range(11, -1, -1):
        month = _month_start(now.year, now.month - back)
        count = by_month.get(_month_key(month), 0)
        cumulative += count
        growth.append({"month": month.strftime("%b %y"), "count": count, "cumulative": cumulative})

    return {
        "totalMerchants": len(venues),
        "totalCountries": len(by_country),
        "totalCategories": len(by_category),
        "topCountries": _top(by_country),
        "topCategories": _top(by_category),
        "monthlyGrowth": growth,
    }
