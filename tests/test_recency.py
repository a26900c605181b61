from datetime import datetime, timedelta, timezone

from prerank.models import Candidate
from prerank.processors.recency import filter_recent

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def _cand(cid: str, published_at: datetime | None) -> Candidate:
    return Candidate(
        id=cid,
        title=f"Story {cid}",
        url=f"https://example.com/{cid}",
        source="a",
        source_type="rss",
        published_at=published_at,
    )


def test_old_candidates_are_dropped() -> None:
    items = [
        _cand("fresh", NOW - timedelta(hours=2)),
        _cand("edge", NOW - timedelta(hours=48)),
        _cand("stale", NOW - timedelta(hours=49)),
    ]
    kept = filter_recent(items, max_age_hours=48, now=NOW)
    assert [c.id for c in kept] == ["fresh", "edge"]


def test_undated_candidates_are_kept() -> None:
    kept = filter_recent([_cand("undated", None)], max_age_hours=48, now=NOW)
    assert [c.id for c in kept] == ["undated"]


def test_naive_timestamps_are_treated_as_utc() -> None:
    naive = (NOW - timedelta(hours=50)).replace(tzinfo=None)
    assert filter_recent([_cand("naive", naive)], max_age_hours=48, now=NOW) == []


def test_other_timezones_compare_correctly() -> None:
    shanghai = timezone(timedelta(hours=8))
    published = (NOW - timedelta(hours=47)).astimezone(shanghai)
    kept = filter_recent([_cand("tz", published)], max_age_hours=48, now=NOW)
    assert len(kept) == 1
