from datetime import datetime, timedelta, timezone

BUCKET_MS = 12 * 60 * 60 * 1000

_EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    # Naive UTC, matching how DateTime columns are stored.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch_ms(value: datetime | None) -> int:
    """Milliseconds since the epoch; ``None`` (never claimed) maps to 0."""
    if value is None:
        return 0
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return (value - _EPOCH) // timedelta(milliseconds=1)


def compute_bins(now_ms: int, last_ms: int, bucket_ms: int, max_streak: int) -> int:
    """Whole buckets elapsed since ``last_ms``, capped at ``max_streak``."""
    if now_ms <= last_ms:
        return 0
    return max(0, min((now_ms - last_ms) // bucket_ms, max_streak))


def claimable_amount(bins: int, quantity: int, rate: int) -> int:
    return max(0, bins * quantity * rate)


def project(now: datetime, last_claim_at: datetime | None, quantity: int, rate: int, max_streak: int) -> tuple[int, int]:
    bins = compute_bins(to_epoch_ms(now), to_epoch_ms(last_claim_at), BUCKET_MS, max_streak)
    return bins, claimable_amount(bins, quantity, rate)


def advance_claim_clock(last_claim_at: datetime | None, bins: int, now: datetime) -> datetime:
    # Keeps bucket boundaries once a clock exists; the first claim starts it at now.
    if last_claim_at is None:
        return now
    return last_claim_at + timedelta(milliseconds=bins * BUCKET_MS)
