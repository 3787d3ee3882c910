from __future__ import annotations

import pytest

from dispatch_sim.admission import (
    AllowAllFilter,
    OriginRangeFilter,
    create_admission_filter,
    register_admission_filter,
)
from dispatch_sim.model import Job, JobKind


def _job(origin: str) -> Job:
    return Job(
        job_id="job-1",
        origin=origin,
        destination="8.8.8.8",
        kind=JobKind.STREAMING,
        service_duration=12,
        created_at=1,
    )


def test_origin_in_blocked_range_is_rejected() -> None:
    admission = OriginRangeFilter()
    assert admission.is_rejected(_job("195.10.0.1"))
    assert not admission.is_rejected(_job("201.10.0.1"))


@pytest.mark.parametrize(
    ("origin", "rejected"),
    [
        ("191.0.0.0", False),
        ("192.0.0.0", True),
        ("200.255.255.255", True),
        ("201.0.0.0", False),
        ("0.0.0.0", False),
        ("255.1.1.1", False),
    ],
)
def test_blocked_range_is_inclusive(origin: str, rejected: bool) -> None:
    assert OriginRangeFilter().is_rejected(_job(origin)) is rejected


def test_invalid_range_is_refused() -> None:
    with pytest.raises(ValueError):
        OriginRangeFilter(200, 192)
    with pytest.raises(ValueError):
        OriginRangeFilter(0, 256)


def test_registry_builds_configured_filter() -> None:
    admission = create_admission_filter("origin_range", {"blocked_origin_range": (10, 10)})
    assert isinstance(admission, OriginRangeFilter)
    assert admission.blocked_range == (10, 10)
    assert admission.is_rejected(_job("10.1.1.1"))
    assert not admission.is_rejected(_job("195.1.1.1"))


def test_registry_default_and_allow_all() -> None:
    assert create_admission_filter().blocked_range == (192, 200)
    assert isinstance(create_admission_filter(" Allow_All "), AllowAllFilter)
    assert not create_admission_filter("allow_all").is_rejected(_job("195.0.0.1"))


def test_registry_unknown_filter() -> None:
    with pytest.raises(ValueError, match="unknown admission filter"):
        create_admission_filter("nope")


def test_register_custom_filter() -> None:
    class RejectAll(AllowAllFilter):
        def is_rejected(self, job: Job) -> bool:  # noqa: ARG002
            return True

    register_admission_filter("reject_all_test", lambda _params: RejectAll())
    assert create_admission_filter("reject_all_test").is_rejected(_job("1.1.1.1"))
