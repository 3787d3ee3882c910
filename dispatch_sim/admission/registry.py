"""Admission-filter registry."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .filters import AllowAllFilter, IAdmissionFilter, OriginRangeFilter


AdmissionFilterFactory = Callable[[dict[str, Any]], IAdmissionFilter]


def _origin_range_factory(params: dict[str, Any]) -> IAdmissionFilter:
    low, high = params.get("blocked_origin_range", (192, 200))
    return OriginRangeFilter(int(low), int(high))


_REGISTRY: dict[str, AdmissionFilterFactory] = {
    "origin_range": _origin_range_factory,
    "default": _origin_range_factory,
    "allow_all": lambda _params: AllowAllFilter(),
}


def register_admission_filter(name: str, factory: AdmissionFilterFactory) -> None:
    _REGISTRY[name.strip().lower()] = factory


def create_admission_filter(name: str = "default", params: dict[str, Any] | None = None) -> IAdmissionFilter:
    key = name.strip().lower()
    if key not in _REGISTRY:
        raise ValueError(f"unknown admission filter {name}")
    return _REGISTRY[key](params or {})
