"""Admission filter exports."""

from .filters import AllowAllFilter, IAdmissionFilter, OriginRangeFilter
from .registry import create_admission_filter, register_admission_filter

__all__ = [
    "AllowAllFilter",
    "IAdmissionFilter",
    "OriginRangeFilter",
    "create_admission_filter",
    "register_admission_filter",
]
