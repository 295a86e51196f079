"""Utility helpers for runners."""

from .run_info import print_domain_summary, print_material_summary, print_run_header, print_time_summary

__all__ = [
    "print_domain_summary",
    "print_material_summary",
    "print_run_header",
    "print_time_summary",
]
