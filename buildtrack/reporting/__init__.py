"""Reporting and export for BuildTrack."""

from buildtrack.reporting.csv_export import export_progress_csv

__all__ = ["export_progress_csv"]
