"""Phase catalog: the ordered dependency chain of construction phases."""

from buildtrack.catalog.phases import DEFAULT_PHASES, PhaseCatalog, default_catalog

__all__ = ["DEFAULT_PHASES", "PhaseCatalog", "default_catalog"]
