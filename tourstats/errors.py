"""Exceptions raised by the data sources and the selectors."""


class TourStatsError(Exception):
    """Base class for collaborator failures."""


class NotFound(TourStatsError):
    """No data exists for the requested show or tour."""


class TransportError(TourStatsError):
    """The data source could not be reached or read."""


class ShowOrderError(ValueError):
    """Shows were passed out of chronological order."""
