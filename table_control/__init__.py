"""table-control: filter, sort and reorder tabular data with one directive string."""

__version__ = "0.1.0"
