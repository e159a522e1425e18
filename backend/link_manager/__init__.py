"""Internal link manager: keyword-driven hyperlink insertion for rendered HTML."""

__version__ = "1.9.2"
