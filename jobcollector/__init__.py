"""JobCollector: capture job postings, track applications, export them."""

__version__ = "0.3.0"
