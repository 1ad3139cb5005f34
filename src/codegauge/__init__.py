"""codegauge - aggregate static-analysis metrics into unified reports."""

__version__ = "0.1.0"
