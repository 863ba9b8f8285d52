"""Fair-chance job matcher: conversational job search with transit-aware filtering."""

__version__ = "0.3.0"
