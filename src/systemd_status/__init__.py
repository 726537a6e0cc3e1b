__version__ = "0.3.0"
__release_date__ = "2026-10-18"
__version_label__ = f"{__version__} ({__release_date__})"
