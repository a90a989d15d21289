"""FormPilot - multi-session browser orchestration for form acceptance tests."""

__version__ = "0.1.0"
