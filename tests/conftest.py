from typeprobe.testing import sources  # noqa: F401
