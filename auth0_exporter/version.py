"""Build information for the exporter binary."""

PLATFORM = "unknown"
VERSION = "dev"
COMMIT = "unknown"
DATE = "unknown"


def build_info() -> str:
    """Return the full build information block."""
    return (
        f"\nHost machine: {PLATFORM}\n"
        f"\n"
        f"  Version:    {VERSION}\n"
        f"  Commit:     {COMMIT}\n"
        f"  Built at:   {DATE}"
    )


def info() -> str:
    """Return the short version string."""
    return VERSION