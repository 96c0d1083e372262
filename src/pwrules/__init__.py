"""pwrules - validate and diff password rule quirk files."""

__version__ = "0.3.0"
