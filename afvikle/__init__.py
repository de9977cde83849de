"""afvikle: bookmark shell commands and run them from anywhere."""

__version__ = "1.0.0"
