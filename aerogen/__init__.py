"""aerogen -- text-to-geometry backend for parametric aircraft components."""

__version__ = "0.1.0"
