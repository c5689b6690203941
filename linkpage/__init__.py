"""LinkPage: link-in-bio pages with unique public slugs."""

__version__ = "0.1.0"
