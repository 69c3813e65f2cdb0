"""Effect-size harmonization and random-effects synthesis for core-belief meta-analyses."""

__version__ = "0.1.0"
