"""drugexplorer package initializer.

This package contains the data modules used by the Shiny application.
Modules include loading and composing the drug registry exports,
hierarchy preparation, filtering, caching and plotting helpers.  See
individual module docstrings for details.
"""
