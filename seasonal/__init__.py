"""seasonal package initializer.

This package contains the data and layout modules behind the waffle and
stream dashboards.  Modules cover record loading, aggregation, the two
chart layouts, hover state and plotting helpers, plus the preparation
step that builds the monthly CSV.  See individual module docstrings for
details.
"""
