"""Derived views over enriched pledge records.

This package contains routines that convert a (possibly filtered) list of
`EnrichedRecord` into dashboard metrics: dataset totals, cohort/bin/status
tables, advanced insights and forecasts. Every view is recomputed from the
records on demand; nothing here mutates its input.
"""
