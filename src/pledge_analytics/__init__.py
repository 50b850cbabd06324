"""pledge_analytics package.

Contains modules for classifying and enriching per-household pledge records,
aggregating them into dashboard metrics (totals, cohort/bin/status tables,
retention and concentration insights, forecasts), and grouping them by ZIP code
for geographic analysis.

Architecture:
- Raw -> Enriched records, validated by Pydantic models
- pandas/numpy for grouped sums, medians and quartiles
- Dask is used to compute independent report views concurrently
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
