"""File adapters standing in for the import and geocoding collaborators.

Provides readers that validate CSV rows into `RawRecord` / `ZipLocation`
models and writers that flatten enriched records and ZIP aggregates back into
tables.
"""
