"""Classification and enrichment of raw pledge records.

`classify` holds the pure status/cohort/bin rules and `rows` applies them to a
whole dataset, producing immutable `EnrichedRecord` objects with stable keys.
"""
