"""Geographic grouping of pledge records by ZIP code.

Coordinates and distances are resolved by an external geocoding service and
only attached here (see `aggregation.attach_locations`); this package never
computes a distance itself.
"""
