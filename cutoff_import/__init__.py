"""Admission-cutoff spreadsheet importer.

Decodes column-per-institution cutoff exports into flat records and merges them
into a persistent store without duplicating logical records.
"""

__version__ = "0.1.0"
