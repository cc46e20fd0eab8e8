"""
Domain models — typed records at the API boundary and the output rows/tables.

Submodules:
  records — BenchmarkRecord, ProductRecord, StatRecord, AdsMetricRecord
  rows    — DetailRow, SupplementalRow, Table, TableSet
  meta    — RunMetadata (per-run audit record)
"""
