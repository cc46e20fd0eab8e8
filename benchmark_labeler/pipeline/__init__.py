"""
Pipeline stages — each stage takes an ``AppConfig`` and returns a ``RunMetadata``.

Modules:
  base         — PipelineStage ABC
  queries      — report query builders
  reconcile    — Reconciler (benchmark × products × stats join)
  benchmark    — BenchmarkLabelStage (full labeling run)
  ads_report   — AdsReportStage (daily per-label ads metrics)
  product_list — ProductListStage (account product listing)
"""
