"""
benchmark_labeler.reporting — shaping and writing the run's output tables.

Modules:
  projector  — builds the benchmark detail and supplemental feed tables.
  export     — clear-then-write CSV tables and the last-updated stamp file.
  formatters — ASCII previews and summaries for Typer CLI commands.
"""
