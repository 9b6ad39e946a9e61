"""
Ingestion layer: loading observed site metrics from flat files.

Submodules:
  metrics_csv  CSV import parser for monthly traffic/conversions/revenue
"""
