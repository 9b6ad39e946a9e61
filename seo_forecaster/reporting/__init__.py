"""
seo_forecaster.reporting: plain-text rendering of stored forecasts and
variance reports for the CLI.

Modules:
  formatters  ASCII terminal formatters for Typer CLI commands.
"""
