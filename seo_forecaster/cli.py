"""
SEO Forecaster: CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute the action against the SQLite store.
  5. Report the result to stdout; errors go to stderr as ``[ERROR] ...``
     with exit code 1.

Install and run::

    pip install -e .
    seo-forecaster --help
    seo-forecaster init-db
    seo-forecaster add-project --id acme --name "Acme Tools" --goal "more leads"
    seo-forecaster add-site --id acme-www --project acme --domain www.acme.test
    seo-forecaster import-metrics --site acme-www --file metrics.csv
    seo-forecaster generate --project acme --site acme-www --file recs.json --months 6
    seo-forecaster track <forecast-id>
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

app = typer.Typer(
    name="seo-forecaster",
    help="SEO recommendation prioritization and ROI forecasting CLI.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from seo_forecaster.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config; the LLM API key is masked in all output."""
    from seo_forecaster.utils.logging import configure_logging
    configure_logging(config.logging, secrets=(config.llm.api_key,))


def _connect(config):
    from seo_forecaster.db.connection import get_connection

    return get_connection(
        config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    )


def _build_service(config, conn):
    from seo_forecaster.db.store import SQLiteStore
    from seo_forecaster.forecasting.service import ForecastService
    from seo_forecaster.llm.client import build_prediction_client

    return ForecastService(
        store=SQLiteStore(conn),
        predictor=build_prediction_client(config.llm),
        config=config.forecast,
        llm_config=config.llm,
    )


def _fail(message: str) -> NoReturn:
    typer.echo(f"[ERROR] {message}", err=True)
    raise typer.Exit(code=1)


_CONFIG_OPTION_HELP = "Path to TOML config file."


# ── Setup commands ────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Initialize the SQLite database and apply the full schema.

    Safe to run multiple times: all DDL uses IF NOT EXISTS.
    Also runs pending schema migrations.
    """
    from seo_forecaster.db.connection import get_connection
    from seo_forecaster.db.migrations import run_migrations
    from seo_forecaster.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        migrations_applied = run_migrations(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo(f"  Migrations applied: {migrations_applied}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields (API key masked).",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:     {config.database.db_path}")
    typer.echo(f"  LLM provider:      {config.llm.provider}")
    typer.echo(f"  LLM model:         {config.llm.model_name}")
    typer.echo(f"  LLM endpoint:      {config.llm.base_url}")
    typer.echo(f"  Default timeframe: {config.forecast.default_timeframe_months} months")
    typer.echo(f"  History window:    {config.forecast.history_months} months")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        dumped = config.model_dump()
        if dumped["llm"].get("api_key"):
            dumped["llm"]["api_key"] = "***"
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("add-project")
def add_project(
    project_id: str = typer.Option(..., "--id", help="Project identifier."),
    name: str = typer.Option(..., "--name", help="Display name."),
    industry: str = typer.Option("unspecified", "--industry", help="Industry label."),
    goals: Optional[List[str]] = typer.Option(
        None, "--goal", help="Project goal (repeatable)."
    ),
    conversion_value: Optional[float] = typer.Option(
        None, "--conversion-value", help="Average revenue per conversion."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Create or update a project."""
    from pydantic import ValidationError

    from seo_forecaster.db.store import SQLiteStore
    from seo_forecaster.errors import SEOForecasterError
    from seo_forecaster.models.project import Project

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        project = Project(
            project_id=project_id,
            name=name,
            industry=industry,
            goals=goals or [],
            conversion_value=conversion_value,
        )
    except ValidationError as exc:
        _fail(f"Invalid project: {exc}")

    try:
        with _connect(config) as conn:
            SQLiteStore(conn).save_project(project)
    except SEOForecasterError as exc:
        _fail(str(exc))

    typer.echo(f"[OK] Project '{project.project_id}' saved.")


@app.command("add-site")
def add_site(
    site_id: str = typer.Option(..., "--id", help="Site identifier."),
    project_id: str = typer.Option(..., "--project", help="Owning project id."),
    domain: str = typer.Option(..., "--domain", help="Site domain."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Create or update a site under an existing project."""
    from pydantic import ValidationError

    from seo_forecaster.db.store import SQLiteStore
    from seo_forecaster.errors import SEOForecasterError
    from seo_forecaster.models.project import Site

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        site = Site(site_id=site_id, project_id=project_id, domain=domain)
    except ValidationError as exc:
        _fail(f"Invalid site: {exc}")

    try:
        with _connect(config) as conn:
            store = SQLiteStore(conn)
            if store.get_project(project_id) is None:
                _fail(f"Project '{project_id}' not found. Run 'add-project' first.")
            store.save_site(site)
    except SEOForecasterError as exc:
        _fail(str(exc))

    typer.echo(f"[OK] Site '{site.site_id}' saved under project '{project_id}'.")


# ── Metrics commands ──────────────────────────────────────────────────────────

@app.command("import-metrics")
def import_metrics(
    site_id: str = typer.Option(..., "--site", help="Site the metrics belong to."),
    metrics_file: str = typer.Option(
        ..., "--file", "-f", help="CSV with month,traffic,conversions[,revenue]."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Validate the CSV but do not write to the database."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Import observed monthly metrics for a site.

    Uses UPSERT semantics: an existing month for the site is overwritten.
    """
    from seo_forecaster.db.store import SQLiteStore
    from seo_forecaster.errors import SEOForecasterError
    from seo_forecaster.ingestion.metrics_csv import parse_metrics_csv

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(metrics_file)
    typer.echo(f"Loading metrics from: {path}")
    try:
        metrics = parse_metrics_csv(path)
    except (FileNotFoundError, ValueError) as exc:
        _fail(f"CSV parse failed:\n{exc}")

    typer.echo(f"  Validated {len(metrics)} month(s).")
    if dry_run:
        typer.echo("[DRY RUN] No metrics written to database.")
        for m in metrics:
            typer.echo(f"  {m.month} | traffic={m.traffic} | conversions={m.conversions}")
        return

    try:
        with _connect(config) as conn:
            store = SQLiteStore(conn)
            if store.get_site(site_id) is None:
                _fail(f"Site '{site_id}' not found. Run 'add-site' first.")
            count = store.save_site_metrics(site_id, metrics)
    except SEOForecasterError as exc:
        _fail(str(exc))

    typer.echo(f"  Upserted {count} month(s) for site '{site_id}'.")
    typer.echo("[OK] Metrics imported.")


@app.command("site-metrics")
def site_metrics(
    site_id: str = typer.Option(..., "--site", help="Site id."),
    start_month: Optional[str] = typer.Option(None, "--start", help="First month, YYYY-MM."),
    end_month: Optional[str] = typer.Option(None, "--end", help="Last month, YYYY-MM."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Show stored monthly metrics for a site."""
    from seo_forecaster.db.store import SQLiteStore
    from seo_forecaster.errors import SEOForecasterError
    from seo_forecaster.reporting.formatters import format_site_metrics
    from seo_forecaster.utils.time_utils import parse_month

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    for value in (start_month, end_month):
        if value is not None:
            try:
                parse_month(value)
            except ValueError as exc:
                _fail(str(exc))

    try:
        with _connect(config) as conn:
            metrics = SQLiteStore(conn).get_site_metrics(site_id, start_month, end_month)
    except SEOForecasterError as exc:
        _fail(str(exc))

    typer.echo(format_site_metrics(site_id, metrics))


# ── Forecast commands ─────────────────────────────────────────────────────────

def _load_recommendations_file(path: Path) -> list[dict]:
    """Read a JSON array of recommendations, or an object with a ``recommendations`` key."""
    if not path.exists():
        _fail(f"Recommendations file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        _fail(f"JSON parse error: {exc}")
    if isinstance(raw, dict):
        raw = raw.get("recommendations")
    if not isinstance(raw, list):
        _fail("Recommendations file must contain an array (or an object with 'recommendations').")
    return raw


@app.command("generate")
def generate(
    project_id: str = typer.Option(..., "--project", help="Project id."),
    site_id: str = typer.Option(..., "--site", help="Site id."),
    recommendations_file: str = typer.Option(
        ..., "--file", "-f", help="JSON file with the recommendations."
    ),
    months: Optional[int] = typer.Option(
        None, "--months", help="Forecast timeframe (default from config)."
    ),
    budget: Optional[float] = typer.Option(None, "--budget", help="Implementation budget."),
    goals: Optional[List[str]] = typer.Option(
        None, "--goal", help="Business goal (repeatable)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Prioritize recommendations and generate a persisted ROI forecast."""
    from seo_forecaster.errors import SEOForecasterError
    from seo_forecaster.reporting.formatters import format_forecast_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    recommendations = _load_recommendations_file(Path(recommendations_file))
    request = {
        "project_id": project_id,
        "site_id": site_id,
        "recommendations": recommendations,
        "timeframe_months": months,
        "budget": budget,
        "business_goals": goals or [],
    }

    typer.echo(
        f"Generating forecast | project={project_id} | site={site_id} | "
        f"recommendations={len(recommendations)} | model={config.llm.model_name}"
    )
    try:
        with _connect(config) as conn:
            result = _build_service(config, conn).generate_forecast(request)
    except SEOForecasterError as exc:
        _fail(str(exc))

    typer.echo(format_forecast_summary(result))
    typer.echo("")
    typer.echo(f"[OK] Forecast {result.id} saved.")


@app.command("show")
def show(
    forecast_id: str = typer.Argument(..., help="Forecast id."),
    as_json: bool = typer.Option(False, "--json", help="Print the stored forecast as JSON."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Show one stored forecast."""
    from seo_forecaster.errors import SEOForecasterError
    from seo_forecaster.reporting.formatters import format_forecast_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with _connect(config) as conn:
            result = _build_service(config, conn).get_forecast(forecast_id)
    except SEOForecasterError as exc:
        _fail(str(exc))

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        typer.echo(format_forecast_summary(result))


@app.command("list")
def list_forecasts(
    project_id: str = typer.Option(..., "--project", help="Project id."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """List a project's forecasts, newest first."""
    from seo_forecaster.errors import SEOForecasterError
    from seo_forecaster.reporting.formatters import format_forecast_list

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with _connect(config) as conn:
            results = _build_service(config, conn).get_project_forecasts(project_id)
    except SEOForecasterError as exc:
        _fail(str(exc))

    typer.echo(format_forecast_list(results, project_id))


@app.command("latest")
def latest(
    site_id: str = typer.Option(..., "--site", help="Site id."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Show the most recent forecast for a site."""
    from seo_forecaster.errors import SEOForecasterError
    from seo_forecaster.reporting.formatters import format_forecast_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with _connect(config) as conn:
            result = _build_service(config, conn).get_latest_site_forecast(site_id)
    except SEOForecasterError as exc:
        _fail(str(exc))

    if result is None:
        typer.echo(f"No forecast yet for site '{site_id}'.")
        return
    typer.echo(format_forecast_summary(result))


@app.command("delete")
def delete(
    forecast_id: str = typer.Argument(..., help="Forecast id."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Delete a stored forecast. Deleting an unknown id is not an error."""
    from seo_forecaster.errors import SEOForecasterError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with _connect(config) as conn:
            deleted = _build_service(config, conn).delete_forecast(forecast_id)
    except SEOForecasterError as exc:
        _fail(str(exc))

    if deleted:
        typer.echo(f"[OK] Forecast {forecast_id} deleted.")
    else:
        typer.echo(f"[OK] Forecast {forecast_id} did not exist; nothing deleted.")


@app.command("track")
def track(
    forecast_id: str = typer.Argument(..., help="Forecast id."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Compare stored actual traffic against a forecast's confidence bounds."""
    from seo_forecaster.errors import SEOForecasterError
    from seo_forecaster.reporting.formatters import format_variance_report

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with _connect(config) as conn:
            report = _build_service(config, conn).track_actual_vs_forecast(forecast_id)
    except SEOForecasterError as exc:
        _fail(str(exc))

    typer.echo(format_variance_report(report))


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
