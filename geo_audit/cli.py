"""Typer CLI for GEO Schema Audit.

Commands for auditing sites and WordPress posts, connecting WordPress
integrations, publishing generated schema, and showing history and status.
"""

import asyncio
import json
import logging

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from geo_audit.utils.labels import finding_label, status_label, tier_label

console = Console()
app = typer.Typer(
    name="geo-audit",
    help="GEO Schema Audit -- structured-data audits and WordPress schema publishing.",
    add_completion=False,
    no_args_is_help=True,
)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context."""
    return asyncio.run(coro)


def _get_app(config: str):
    """Lazy-import, initialise and return the application."""
    from geo_audit.app import GeoAuditApp
    geo_app = GeoAuditApp(config_path=config)
    geo_app.initialize()
    return geo_app


def _fail(message: str) -> None:
    console.print("[red]✘ " + message + "[/red]")
    raise typer.Exit(code=1)


def _score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    return "red"


def _print_analysis(analysis, language: str, title: str) -> None:
    """Render an audit analysis with Rich."""
    style = _score_style(analysis.score)
    summary = (
        "Schema: [bold]" + status_label(analysis.schema_status, language) + "[/bold]   "
        "Score: [bold " + style + "]" + str(analysis.score) + "/100[/bold " + style + "]   "
        "Source: " + tier_label(analysis.tier, language)
    )
    console.print(Panel(summary, title=title))

    if analysis.geo_schemas:
        table = Table(title="Schemas", show_header=True, header_style="bold magenta")
        table.add_column("Type", style="cyan", min_width=18)
        table.add_column("Status", min_width=10)
        table.add_column("Properties", max_width=60)
        for finding in analysis.geo_schemas:
            props = ", ".join(k + "=" + str(v) for k, v in finding.properties.items())
            table.add_row(finding.type, finding_label(finding.status, language), props)
        console.print(table)

    for heading, items, colour in (
        ("Details", analysis.detailed_info, "white"),
        ("Issues", analysis.issues, "red"),
        ("Improvements", analysis.improvements, "green"),
    ):
        if items:
            console.print("\n[bold]" + heading + "[/bold]")
            for item in items:
                console.print("  [" + colour + "]•[/" + colour + "] " + item)


# ------------------------------------------------------------------
# audit
# ------------------------------------------------------------------
@app.command()
def audit(
    url: str = typer.Argument(..., help="Website URL to audit (e.g. https://example.com)."),
    no_save: bool = typer.Option(False, "--no-save", help="Do not store the result."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Audit a website's GEO structured data."""
    _setup_logging(verbose)
    from geo_audit.utils.helpers import normalise_audit_url

    try:
        url = normalise_audit_url(url)
    except ValueError as exc:
        _fail(str(exc))

    geo_app = _get_app(config)
    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        progress.add_task(description="Analysing schema markup...", total=None)
        analysis, record = _run_async(geo_app.audit_website(url, save=not no_save))

    _print_analysis(analysis, geo_app.language, "Audit: " + url)
    if record:
        console.print("\nSaved as audit #" + str(record["id"]))


# ------------------------------------------------------------------
# WordPress
# ------------------------------------------------------------------
@app.command()
def connect(
    domain: str = typer.Argument(..., help="WordPress site domain."),
    username: str = typer.Argument(..., help="WordPress username."),
    password: str = typer.Argument(..., help="Application password."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Verify WordPress credentials and save the integration."""
    _setup_logging(verbose)
    from geo_audit.integrations.wordpress_client import WordPressError
    from geo_audit.utils.helpers import normalise_site_domain

    try:
        normalise_site_domain(domain)
    except ValueError as exc:
        _fail(str(exc))

    geo_app = _get_app(config)
    try:
        integration = _run_async(geo_app.connect_wordpress(domain, username, password))
    except WordPressError as exc:
        _fail("Connection failed: " + str(exc))
        return
    user = integration.get("user_info") or {}
    console.print(
        "[green]✔ Connected[/green] " + integration["domain"]
        + " as " + str(user.get("name", username))
        + " (integration #" + str(integration["id"]) + ")"
    )


@app.command()
def integrations(
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """List saved WordPress integrations."""
    _setup_logging(verbose)
    geo_app = _get_app(config)
    rows = geo_app._get_store().list_integrations()
    table = Table(title="WordPress Integrations", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Domain")
    table.add_column("User")
    table.add_column("Status")
    for row in rows:
        table.add_row(str(row["id"]), row["domain"], row["username"], row["connection_status"])
    console.print(table)


@app.command()
def disconnect(
    integration_id: int = typer.Argument(..., help="Integration ID."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Remove a saved WordPress integration."""
    _setup_logging(verbose)
    geo_app = _get_app(config)
    try:
        integration = geo_app.disconnect_wordpress(integration_id)
    except ValueError as exc:
        _fail(str(exc))
        return
    console.print("[green]✔ Disconnected[/green] " + integration["domain"])


@app.command()
def posts(
    integration_id: int = typer.Argument(..., help="Integration ID."),
    limit: int = typer.Option(10, "--limit", "-l", help="Posts per page."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """List recent posts from a connected WordPress site."""
    _setup_logging(verbose)
    from geo_audit.integrations.wordpress_client import WordPressError
    from geo_audit.utils.helpers import clean_html

    geo_app = _get_app(config)
    try:
        items = _run_async(geo_app.list_posts(integration_id, per_page=limit))
    except (ValueError, WordPressError) as exc:
        _fail(str(exc))
        return
    table = Table(title="Posts", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Title", max_width=60)
    table.add_column("Date")
    for post in items:
        title = clean_html((post.get("title") or {}).get("rendered", ""))
        table.add_row(str(post.get("id")), title, str(post.get("date", ""))[:10])
    console.print(table)


@app.command("audit-post")
def audit_post(
    integration_id: int = typer.Argument(..., help="Integration ID."),
    post_id: int = typer.Argument(..., help="WordPress post ID."),
    publish: bool = typer.Option(False, "--publish", "-p", help="Publish the generated schema."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Audit a WordPress post and generate its Article schema."""
    _setup_logging(verbose)
    from geo_audit.integrations.wordpress_client import WordPressError

    geo_app = _get_app(config)
    try:
        result = _run_async(geo_app.audit_post(integration_id, post_id))
    except (ValueError, WordPressError) as exc:
        _fail(str(exc))
        return

    _print_analysis(result.analysis, geo_app.language, "Post: " + result.post_title)
    console.print("\n[bold]Generated schema[/bold]")
    console.print(Syntax(json.dumps(result.generated_schema, indent=2, ensure_ascii=False), "json"))

    if publish:
        try:
            publication = _run_async(geo_app.publish_post_schema(
                integration_id, post_id, result.generated_schema, audit_id=result.audit_id
            ))
        except (ValueError, WordPressError) as exc:
            _fail("Publish failed: " + str(exc))
            return
        console.print("[green]✔ Schema published[/green] (publication #" + str(publication["id"]) + ")")


# ------------------------------------------------------------------
# history / status
# ------------------------------------------------------------------
@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-l", help="Max audits to show."),
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show recent website audits."""
    _setup_logging(verbose)
    geo_app = _get_app(config)
    rows = geo_app._get_store().list_site_audits(limit=limit)
    table = Table(title="Recent Audits", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("URL", max_width=50)
    table.add_column("Schemas")
    table.add_column("Score")
    table.add_column("Source")
    table.add_column("Date")
    for row in rows:
        score = row["score"]
        style = _score_style(score)
        table.add_row(
            str(row["id"]), row["url"], str(len(row["schemas_found"] or [])),
            "[" + style + "]" + str(score) + "[/" + style + "]",
            row["tier"], row["created_at"].strftime("%Y-%m-%d %H:%M") if row["created_at"] else "",
        )
    console.print(table)


@app.command()
def status(
    config: str = typer.Option("config/settings.yaml", "--config", "-c", help="Settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show component health and audit statistics."""
    _setup_logging(verbose)
    geo_app = _get_app(config)

    table = Table(title="GEO Schema Audit Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", min_width=15)
    table.add_column("Status", min_width=10)
    table.add_column("Details")
    for name, info in geo_app.get_status().items():
        state = info.get("status")
        if state == "ok":
            shown = "[green]✔ OK[/green]"
        elif state == "warning":
            shown = "[yellow]⚠ Warning[/yellow]"
        else:
            shown = "[red]✘ Error[/red]"
        table.add_row(name.title(), shown, str(info.get("details", "")))
    console.print(table)

    stats = geo_app._get_store().get_stats()
    console.print(
        "\nAudits: " + str(stats["total_audits"])
        + "  Post audits: " + str(stats["total_post_audits"])
        + "  Avg score: " + str(stats["average_score"])
        + "  Published: " + str(stats["published_schemas"])
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
