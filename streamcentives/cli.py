"""Streamcentives moderation CLI."""

import json
import logging
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from streamcentives import __version__
from streamcentives.config import ModerationConfig

console = Console()

_ACTION_STYLES = {
    "approved": "green",
    "warning": "yellow",
    "manual_review": "cyan",
    "shadow_ban": "magenta",
    "content_removed": "red",
}


def _config(data_dir: str | None) -> ModerationConfig:
    config = ModerationConfig.from_env()
    if data_dir:
        config.data_dir = Path(data_dir)
    return config


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """Streamcentives content moderation.

    Classify community content with the LLM moderator, apply the threshold
    policy, and inspect strikes and the manual review queue.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Moderate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("content")
@click.option("--content-id", required=True, help="ID of the content item")
@click.option(
    "--content-type",
    default="community_post",
    help="community_post, community_message, post_comment, ...",
)
@click.option("--user-id", required=True, help="Author of the content")
@click.option("--media-url", "media_urls", multiple=True, help="Attached media URL (repeatable)")
@click.option("--data-dir", default=None, help="Moderation data directory")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response")
def moderate(
    content: str,
    content_id: str,
    content_type: str,
    user_id: str,
    media_urls: tuple[str, ...],
    data_dir: str | None,
    as_json: bool,
):
    """Run the moderation pipeline on CONTENT."""
    from streamcentives.moderation.pipeline import ModerationPipeline

    pipeline = ModerationPipeline.from_config(_config(data_dir))
    status, body = pipeline.handle(
        {
            "content": content,
            "contentId": content_id,
            "contentType": content_type,
            "userId": user_id,
            "mediaUrls": list(media_urls),
        }
    )

    if as_json:
        click.echo(json.dumps(body, indent=2))
    elif not body["success"]:
        console.print(f"[red]Moderation failed ({status}):[/] {body['error']}")
    else:
        analysis = body["analysis"]
        style = _ACTION_STYLES.get(analysis["action_taken"], "white")
        summary = "\n".join(
            [
                f"Action:      [{style}]{analysis['action_taken']}[/]",
                f"Appropriate: {analysis['is_appropriate']}",
                f"Severity:    {analysis['severity']}",
                f"Confidence:  {analysis['confidence']:.2f}",
                f"Categories:  {', '.join(analysis['categories']) or '-'}",
                f"Moderation:  {body['moderation_id']}",
            ]
        )
        console.print(Panel(summary, title=f"Moderation: {content_id}"))
        for flag in analysis["flags"]:
            console.print(f"  [yellow]![/] {flag}")

    if status != 200:
        raise SystemExit(1)


# ── Review queue ─────────────────────────────────────────────────────


@main.group()
def queue():
    """Inspect and resolve the manual review queue."""


@queue.command("list")
@click.option("--data-dir", default=None, help="Moderation data directory")
def queue_list(data_dir: str | None):
    """List pending review entries, most urgent first."""
    from streamcentives.moderation.review_queue import ReviewQueue
    from streamcentives.moderation.store import ModerationStore

    store = ModerationStore(_config(data_dir).data_dir)
    entries = ReviewQueue(store).list_pending()
    if not entries:
        console.print("[green]Review queue is empty.[/]")
        return

    table = Table(title=f"Pending reviews ({len(entries)})")
    table.add_column("Priority", justify="right", style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Entry")
    table.add_column("Moderation")
    table.add_column("Reason")
    table.add_column("Queued", style="dim")
    for e in entries:
        table.add_row(
            str(e.priority),
            e.queue_type.value,
            e.id,
            e.moderation_id,
            e.escalation_reason,
            e.created_at[:19],
        )
    console.print(table)


@queue.command("resolve")
@click.argument("entry_id")
@click.option("--data-dir", default=None, help="Moderation data directory")
def queue_resolve(entry_id: str, data_dir: str | None):
    """Mark review entry ENTRY_ID as resolved."""
    from streamcentives.moderation.review_queue import ReviewQueue
    from streamcentives.moderation.store import ModerationStore

    store = ModerationStore(_config(data_dir).data_dir)
    entry = ReviewQueue(store).resolve(entry_id)
    if entry is None:
        console.print(f"[red]No review entry {entry_id}[/]")
        raise SystemExit(1)
    console.print(f"[green]Resolved[/] {entry.id} (moderation {entry.moderation_id})")


# ── Users ────────────────────────────────────────────────────────────


@main.command("user-status")
@click.argument("user_id")
@click.option("--data-dir", default=None, help="Moderation data directory")
def user_status(user_id: str, data_dir: str | None):
    """Show active strikes and restrictions for USER_ID."""
    from streamcentives.moderation.store import ModerationStore
    from streamcentives.moderation.strikes import StrikeLedger

    ledger = StrikeLedger(ModerationStore(_config(data_dir).data_dir))
    console.print(f"\n[bold blue]Streamcentives[/] moderation status: {user_id}\n")
    console.print(f"  Active strikes: {ledger.active_strike_count(user_id)}")
    console.print(f"  Restricted:     {ledger.is_restricted(user_id)}")
    console.print(f"  Shadow banned:  {ledger.is_shadow_banned(user_id)}")

    history = ledger.history(user_id)
    if not history:
        return
    table = Table(title="Strike history")
    table.add_column("Created", style="dim")
    table.add_column("Severity")
    table.add_column("Strikes", justify="right")
    table.add_column("Expires", style="dim")
    table.add_column("Penalty")
    for s in history:
        penalty = "shadow ban" if s.is_shadow_banned else "restricted" if s.is_restricted else "-"
        if s.appeal_submitted:
            penalty += f" (appeal {s.appeal_status})"
        table.add_row(
            s.created_at[:19],
            s.strike_severity.value,
            str(s.strike_count),
            s.strike_expires_at[:19],
            penalty,
        )
    console.print(table)


# ── Thresholds ───────────────────────────────────────────────────────


@main.group()
def thresholds():
    """Show or change the moderation thresholds."""


@thresholds.command("show")
@click.option("--data-dir", default=None, help="Moderation data directory")
def thresholds_show(data_dir: str | None):
    """Print the thresholds currently in effect.

    Stored settings override the file named by STREAMCENTIVES_THRESHOLDS_FILE.
    """
    from streamcentives.moderation.pipeline import ModerationPipeline

    active = ModerationPipeline.from_config(_config(data_dir)).load_thresholds()
    click.echo(yaml.safe_dump(active.to_settings(), sort_keys=False))


@thresholds.command("load")
@click.argument("path")
@click.option("--data-dir", default=None, help="Moderation data directory")
def thresholds_load(path: str, data_dir: str | None):
    """Store thresholds from the YAML file at PATH."""
    from streamcentives.moderation.policy import load_thresholds
    from streamcentives.moderation.store import ModerationStore

    loaded = load_thresholds(path)
    store = ModerationStore(_config(data_dir).data_dir)
    store.put_settings(loaded.to_settings())
    console.print(f"[green]Thresholds updated from[/] {path}")


if __name__ == "__main__":
    main()
