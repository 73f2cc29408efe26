"""CLI savings commands, talking to a running API.

moodwallet-cli savings stats --user-id u1 [--days 7]
moodwallet-cli savings history --user-id u1 [--limit 20]

Identity is passed the way the gateway passes it (X-User-Id /
X-Subscription-Tier headers); point --api-url at an instance that is not
behind the gateway, e.g. a local dev server.
"""

from __future__ import annotations

from typing import Optional

import httpx
import typer

from moodwallet.interventions.security.auth import TIER_HEADER, USER_ID_HEADER

savings_app = typer.Typer(add_completion=False, help="Query a user's savings ledger")

_DEFAULT_API_URL = "http://localhost:8000"


def _get(api_url: str, path: str, user_id: str, tier: str, params: dict) -> dict:
    resp = httpx.get(
        api_url.rstrip("/") + path,
        params={k: v for k, v in params.items() if v is not None},
        headers={USER_ID_HEADER: user_id, TIER_HEADER: tier},
        timeout=15,
    )
    if resp.status_code != 200:
        typer.echo(f"Request failed ({resp.status_code}): {resp.text}", err=True)
        raise typer.Exit(1)
    return resp.json()


@savings_app.command("stats")
def stats(
    user_id: str = typer.Option(..., "--user-id", "-u"),
    days: Optional[int] = typer.Option(None, "--days", "-d", min=1),
    tier: str = typer.Option("free", "--tier", "-t"),
    api_url: str = typer.Option(
        _DEFAULT_API_URL, "--api-url", envvar="MOODWALLET_API_URL"
    ),
) -> None:
    """Print a user's savings totals."""
    data = _get(api_url, "/savings/stats", user_id, tier, {"days": days})
    window = "" if days is None else f" (last {days} days)"
    typer.echo(f"Total saved{window}: {data['total_saved']}")
    typer.echo(f"  this month: {data['savings_this_month']}")
    typer.echo(f"  this week:  {data['savings_this_week']}")
    typer.echo(
        f"  confirmed:  {data['confirmed_saved']}  estimated: {data['estimated_saved']}"
    )
    typer.echo(f"  entries:    {data['intervention_count']}")
    for cat in data.get("top_categories", []):
        typer.echo(f"  - {cat['category']:<14} {cat['amount']} ({cat['count']})")


@savings_app.command("history")
def history(
    user_id: str = typer.Option(..., "--user-id", "-u"),
    limit: int = typer.Option(20, "--limit", "-n", min=1),
    tier: str = typer.Option("free", "--tier", "-t"),
    api_url: str = typer.Option(
        _DEFAULT_API_URL, "--api-url", envvar="MOODWALLET_API_URL"
    ),
) -> None:
    """Print a user's most recent ledger entries."""
    data = _get(api_url, "/savings/history", user_id, tier, {"limit": limit})
    for e in data["entries"]:
        kind = "confirmed" if e.get("confirms_entry_id") else "estimate"
        typer.echo(
            f"{e['created_at'][:19]}  {e['saved_amount']:>10} {e['currency']}  "
            f"{e['category']:<13} {kind:<9} {e['description']}"
        )
