"""CLI rule commands.

moodwallet-cli rules list [--tier premium]
moodwallet-cli rules try --sample [--tier premium] [--user-id demo]
moodwallet-cli rules try --snapshot ./snapshot.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from moodwallet.interventions.engine.engine_service import InterventionEngine
from moodwallet.interventions.engine.entitlement import Tier, satisfies
from moodwallet.interventions.engine.rules.builtin import (
    build_default_registry,
    sample_snapshot,
)
from moodwallet.interventions.errors import ValidationError

rules_app = typer.Typer(add_completion=False, help="Inspect and dry-run intervention rules")


@rules_app.command("list")
def list_rules(
    tier: str = typer.Option(
        Tier.premium.value, "--tier", "-t", help="Tier used to mark eligible rules."
    ),
) -> None:
    """Print registered rules in evaluation order."""
    for rule in build_default_registry().all_rules():
        mark = "*" if satisfies(tier, rule.minimum_tier) else " "
        typer.echo(
            f"{mark} {rule.priority:>2}  {rule.id:<32} {rule.minimum_tier.value:<8} {rule.name}"
        )


@rules_app.command("try")
def try_rules(
    snapshot_file: Optional[Path] = typer.Option(
        None,
        "--snapshot",
        "-s",
        help="JSON file holding a context snapshot.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    sample: bool = typer.Option(
        False, "--sample", help="Use the built-in high-risk sample snapshot."
    ),
    tier: str = typer.Option(Tier.premium.value, "--tier", "-t"),
    user_id: str = typer.Option("cli-user", "--user-id", "-u"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON."),
) -> None:
    """Evaluate a snapshot locally and print the interventions that fire."""
    if sample == (snapshot_file is not None):
        typer.echo("Pass exactly one of --sample or --snapshot.", err=True)
        raise typer.Exit(2)

    if sample:
        snapshot = sample_snapshot(user_id)
    else:
        data = json.loads(snapshot_file.read_text(encoding="utf-8"))
        snapshot = {"user_id": user_id, **data}

    engine = InterventionEngine(build_default_registry())
    try:
        outcome = engine.evaluate_detailed(snapshot, tier)
    except ValidationError as e:
        for err in e.errors:
            typer.echo(f"  [invalid] {err}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "results": [r.model_dump(mode="json") for r in outcome.results],
                    "overall_risk": outcome.overall_risk,
                    "skipped_by_tier": outcome.skipped_by_tier,
                    "failed_rules": outcome.failed_rules,
                },
                indent=2,
            )
        )
        return

    typer.echo(
        f"{len(outcome.results)} interventions fired (overall risk {outcome.overall_risk})"
    )
    for result in outcome.results:
        savings = (
            f"  ~{result.estimated_savings}" if result.estimated_savings is not None else ""
        )
        typer.echo(f"- [{result.risk_level.value}] {result.intervention_type}{savings}")
        typer.echo(f"    {result.message}")
    if outcome.skipped_by_tier:
        typer.echo(f"Locked for tier {Tier.coerce(tier).value}: {', '.join(outcome.skipped_by_tier)}")
