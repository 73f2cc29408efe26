from __future__ import annotations

import typer
from moodwallet.interventions.cli.rules import rules_app
from moodwallet.interventions.cli.savings import savings_app


def build_cli() -> typer.Typer:
    app = typer.Typer(add_completion=True, help="MoodWallet interventions CLI")
    app.add_typer(rules_app, name="rules")
    app.add_typer(savings_app, name="savings")
    return app


def create_app():
    build_cli()()


if __name__ == "__main__":
    app = create_app()
