from __future__ import annotations

"""
tokenguard.cli.main
-------------------

Local tooling for a guarded token:
- print the resolved deployment configuration
- replay a JSON script of token calls against a fresh in-memory token

Script format (a JSON list of steps):

    [
      {"op": "transfer", "args": {"to": "0xabc...", "amount": 100}},
      {"op": "approve", "caller": "0xdef...", "args": {"spender": "0x...", "amount": 5}},
      {"op": "balance_of", "args": {"account": "0xabc..."}}
    ]

`op` is any public GuardedToken read or mutation name. Mutations act as
`caller` (default: the owner). `args` may be an object (keyword arguments)
or a list (positional arguments).

Examples
--------
OWNER=0x11... python -m tokenguard.cli config
OWNER=0x11... python -m tokenguard.cli simulate steps.json --stop-on-error
"""

import dataclasses
import inspect
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from .. import logging as tlog
from .. import metrics
from ..address import to_address
from ..config import ConfigError, TokenConfig
from ..errors import TokenError
from ..events import to_jsonable
from ..token import GuardedToken

app = typer.Typer(
    name="tokenguard",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect configuration and simulate calls against a guarded token.",
)

READ_OPS = frozenset(
    {
        "name",
        "symbol",
        "decimals",
        "total_supply",
        "balance_of",
        "allowance",
        "owner",
        "paused",
        "is_whitelisted",
        "get_transaction_limit",
        "get_wallet_balance_limit",
        "get_anti_bot_protection_status",
    }
)

MUTATION_OPS = frozenset(
    {
        "transfer",
        "transfer_from",
        "approve",
        "increase_allowance",
        "decrease_allowance",
        "burn",
        "burn_from",
        "pause",
        "unpause",
        "add_to_whitelist",
        "remove_from_whitelist",
        "set_transaction_limit",
        "set_wallet_balance_limit",
        "toggle_anti_bot_protection",
        "transfer_ownership",
        "renounce_ownership",
    }
)


# -------------------- utils --------------------


def _load_config(owner: Optional[str]) -> TokenConfig:
    try:
        cfg = TokenConfig.from_env()
        if owner:
            cfg = dataclasses.replace(cfg, owner=to_address(owner))
        return cfg
    except (ConfigError, TokenError) as e:
        typer.secho(f"config error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)


def _load_script(path: Path) -> List[Dict[str, Any]]:
    try:
        steps = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        typer.secho(f"cannot read script {path}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)
    if not isinstance(steps, list) or not all(isinstance(s, dict) for s in steps):
        typer.secho("script must be a JSON list of step objects", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)
    return steps


def _bad_step(message: str) -> Dict[str, Any]:
    return {"code": "BadStep", "message": message}


def run_step(token: GuardedToken, step: Dict[str, Any], default_caller: bytes) -> Dict[str, Any]:
    """Execute one script step; never raises for token-level failures."""
    op = step.get("op")
    if op not in READ_OPS and op not in MUTATION_OPS:
        return {"op": op, "ok": False, "error": _bad_step(f"unknown op {op!r}")}

    fn = getattr(token, op)
    raw_args = step.get("args", {})
    positional: List[Any] = list(raw_args) if isinstance(raw_args, list) else []
    keywords: Dict[str, Any] = dict(raw_args) if isinstance(raw_args, dict) else {}
    if op in MUTATION_OPS:
        positional.insert(0, step.get("caller") or default_caller)

    try:
        inspect.signature(fn).bind(*positional, **keywords)
    except TypeError as e:
        return {"op": op, "ok": False, "error": _bad_step(str(e))}

    since = len(token.events)
    try:
        result = fn(*positional, **keywords)
    except TokenError as err:
        return {"op": op, "ok": False, "error": err.to_dict()}
    return {
        "op": op,
        "ok": True,
        "result": to_jsonable(result),
        "events": [to_jsonable(e) for e in token.get_logs(since=since)],
    }


# -------------------- commands --------------------


@app.command("config")
def config_cmd() -> None:
    """Print the configuration resolved from the environment as JSON."""
    cfg = _load_config(None)
    typer.echo(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))


@app.command("simulate")
def simulate_cmd(
    script: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of steps."),
    owner: Optional[str] = typer.Option(None, "--owner", help="Owner address (overrides OWNER)."),
    stop_on_error: bool = typer.Option(False, "--stop-on-error", help="Exit 1 at the first failing step."),
    show_metrics: bool = typer.Option(False, "--metrics", help="Print Prometheus metrics after the run."),
) -> None:
    """Build a token from the configuration and replay SCRIPT against it."""
    cfg = _load_config(owner)
    tlog.configure_from_config(cfg, stream=sys.stderr)
    steps = _load_script(script)

    try:
        token = GuardedToken.from_config(cfg)
    except (ConfigError, TokenError) as e:
        typer.secho(f"cannot initialize token: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)

    owner_addr = token.owner()
    failed = False
    for i, step in enumerate(steps):
        out = run_step(token, step, owner_addr)
        out["step"] = i
        typer.echo(json.dumps(out, sort_keys=True))
        if not out["ok"]:
            failed = True
            if stop_on_error:
                raise typer.Exit(1)

    if show_metrics:
        typer.echo(metrics.generate_latest_text())
    if failed:
        typer.secho("some steps failed", fg=typer.colors.YELLOW, err=True)


def get_app() -> typer.Typer:
    return app


if __name__ == "__main__":
    app()
