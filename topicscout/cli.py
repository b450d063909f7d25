"""Command-line interface for topicscout."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path

import click
from sqlalchemy.exc import SQLAlchemyError

from topicscout import __version__
from topicscout.config import AppConfig, DEFAULT_CONFIG_PATH, load_config, write_default_config
from topicscout.errors import SearchTimeoutError, TopicScoutError
from topicscout.rules.models import CategorizationRule, Thresholds, Weights

# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------

@click.group()
@click.option(
    "-c", "--config",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file (default: ~/.topicscout/config.toml)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="topicscout")
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool):
    """TopicScout: find, score and triage recent content on a topic."""
    cfg = load_config(config)
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["config"] = cfg


def _load(ctx: click.Context) -> AppConfig:
    return ctx.obj["config"]


def _open_store(cfg: AppConfig):
    from topicscout.db.engine import init_engine
    from topicscout.db.repository import SqlRulesPersistence
    from topicscout.rules.store import RulesStore

    if not cfg.database.url and cfg.database.sqlite_path != ":memory:":
        Path(cfg.database.sqlite_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    init_engine(cfg.database_url)
    store = RulesStore(SqlRulesPersistence())
    store.initialize()
    return store


@contextmanager
def _user_errors():
    """Report topicscout and database errors as ``Error: ...`` with exit status 1."""
    try:
        yield
    except TopicScoutError as exc:
        raise click.ClickException(str(exc)) from exc
    except SQLAlchemyError as exc:
        raise click.ClickException(f"Database error: {exc}") from exc


def _parse_weights(value: str) -> Weights:
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 4:
        raise click.BadParameter("expected four comma-separated numbers R,Q,F,E")
    try:
        return Weights(*(float(p) for p in parts))
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _weights_option(ctx, param, value):
    return _parse_weights(value) if value else None


def _print_rule(rule: CategorizationRule, active: bool) -> None:
    marker = "*" if active else " "
    w = rule.weights
    click.echo(
        f"{marker} {rule.id:<20} {rule.name}  "
        f"[R{w.relevance:g} Q{w.quality:g} F{w.freshness:g} E{w.external_score:g}, "
        f"threshold {rule.thresholds.expand_threshold:g}]"
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@main.command()
@click.pass_context
def init(ctx: click.Context):
    """Create a default config file and the rules database."""
    config_path = write_default_config(ctx.obj.get("config_path") or DEFAULT_CONFIG_PATH)
    click.echo(f"Config: {config_path}")
    cfg = load_config(config_path)
    with _user_errors():
        store = _open_store(cfg)
    click.echo(f"Database initialised, active rule: {store.active_rule_id}")


@main.command()
@click.argument("topic")
@click.option("--rule", "rule_id", default=None, help="Rule id to use instead of the active rule")
@click.option("--num-results", type=int, default=None, help="Number of search results")
@click.option("--days-back", type=int, default=None, help="Only content published in the last N days")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def research(
    ctx: click.Context,
    topic: str,
    rule_id: str | None,
    num_results: int | None,
    days_back: int | None,
    as_json: bool,
):
    """Search for TOPIC and split results into expand / do not expand."""
    cfg = _load(ctx)
    from topicscout.pipeline import build_pipeline, default_search_options, fetch_research_results

    with _user_errors():
        store = _open_store(cfg)
        rule = store.get_rule(rule_id) if rule_id else None
        pipeline = build_pipeline(cfg, store)

    options = default_search_options(cfg)
    if num_results is not None:
        options.num_results = num_results
    if days_back is not None:
        options.days_back = days_back

    try:
        result = fetch_research_results(pipeline, topic, options, rule)
    except SearchTimeoutError as exc:
        click.echo(f"Timeout: {exc}", err=True)
        ctx.exit(2)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    for heading, records in (
        ("Worth expanding", result.expand_worthy),
        ("Not worth expanding", result.not_expand_worthy),
    ):
        click.echo(f"\n{heading} ({len(records)})")
        for record in records:
            click.echo(f"\n  [{record.priority:3d}] {record.title}")
            click.echo(f"        {record.url}")
            click.echo(f"        {record.reasoning}")


@main.command()
def presets():
    """List the built-in rule presets."""
    from topicscout.rules.presets import PRESETS

    for preset in PRESETS.values():
        w = preset.body.weights
        click.echo(
            f"{preset.icon} {preset.id:<18} {preset.name}: {preset.description}  "
            f"[R{w.relevance:g} Q{w.quality:g} F{w.freshness:g} E{w.external_score:g}, "
            f"threshold {preset.body.thresholds.expand_threshold:g}]"
        )


# ---------------------------------------------------------------------------
# Rules management
# ---------------------------------------------------------------------------

@main.group()
def rules():
    """Manage categorization rules."""


@rules.command("list")
@click.pass_context
def rules_list(ctx: click.Context):
    """List rules; the active one is marked with *."""
    with _user_errors():
        store = _open_store(_load(ctx))
        active = store.active_rule_id
        for rule in store.list_rules():
            _print_rule(rule, rule.id == active)


@rules.command("show")
@click.argument("rule_id")
@click.pass_context
def rules_show(ctx: click.Context, rule_id: str):
    """Print a rule as JSON."""
    with _user_errors():
        rule = _open_store(_load(ctx)).get_rule(rule_id)
    click.echo(json.dumps(rule.to_dict(), ensure_ascii=False, indent=2))


@rules.command("activate")
@click.argument("rule_id")
@click.pass_context
def rules_activate(ctx: click.Context, rule_id: str):
    """Make RULE_ID the active rule."""
    with _user_errors():
        rule = _open_store(_load(ctx)).activate_rule(rule_id)
    click.echo(f"Active rule: {rule.id} ({rule.name})")


@rules.command("delete")
@click.argument("rule_id")
@click.pass_context
def rules_delete(ctx: click.Context, rule_id: str):
    """Delete a custom rule.  The default rule is protected."""
    with _user_errors():
        store = _open_store(_load(ctx))
        removed = store.delete_rule(rule_id)
    if removed is None:
        click.echo(f"Rule {rule_id!r} is protected and was not deleted")
    else:
        click.echo(f"Deleted rule {removed.id}; active rule: {store.active_rule_id}")


@rules.command("apply-preset")
@click.argument("preset_id")
@click.pass_context
def rules_apply_preset(ctx: click.Context, preset_id: str):
    """Create a rule from PRESET_ID and activate it."""
    with _user_errors():
        rule = _open_store(_load(ctx)).apply_preset(preset_id)
    click.echo(f"Created and activated {rule.id} ({rule.name})")


@rules.command("create")
@click.option("--name", required=True)
@click.option("--description", default="")
@click.option("--from-preset", "preset_id", default=None, help="Start from a preset's settings")
@click.option("--weights", callback=_weights_option, default=None, help="R,Q,F,E weights")
@click.option("--threshold", type=float, default=None, help="Expand threshold (0-100)")
@click.option("--activate", is_flag=True, help="Activate the new rule")
@click.pass_context
def rules_create(
    ctx: click.Context,
    name: str,
    description: str,
    preset_id: str | None,
    weights: Weights | None,
    threshold: float | None,
    activate: bool,
):
    """Create a custom rule."""
    from topicscout.errors import PresetNotFoundError
    from topicscout.rules.models import RuleBody
    from topicscout.rules.presets import DEFAULT_RULE_BODY, get_preset

    with _user_errors():
        base = DEFAULT_RULE_BODY
        if preset_id:
            preset = get_preset(preset_id)
            if preset is None:
                raise PresetNotFoundError(preset_id)
            base = preset.body
        thresholds = base.thresholds
        if threshold is not None:
            thresholds = Thresholds(threshold, thresholds.min_word_count, thresholds.max_days_for_fresh)
        store = _open_store(_load(ctx))
        rule = store.create_rule(RuleBody(
            name=name,
            description=description,
            weights=weights or base.weights,
            thresholds=thresholds,
            quality_factors=base.quality_factors,
        ))
        if activate:
            rule = store.activate_rule(rule.id)
    click.echo(f"Created rule {rule.id} ({rule.name}){' [active]' if rule.is_active else ''}")


@rules.command("update")
@click.argument("rule_id")
@click.option("--name", default=None)
@click.option("--description", default=None)
@click.option("--weights", callback=_weights_option, default=None, help="R,Q,F,E weights")
@click.option("--threshold", type=float, default=None, help="Expand threshold (0-100)")
@click.option("--min-word-count", type=int, default=None)
@click.option("--max-days-fresh", type=int, default=None)
@click.pass_context
def rules_update(
    ctx: click.Context,
    rule_id: str,
    name: str | None,
    description: str | None,
    weights: Weights | None,
    threshold: float | None,
    min_word_count: int | None,
    max_days_fresh: int | None,
):
    """Change fields of an existing rule."""
    changes: dict = {}
    if name is not None:
        changes["name"] = name
    if description is not None:
        changes["description"] = description
    if weights is not None:
        changes["weights"] = weights
    thresholds = {
        key: value for key, value in (
            ("expand_threshold", threshold),
            ("min_word_count", min_word_count),
            ("max_days_for_fresh", max_days_fresh),
        ) if value is not None
    }
    if thresholds:
        changes["thresholds"] = thresholds
    if not changes:
        raise click.UsageError("Nothing to update")

    with _user_errors():
        rule = _open_store(_load(ctx)).update_rule(rule_id, **changes)
    click.echo(f"Updated rule {rule.id} ({rule.name})")


if __name__ == "__main__":
    main()
