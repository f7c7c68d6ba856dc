"""Command-line interface router for tierforge."""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from collections.abc import Mapping, Sequence
from fractions import Fraction
from pathlib import Path
from typing import Any

import structlog

from tierforge.assembler import build_config
from tierforge.config import (
    ConfigLoadError,
    ConfigValidationError,
    load_config,
)
from tierforge.inputs import (
    InputLoadError,
    load_model_ids,
    load_model_payload,
    load_overrides_file,
    model_source_labels,
)
from tierforge.main import ExitCode
from tierforge.observability import correlation_scope, setup_logging, shutdown_logging
from tierforge.overrides import filter_excluded_models
from tierforge.ranking import (
    HeuristicRanker,
    Ranker,
    build_tiers,
    ranker_for_strategy,
    score_breakdown,
    score_model,
)
from tierforge.roles import default_role_table
from tierforge.ui.render import CLIRenderer, create_renderer

logger = structlog.get_logger(__name__)


class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    def __init__(self, message: str, exit_code: int = ExitCode.NOTHING_TO_EMIT) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = int(exit_code)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="tierforge",
        description=(
            "tierforge — tier a model catalog and synthesize oh-my-opencode configs.\n\n"
            "Common workflows:\n"
            "  tierforge build --models models.json        Emit an oh-my-opencode config\n"
            "  tierforge tiers --models models.json        Show the four capability tiers\n"
            "  tierforge score gpt-5.2 claude-opus-4-6     Score individual model ids\n"
            "  tierforge roles                             Show the role table\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to tierforge TOML config (default: ./tierforge.toml if present).",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show detailed output and debug logs.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )
    common.add_argument("--json", action="store_true", help="Emit JSON output")

    ranking = argparse.ArgumentParser(add_help=False)
    ranking.add_argument(
        "--models",
        dest="models_path",
        required=True,
        help="Model list: list-models JSON response, JSON/YAML id list, or text (one per line).",
    )
    ranking.add_argument(
        "--strategy",
        choices=("heuristic", "prefix"),
        default=None,
        help="Ranking strategy (overrides engine.ranking_strategy).",
    )
    ranking.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="MODEL_ID",
        help="Exclude a model id before tiering (repeatable; overrides engine.excluded_models).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # build ---------------------------------------------------------------
    build_parser_ = subparsers.add_parser(
        "build",
        parents=[common, ranking],
        help="Assemble an oh-my-opencode config from a model list",
        description=(
            "Rank the available models, resolve every agent and category, and print\n"
            "the resulting oh-my-opencode document.\n\n"
            "Examples:\n"
            "  tierforge build --models models.json\n"
            "  tierforge build --models models.json --overrides overrides.yaml\n"
            "  tierforge build --models models.txt --output oh-my-opencode.json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    build_parser_.add_argument(
        "--overrides",
        dest="overrides_path",
        default=None,
        help="User override tree (JSON, YAML or TOML).",
    )
    build_parser_.add_argument(
        "--output",
        "-o",
        dest="output_path",
        default=None,
        help="Write the config to this file instead of stdout.",
    )
    build_parser_.set_defaults(handler=_cmd_build)

    # tiers ---------------------------------------------------------------
    tiers_parser = subparsers.add_parser(
        "tiers",
        parents=[common, ranking],
        help="Show the four capability tiers of a model list",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    tiers_parser.set_defaults(handler=_cmd_tiers)

    # score ---------------------------------------------------------------
    score_parser = subparsers.add_parser(
        "score",
        parents=[common],
        help="Score model ids with the capability heuristic",
        description=(
            "Print heuristic scores in ranked order; --verbose adds per-rule contributions.\n\n"
            "Examples:\n"
            "  tierforge score claude-opus-4-6 gpt-5.2-codex gemini-3-flash\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    score_parser.add_argument("model_ids", nargs="+", metavar="MODEL_ID")
    score_parser.set_defaults(handler=_cmd_score)

    # roles ---------------------------------------------------------------
    roles_parser = subparsers.add_parser(
        "roles",
        parents=[common],
        help="Show the agent and category role table",
    )
    roles_parser.set_defaults(handler=_cmd_roles)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective runtime settings",
        description=(
            "Display the effective settings after merging defaults, file, and env.\n\n"
            "Examples:\n"
            "  tierforge config\n"
            "  TIERFORGE_ENGINE_RANKING_STRATEGY=prefix tierforge config --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return int(ExitCode.CONFIG_ERROR)

    try:
        config = _load_effective_config(namespace)
        setup_logging(config["observability"], run_id=_new_run_id(namespace.command))
        with correlation_scope(command=namespace.command):
            result = handler(namespace, config)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    finally:
        shutdown_logging()
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_build(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    engine = config["engine"]
    models = _load_models(args)
    overrides: dict[str, Any] | None = None
    overrides_path = getattr(args, "overrides_path", None)
    if overrides_path:
        try:
            overrides = load_overrides_file(overrides_path)
        except InputLoadError as exc:
            raise CLIError(str(exc), exit_code=ExitCode.INPUT_ERROR) from exc

    document = build_config(
        models,
        overrides,
        excluded_models=engine["excluded_models"],
        ranker=_ranker_from_config(engine),
    )
    if document is None:
        raise CLIError(
            "no role could be assigned a model; the model list is empty after exclusions",
            exit_code=ExitCode.NOTHING_TO_EMIT,
        )

    output_path = getattr(args, "output_path", None)
    if not output_path:
        if _flag(args, "json"):
            print(json.dumps(document, separators=(",", ":"), ensure_ascii=False))
        else:
            print(json.dumps(document, indent=2, ensure_ascii=False))
        return ExitCode.SUCCESS

    target = Path(output_path).expanduser()
    try:
        target.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", "utf-8")
    except OSError as exc:
        raise CLIError(
            f"unable to write {target}: {exc}", exit_code=ExitCode.INPUT_ERROR
        ) from exc
    logger.info("config_written", path=str(target))

    agents = len(document.get("agents", {}))
    categories = len(document.get("categories", {}))
    if _flag(args, "json"):
        _emit_json(
            {
                "command": "build",
                "output": str(target),
                "agents": agents,
                "categories": categories,
            }
        )
        return ExitCode.SUCCESS

    renderer = _get_renderer(args)
    renderer.kv("Wrote", target)
    renderer.kv("Agents", agents)
    renderer.kv("Categories", categories)
    return ExitCode.SUCCESS


def _cmd_tiers(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    engine = config["engine"]
    models = filter_excluded_models(_load_models(args), engine["excluded_models"])
    tiers = build_tiers(models, ranker=_ranker_from_config(engine))
    labels = _source_labels(args)

    if _flag(args, "json"):
        _emit_json({"command": "tiers", "tiers": tiers.to_dict(), "sources": labels})
        return ExitCode.SUCCESS

    renderer = _get_renderer(args)
    renderer.heading(f"Tiers for {len(models)} model(s)")
    if not models:
        renderer.warning("model list is empty; every tier is empty")
        return ExitCode.SUCCESS
    for level in (1, 2, 3, 4):
        rows = [
            [str(index), model_id, labels.get(model_id, "")]
            for index, model_id in enumerate(tiers.for_level(level), start=1)
        ]
        renderer.table(("#", "Model", "Source"), rows, title=f"Tier {level}:")
    return ExitCode.SUCCESS


def _cmd_score(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    model_ids = tuple(getattr(args, "model_ids", ()) or ())
    ranked = HeuristicRanker().rank(model_ids)
    entries = [
        {
            "id": model_id,
            "score": score_model(model_id),
            "breakdown": {
                name: _fraction_json(amount) for name, amount in score_breakdown(model_id)
            },
        }
        for model_id in ranked
    ]

    if _flag(args, "json"):
        _emit_json({"command": "score", "models": entries})
        return ExitCode.SUCCESS

    renderer = _get_renderer(args)
    headers: tuple[str, ...] = ("Rank", "Model", "Score")
    if renderer.verbose:
        headers = (*headers, "Breakdown")
    rows: list[list[str]] = []
    for index, model_id in enumerate(ranked, start=1):
        row = [str(index), model_id, str(score_model(model_id))]
        if renderer.verbose:
            parts = [
                f"{name}=+{_fraction_json(amount)}" for name, amount in score_breakdown(model_id)
            ]
            row.append(", ".join(parts) or "-")
        rows.append(row)
    renderer.table(headers, rows)
    return ExitCode.SUCCESS


def _cmd_roles(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    table = default_role_table()

    if _flag(args, "json"):
        _emit_json({"command": "roles", **table.to_dict()})
        return ExitCode.SUCCESS

    renderer = _get_renderer(args)
    renderer.table(
        ("Agent", "Tier", "Label"),
        [[role.name, str(role.tier), role.label] for role in table.agents.values()],
        title="Agents:",
    )
    renderer.table(
        ("Category", "Tier", "Label"),
        [[role.name, str(role.tier), role.label] for role in table.categories.values()],
        title="Categories:",
    )
    return ExitCode.SUCCESS


def _cmd_config(args: argparse.Namespace, config: Mapping[str, Any]) -> int:
    config_path = getattr(args, "config_path", None)
    payload: dict[str, object] = {
        "command": "config",
        "config_path": config_path,
        "config": dict(config),
    }

    if _flag(args, "json"):
        _emit_json(payload)
        return ExitCode.SUCCESS

    renderer = _get_renderer(args)
    renderer.kv("Config file", config_path or "(default: ./tierforge.toml if present)")
    renderer.text(json.dumps(config, indent=2, sort_keys=True, ensure_ascii=False))
    return ExitCode.SUCCESS


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(no_color=_flag(args, "no_color"), verbose=_flag(args, "verbose"))


def _fraction_json(value: Fraction) -> int | float:
    if value.denominator == 1:
        return int(value)
    return float(value)


# ---------------------------------------------------------------------------
# Config and input helpers
# ---------------------------------------------------------------------------


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, object] = {}
    strategy = getattr(args, "strategy", None)
    if strategy:
        overrides["engine.ranking_strategy"] = strategy
    excluded = getattr(args, "exclude", None)
    if excluded:
        overrides["engine.excluded_models"] = list(excluded)
    if _flag(args, "verbose"):
        overrides["observability.log_level"] = "DEBUG"

    try:
        return load_config(getattr(args, "config_path", None), cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=ExitCode.CONFIG_ERROR) from exc


def _ranker_from_config(engine: Mapping[str, Any]) -> Ranker:
    return ranker_for_strategy(
        engine["ranking_strategy"],
        priorities=engine["prefix_priorities"] or None,
    )


def _load_models(args: argparse.Namespace) -> tuple[str, ...]:
    try:
        return load_model_ids(args.models_path)
    except InputLoadError as exc:
        raise CLIError(str(exc), exit_code=ExitCode.INPUT_ERROR) from exc


def _source_labels(args: argparse.Namespace) -> dict[str, str]:
    try:
        return model_source_labels(load_model_payload(args.models_path))
    except InputLoadError as exc:
        raise CLIError(str(exc), exit_code=ExitCode.INPUT_ERROR) from exc


def _new_run_id(command: str) -> str:
    return f"{command}-{uuid.uuid4().hex[:12]}"


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "run_cli"]
