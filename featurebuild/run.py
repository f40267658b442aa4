from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .actions import ACTIONS
from .cache import DEFAULT_CACHE_DIR
from .errors import FeatureBuildError
from .graph import DependencyGraph
from .models import Action, Decision
from .orchestrator import DEFAULT_CONFIG_PATH, BuildContext
from .utils import dump_json

logger = logging.getLogger(__name__)


def _context(args: argparse.Namespace) -> BuildContext:
    action_factory = ACTIONS[getattr(args, "action", "docker")]
    return BuildContext(
        config_path=Path(args.config),
        cache_dir=Path(args.cache_dir),
        action=action_factory(),
    )


def cmd_list(args: argparse.Namespace) -> None:
    registry = _context(args).load_registry()
    registry.validate()
    for feature in registry.iter_features():
        inputs = ",".join(feature.inputs) or "-"
        deps = ",".join(feature.depends_on) or "-"
        print(f"{feature.name}\t{inputs}\t{deps}")


def cmd_order(args: argparse.Namespace) -> None:
    registry = _context(args).load_registry()
    for name in DependencyGraph(registry).resolve(args.feature):
        print(name)


def cmd_status(args: argparse.Namespace) -> None:
    orchestrator = _context(args).orchestrator()
    report = orchestrator.plan(args.feature)
    statuses = {
        decision.feature: {
            "cached": decision.previous,
            "current": decision.fingerprint,
            "up_to_date": decision.action is Action.SKIP,
            "dependents": orchestrator.graph.dependents(decision.feature),
        }
        for decision in report.decisions
    }
    print(dump_json(statuses, sort_keys=False))


def _print_decision(decision: Decision) -> None:
    print(decision, flush=True)


def cmd_plan(args: argparse.Namespace) -> None:
    _context(args).orchestrator().plan(args.feature, on_decision=_print_decision)


def cmd_build(args: argparse.Namespace) -> None:
    orchestrator = _context(args).orchestrator(force=args.force)
    if args.json:
        print(dump_json(orchestrator.run(args.feature).to_dict()))
        return
    orchestrator.run(args.feature, on_decision=_print_decision)


def cmd_clean(args: argparse.Namespace) -> None:
    context = _context(args)
    cache = context.cache_store()
    if args.feature:
        names = DependencyGraph(context.load_registry()).resolve(args.feature)
    else:
        names = list(cache.entries())
    for name in names:
        if cache.invalidate(name):
            print(f"CLEAN {name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Incremental feature builder")
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to the feature registry file.",
    )
    parser.add_argument(
        "--cache-dir",
        default=DEFAULT_CACHE_DIR,
        help="Directory holding one fingerprint record per feature.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List features in the registry")
    list_parser.set_defaults(func=cmd_list)

    for command, func, help_text in (
        ("order", cmd_order, "Show the build order for a feature"),
        ("status", cmd_status, "Compare cached and current fingerprints"),
        ("plan", cmd_plan, "Show SKIP/BUILD decisions without building"),
    ):
        sub_parser = subparsers.add_parser(command, help=help_text)
        sub_parser.add_argument("--feature", required=True)
        sub_parser.set_defaults(func=func)

    build_parser_ = subparsers.add_parser("build", help="Build a feature and its dependencies")
    build_parser_.add_argument("--feature", required=True)
    build_parser_.add_argument("--force", action="store_true", help="Ignore cached fingerprints")
    build_parser_.add_argument(
        "--action",
        choices=sorted(ACTIONS),
        default="docker",
        help="How each stale feature is built.",
    )
    build_parser_.add_argument("--json", action="store_true", help="Print the report as JSON")
    build_parser_.set_defaults(func=cmd_build)

    clean_parser = subparsers.add_parser("clean", help="Remove cached fingerprints")
    clean_parser.add_argument(
        "--feature",
        help="Only clear records in this feature's build order (default: every record).",
    )
    clean_parser.set_defaults(func=cmd_clean)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        args.func(args)
    except FeatureBuildError as exc:
        logger.debug("Run aborted", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
