from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from dataclasses import asdict
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from ocmgraph.app import (
    apply_component_version,
    delete_component_version,
    get_component_version,
    list_component_versions,
    reconcile_component_version,
    run_controller,
)
from ocmgraph.config import ConfigurationError, configure_logging, get_controller_config
from ocmgraph.domain.errors import ReconcileError
from ocmgraph.ui.manifest import ManifestError, load_manifest

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from ocmgraph.domain.model import ComponentVersion

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve and track OCM component versions")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply = subparsers.add_parser("apply", help="Create or update a component version")
    apply.add_argument("file", type=Path, help="JSON manifest describing the component version")

    reconcile = subparsers.add_parser("reconcile", help="Reconcile one component version now")
    reconcile.add_argument("name", help="Component version name")

    subparsers.add_parser("run", help="Reconcile all component versions until interrupted")

    status = subparsers.add_parser("status", help="Print the status of a component version")
    status.add_argument("name", help="Component version name")

    delete = subparsers.add_parser(
        "delete",
        help="Delete a component version and every descriptor it owns",
    )
    delete.add_argument("name", help="Component version name")

    subparsers.add_parser("list", help="List component versions")

    return parser.parse_args(list(argv))


def _status_document(component_version: ComponentVersion) -> dict[str, Any]:
    status = asdict(component_version.status)
    for condition in status["conditions"]:
        condition["last_transition_time"] = condition["last_transition_time"].isoformat()
    return {
        "name": component_version.name,
        "generation": component_version.generation,
        "ready": component_version.is_ready(),
        "status": status,
    }


def _print_json(document: Any) -> None:
    print(json.dumps(document, indent=2, sort_keys=True, default=str))  # noqa: T201


def _apply(path: Path) -> None:
    manifest = load_manifest(path)
    spec = manifest.to_spec(default_interval=get_controller_config().default_interval)
    result = apply_component_version(manifest.name, spec)
    print(f"{result.name}: {result.operation} (generation {result.generation})")  # noqa: T201


def _reconcile(name: str) -> None:
    result = reconcile_component_version(name)
    if result.requeue_after is None:
        print(f"{name}: not found")  # noqa: T201
        return
    print(  # noqa: T201
        f"{name}: reconciled (status changed: {result.status_changed}, "
        f"next check in {result.requeue_after})"
    )


def _run() -> None:
    stop = threading.Event()

    def handle_sigint(signum: int, frame: FrameType | None) -> None:
        _ = signum, frame
        log.info("Interrupt received, stopping controller")
        stop.set()

    signal(SIGINT, handle_sigint)
    run_controller(stop)


def _status(name: str) -> int:
    component_version = get_component_version(name)
    if component_version is None:
        log.error("Component version %s not found", name)
        return 1
    _print_json(_status_document(component_version))
    return 0


def _delete(name: str) -> int:
    if not delete_component_version(name):
        log.error("Component version %s not found", name)
        return 1
    print(f"{name}: deleted")  # noqa: T201
    return 0


def _list() -> None:
    for component_version in list_component_versions():
        spec = component_version.spec
        ready = "Ready" if component_version.is_ready() else "NotReady"
        print(f"{component_version.name}\t{spec.component}@{spec.version}\t{ready}")  # noqa: T201


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    exit_code = 0
    try:
        if parsed_args.command == "apply":
            _apply(parsed_args.file)
        elif parsed_args.command == "reconcile":
            _reconcile(parsed_args.name)
        elif parsed_args.command == "run":
            _run()
        elif parsed_args.command == "status":
            exit_code = _status(parsed_args.name)
        elif parsed_args.command == "delete":
            exit_code = _delete(parsed_args.name)
        elif parsed_args.command == "list":
            _list()
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (ConfigurationError, ManifestError, ValueError):
        log.exception("Invalid input or configuration")
        sys.exit(2)
    except ReconcileError as exc:
        log.error("Reconcile failed: %s (next attempt in %s)", exc, exc.requeue_after)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
