#!/usr/bin/env python3
"""
CLI entry point for the geokit toolkit.

Defines the following commands:
  geokit replay NAME <csv> [--preset NAME] [threshold/interval overrides]
  geokit report NAME
  geokit serve NAME [--port 8000]
  geokit version
"""

import os
import sys
import uuid
from argparse import ArgumentParser, Namespace
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version as _get_version

import uvicorn

from geokit.utils.log import get_logger
from geokit.utils.events import MOTION_STATE_CHANGED
from geokit.utils.validate import Run, TransitionRecord, PolicyRecord
from geokit.storage.dao import DAO
from geokit.server import create_app, db_path
from geokit.parsers.samples import parse_samples
from geokit.motion.config import PolicyConfig
from geokit.sources.replay import ReplaySampleSource, RecordingLocationStream
from geokit.tracking.tracker import Tracker

logger = get_logger(__name__)

# CLI flag -> PolicyConfig field
OVERRIDES = {
    "threshold":       "motion_threshold",
    "start_stability": "start_stability",
    "stop_stability":  "stop_stability",
    "period_ms":       "sampling_period_ms",
    "moving_ms":       "moving_interval_ms",
    "stationary_ms":   "stationary_interval_ms",
}


def build_config(preset: str, overrides: dict) -> PolicyConfig:
    """
    Start from a named preset and apply every override that was given.
    """
    cfg = PolicyConfig.preset(preset)
    changes = {OVERRIDES[k]: v for k, v in overrides.items() if k in OVERRIDES and v is not None}
    return replace(cfg, **changes).normalized()


def replay(mission: str, src_file: str, preset: str, overrides: dict) -> str:
    """
    Replay an accelerometer recording through a detection session.

    Parameters
    ----------
    mission
        Mission name, which dictates the SQLite database file name.
    src_file
        CSV recording of accelerometer samples.
    preset
        Name of the PolicyConfig preset to start from.
    overrides
        Per-field overrides taken from the command line.

    Returns
    -------
    str
        Id of the recorded run.
    """
    logger.info("Replay: mission=%s, src_file=%s, preset=%s", mission, src_file, preset)
    cfg = build_config(preset, overrides)
    samples = list(parse_samples(src_file))

    dao = DAO(db_path(mission))
    run_id = str(uuid.uuid4())
    dao.add_run(Run(id=run_id, mission=mission, src_file=os.path.abspath(src_file),
                    n_samples=0, preset=preset))

    source = ReplaySampleSource(samples)
    stream = RecordingLocationStream()
    tracker = Tracker(source, stream, cfg)

    def record_policy(seq: int) -> None:
        active = tracker.session.scheduler.active
        if active is not None:
            dao.add_policy(PolicyRecord(run_id=run_id, seq=seq, priority=active.priority.value,
                                        interval_ms=active.interval_ms))

    def on_motion(event: dict) -> None:
        seq = tracker.session.classifier.n_samples
        dao.add_transition(TransitionRecord(run_id=run_id, seq=seq,
                                            ts_ms=samples[seq - 1].ts_ms, state=event["state"]))
        record_policy(seq)

    tracker.subscribe(MOTION_STATE_CHANGED, on_motion)
    tracker.start_motion_detector()
    record_policy(0)

    n = source.run()
    tracker.stop_motion_detector()
    dao.update_run_samples(run_id, n)

    logger.info("Run %s: %d samples, %d transitions, %d stream restarts",
                run_id, n, len(dao.get_transitions(run_id)), len(stream.starts))
    return run_id


def report(mission: str) -> None:
    """
    Log a summary of every recorded run.

    Parameters
    ----------
    mission
        Mission name, which dictates the SQLite database file name.
    """
    dao = DAO(db_path(mission))
    runs = dao.get_runs()
    logger.info("Report: mission=%s, %d runs", mission, len(runs))
    for run in runs:
        logger.info("Run %s (%s, preset=%s, %d samples)", run.id, run.src_file, run.preset, run.n_samples)
        for t in dao.get_transitions(run.id):
            logger.info("  sample %6d  -> %s", t.seq, t.state)
        for p in dao.get_policies(run.id):
            logger.info("  sample %6d  policy %s @ %dms", p.seq, p.priority, p.interval_ms)
    for state, n in dao.get_state_counts():
        logger.info("%s transitions: %d", state, n)


def serve(mission: str, port: int) -> None:
    """
    Spin up FastAPI+Uvicorn to serve recorded runs.

    The app is read-only: no tracker is attached, so the live `/api/session`,
    `/api/config/*`, `/api/availability` and `/api/activity` routes are absent.
    Embed `create_app(mission, tracker)` to expose them.

    Parameters
    ----------
    mission
        Mission name, which dictates the SQLite database file name.
    port
        Port on which to serve HTTP.
    """
    logger.info("Serve: mission=%s, port=%d", mission, port)
    app = create_app(mission)
    uvicorn.run(app, host="127.0.0.1", port=port)

def version() -> None:
    """
    Print the installed geokit package version.
    """
    try:
        ver = _get_version("geokit")
    except PackageNotFoundError:
        ver = "unknown"
    logger.info("geokit version %s", ver)


def parse_args(argv: list[str] | None = None) -> Namespace:
    """
    Parse command-line arguments and return the populated namespace.
    """
    parser = ArgumentParser(prog="geokit")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # geokit replay
    p = subparsers.add_parser("replay", help="Replay an accelerometer recording.")
    p.add_argument("mission", type=str, help="Mission name.")
    p.add_argument("src_file", type=str, help="CSV recording (ts_ms,x,y,z or x,y,z).")
    p.add_argument(
        "--preset", choices=["default", "battery_saver"], default="default",
        help="Configuration preset.",
    )
    p.add_argument("--threshold", type=float, help="Motion threshold (m/s^2).")
    p.add_argument("--start-stability", type=int, help="Samples needed to declare MOVING.")
    p.add_argument("--stop-stability", type=int, help="Samples needed to declare STATIONARY.")
    p.add_argument("--period-ms", type=int, help="Sampling period in ms.")
    p.add_argument("--moving-ms", type=int, help="Polling interval while moving, in ms.")
    p.add_argument("--stationary-ms", type=int, help="Polling interval while stationary, in ms.")

    # geokit report
    p = subparsers.add_parser("report", help="Summarize recorded runs.")
    p.add_argument("mission", type=str, help="Mission name.")

    # geokit serve
    p = subparsers.add_parser("serve", help="Serve recorded runs (read-only) via FastAPI + Uvicorn.")
    p.add_argument("mission", type=str, help="Mission name.")
    p.add_argument(
        "--port", type=int, default=8000, help="Port number to serve on."
    )

    # geokit version
    subparsers.add_parser("version", help="Show geokit version and exit.")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """
    Entry point: dispatch to the selected subcommand.
    """
    args = parse_args(argv)
    match args.command:
        case "replay":
            overrides = {k: getattr(args, k) for k in OVERRIDES}
            replay(args.mission, args.src_file, args.preset, overrides)
        case "report":
            report(args.mission)
        case "serve":
            serve(args.mission, args.port)
        case "version":
            version()
        case _:
            sys.exit(1)


if __name__ == "__main__":
    main()
