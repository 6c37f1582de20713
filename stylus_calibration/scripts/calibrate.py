#!/usr/bin/env python3
"""Calibration command line -- replay recordings and manage stored curves.

Usage::

    python -m stylus_calibration.scripts.calibrate apply strokes.yaml --brush "Pencil 02"
    python -m stylus_calibration.scripts.calibrate apply strokes.yaml --all-brushes --exponent 2
    python -m stylus_calibration.scripts.calibrate show
    python -m stylus_calibration.scripts.calibrate reset --brush "Pencil 02"
    python -m stylus_calibration.scripts.calibrate reset --all
    python -m stylus_calibration.scripts.calibrate reset --all --purge
    python -m stylus_calibration.scripts.calibrate disable
    python -m stylus_calibration.scripts.calibrate enable

A recording is a YAML document of strokes, each a list of motion samples
(``p`` may be null for devices without a pressure axis, ``t`` in ms)::

    brush: Pencil 02          # optional, --brush wins
    strokes:
      - - {p: 0.42, x: 10, y: 10, t: 0}
        - {p: 0.47, x: 14, y: 13, t: 16}
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

import yaml

from stylus_calibration.configs.loader import CalibrationConfig, load_config
from stylus_calibration.curves.curve import Curve
from stylus_calibration.curves.fitter import FIT_POLICIES
from stylus_calibration.errors import CalibrationError, ConfigError
from stylus_calibration.host import InMemoryDeviceManager
from stylus_calibration.session import CalibrationSession
from stylus_calibration.store.curve_store import ApplyScope
from stylus_calibration.utils.fs import load_yaml, safe_remove
from stylus_calibration.utils.logging_config import install_excepthook, setup_logging

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "stylus"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Stylus pressure calibration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", "-c", type=str, help="Config file path")
    parser.add_argument("--store", type=str,
                        help="Curve store path (overrides storage.store_path)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    apply = sub.add_parser("apply", help="Fit and store a curve from a recording")
    apply.add_argument("recording", type=str, help="YAML recording of strokes")
    apply.add_argument("--brush", type=str, help="Brush the curve is stored for")
    apply.add_argument("--all-brushes", action="store_true",
                       help="Store as the global default and clear brush curves")
    apply.add_argument("--exponent", type=float,
                       help="Power setting (also persisted for later runs)")
    apply.add_argument("--policy", choices=sorted(FIT_POLICIES),
                       help="Fit policy (default from config)")
    apply.add_argument("--device", type=str, default=DEFAULT_DEVICE,
                       help=f"Device id the curve is applied to (default: {DEFAULT_DEVICE})")

    sub.add_parser("show", help="Print stored curves")

    reset = sub.add_parser("reset", help="Forget stored curves")
    target = reset.add_mutually_exclusive_group(required=True)
    target.add_argument("--brush", type=str, help="Forget one brush's curve")
    target.add_argument("--all", action="store_true",
                        help="Forget every brush curve and the global default")
    reset.add_argument("--purge", action="store_true",
                       help="With --all, delete the store file instead of saving an empty one")

    sub.add_parser("enable", help="Apply custom curves to the device")
    sub.add_parser("disable", help="Use the identity curve on the device")
    return parser


def _load_config(args: argparse.Namespace) -> CalibrationConfig:
    config = load_config(args.config)
    if args.store:
        storage = dataclasses.replace(config.storage, store_path=Path(args.store).expanduser())
        config = dataclasses.replace(config, storage=storage)
    return config


def _read_recording(path: str | Path) -> tuple[list[list[dict[str, Any]]], str | None]:
    """Return ``(strokes, brush)`` from a recording file.

    Raises
    ------
    ValueError
        If the document does not hold a list of strokes.
    """
    data = load_yaml(path)
    if not isinstance(data, dict) or not isinstance(data.get("strokes"), list):
        raise ValueError(f"{path}: expected a mapping with a 'strokes' list")
    strokes = []
    for index, stroke in enumerate(data["strokes"]):
        if not isinstance(stroke, list):
            raise ValueError(f"{path}: stroke #{index} is not a list of samples")
        strokes.append(stroke)
    return strokes, data.get("brush")


def _format_curve(curve: Curve) -> str:
    pts = ", ".join(f"({x:.3f}, {y:.3f})" for x, y in curve.points)
    return f"[{curve.fit_mode}] {pts}"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_apply(args: argparse.Namespace, config: CalibrationConfig) -> int:
    strokes, recorded_brush = _read_recording(args.recording)

    host = InMemoryDeviceManager()
    host.add_device(args.device, make_current=True)
    host.set_current_brush(args.brush or recorded_brush)
    session = CalibrationSession.from_config(host, config)

    if args.exponent is not None:
        session.set_power_setting(args.exponent)

    for stroke in strokes:
        if not stroke:
            continue
        first = stroke[0]
        session.begin_stroke(first["x"], first["y"])
        for s in stroke:
            session.record_sample(s.get("p"), s["x"], s["y"], s["t"])
        session.end_stroke()

    scope = ApplyScope.ALL_BRUSHES if args.all_brushes else ApplyScope.CURRENT_BRUSH_ONLY
    try:
        curve = session.apply_calibration(scope=scope, policy=args.policy)
    except CalibrationError as exc:
        print(f"Calibration not applied: {exc}")
        return 1

    session.shutdown()
    print(f"Calibration applied (power {session.get_current_power_setting():.2f})")
    print(_format_curve(curve))
    return 0


def cmd_show(args: argparse.Namespace, config: CalibrationConfig) -> int:
    host = InMemoryDeviceManager()
    session = CalibrationSession.from_config(host, config)
    store = session.store

    print(f"Store:    {config.storage.store_path}")
    print(f"Enabled:  {'yes' if store.enabled else 'no'}")
    print(f"Power:    {session.get_current_power_setting():.2f}")
    if store.global_default is not None:
        print(f"Global:   {_format_curve(store.global_default)}")
    else:
        print("Global:   (none)")
    entries = list(store.entries())
    if not entries:
        print("Brushes:  (none)")
    for entry in entries:
        label = entry.brush.name if not entry.brush.uid else f"{entry.brush.name} <{entry.brush.uid}>"
        print(f"  {label}: {_format_curve(entry.curve)}")
    return 0


def cmd_reset(args: argparse.Namespace, config: CalibrationConfig) -> int:
    store_path = config.storage.store_path
    if args.purge:
        if not args.all:
            print("Error: --purge requires --all", file=sys.stderr)
            return 2
        if safe_remove(store_path):
            print(f"Removed {store_path}")
        else:
            print(f"No curve store at {store_path}")
        return 0

    host = InMemoryDeviceManager()
    session = CalibrationSession.from_config(host, config)
    if args.all:
        session.reset_all_curves()
        print("All curves reset")
    elif session.reset_brush(args.brush):
        print(f"Curve for '{args.brush}' reset")
    else:
        print(f"No curve stored for '{args.brush}'")
    session.shutdown()
    return 0


def cmd_set_enabled(args: argparse.Namespace, config: CalibrationConfig) -> int:
    host = InMemoryDeviceManager()
    session = CalibrationSession.from_config(host, config)
    state = session.set_enabled(args.command == "enable")
    session.shutdown()
    print(f"Custom curves {'enabled' if state else 'disabled'}")
    return 0


COMMANDS = {
    "apply": cmd_apply,
    "show": cmd_show,
    "reset": cmd_reset,
    "enable": cmd_set_enabled,
    "disable": cmd_set_enabled,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_config(args)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    log_kwargs = config.logging.as_kwargs()
    if args.verbose:
        log_kwargs["log_level"] = "DEBUG"
    setup_logging(**log_kwargs, context={"app": "calibrate"})
    install_excepthook()

    try:
        return COMMANDS[args.command](args, config)
    except (ValueError, KeyError, FileNotFoundError, yaml.YAMLError) as exc:
        logger.error("Calibration error: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
