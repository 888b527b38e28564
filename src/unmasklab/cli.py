"""CLI for unmasklab: ``unmasklab capture``, ``list`` and ``info``."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import cv2

from unmasklab.types import FeatureType

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unmasklab",
        description="Feature extraction from captured portrait photos",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    sub = parser.add_subparsers(dest="command")

    # unmasklab capture
    capture_p = sub.add_parser("capture", help="Replay one capture from files")
    capture_p.add_argument("photo", help="Encoded photo file (JPEG, PNG, ...)")
    capture_p.add_argument(
        "--matte", "-m",
        action="append",
        default=[],
        metavar="FEATURE=PATH",
        help="Segmentation matte image for a feature (repeatable)",
    )
    capture_p.add_argument(
        "--features",
        default=None,
        help="Comma-separated features to extract (default: all)",
    )
    capture_p.add_argument(
        "-o", "--output",
        default=None,
        help="Storage directory (default: ~/.unmasklab/CapturedPhotos)",
    )
    capture_p.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Seconds to wait for the saves to finish (default: 60)",
    )

    # unmasklab list
    list_p = sub.add_parser("list", help="List saved images grouped by date")
    list_p.add_argument("-o", "--output", default=None, help="Storage directory")

    # unmasklab info
    info_p = sub.add_parser("info", help="Show storage usage")
    info_p.add_argument("-o", "--output", default=None, help="Storage directory")

    return parser


def _parse_features(value: Optional[str]):
    if value is None:
        return None
    return frozenset(FeatureType.parse(name) for name in value.split(",") if name.strip())


def _parse_matte(value: str) -> Tuple[FeatureType, Path]:
    name, sep, path = value.partition("=")
    if not sep or not path:
        raise ValueError(f"Expected FEATURE=PATH, got {value!r}")
    return FeatureType.parse(name), Path(path)


def _make_config(args: argparse.Namespace):
    from unmasklab.config import CaptureConfig

    if args.output:
        return CaptureConfig.from_env(storage_dir=args.output)
    return CaptureConfig.from_env()


def _cmd_capture(args: argparse.Namespace) -> int:
    """Handle ``unmasklab capture``."""
    from unmasklab.codec import read_orientation
    from unmasklab.coordinator import CaptureCoordinator
    from unmasklab.events import (
        CaptureFinished,
        MatteReceived,
        PhotoDataReceived,
        WillBeginCapture,
        WillCapturePhoto,
    )
    from unmasklab.types import ResolvedSettings, SegmentationMatte

    try:
        features = _parse_features(args.features)
        matte_args = [_parse_matte(m) for m in args.matte]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    photo_path = Path(args.photo)
    if not photo_path.exists():
        print(f"Error: photo not found: {photo_path}", file=sys.stderr)
        return 2
    data = photo_path.read_bytes()
    orientation = read_orientation(data)

    mattes: List[SegmentationMatte] = []
    for feature, path in matte_args:
        pixels = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
        if pixels is None:
            print(f"Error: cannot read matte {path}", file=sys.stderr)
            return 2
        mattes.append(SegmentationMatte(feature, pixels, orientation))

    with CaptureCoordinator(_make_config(args)) as coordinator:
        session = coordinator.begin(features=features)
        resolved = ResolvedSettings(request_id=session.request_id)
        events = [WillBeginCapture(resolved), WillCapturePhoto(resolved)]
        events.extend(MatteReceived(matte, orientation) for matte in mattes)
        events.append(PhotoDataReceived(data))
        events.append(CaptureFinished(resolved))
        for event in events:
            session.handle(event)
        output = session.wait(timeout=args.timeout)

    for record in output.saved:
        print(f"  {record.feature_type or 'Original':8s}  {record.filename}")
    for feature, error in output.failures.items():
        label = feature.label if feature is not None else "Original"
        print(f"  {label:8s}  failed: {error}", file=sys.stderr)

    if not output.ok:
        print(f"Capture failed: {output.error}", file=sys.stderr)
        return 1
    print(f"Saved {output.saved_count} image(s) to {coordinator.config.resolved_storage_dir}")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    """Handle ``unmasklab list``."""
    from unmasklab.storage import LocalImageStore

    store = LocalImageStore(_make_config(args).resolved_storage_dir)
    groups = store.group_by_date()
    if not groups:
        print("No saved images.")
        return 0

    for group in groups:
        print(f"{group.id} ({len(group.images)})")
        for record in group.images:
            label = record.feature_type or "Original"
            print(f"  {record.capture_date.astimezone():%H:%M:%S}  {label:8s}  {record.filename}")
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle ``unmasklab info``."""
    from unmasklab.storage import LocalImageStore

    store = LocalImageStore(_make_config(args).resolved_storage_dir)
    print(f"Storage: {store.root}")
    print(f"Images:  {store.image_count()}")
    print(f"Used:    {store.storage_used() / 1024:.1f} KB")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``unmasklab`` CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "capture":
        return _cmd_capture(args)
    if args.command == "list":
        return _cmd_list(args)
    if args.command == "info":
        return _cmd_info(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
