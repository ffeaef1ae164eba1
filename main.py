#!/usr/bin/env python3
"""Battle Result Tracker - Unified CLI Entry Point.

This module provides a command-line interface for the live battle result
tracker and its calibration helpers.

Usage:
    python main.py watch --events output/events.jsonl
    python main.py scan-image stacked.jpg
    python main.py classify Area1 Area2

For detailed help on each command:
    python main.py watch --help
    python main.py scan-image --help
    python main.py classify --help
"""

import argparse
import json
import logging
import signal
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional


def get_output_path(input_path: str, suffix: str, explicit_output: Optional[str] = None) -> str:
    """Get output file path with default to output/ directory with timestamp.

    Args:
        input_path: Path (or base name) the output is derived from.
        suffix: Suffix to append to the base name (e.g., '_events.jsonl').
        explicit_output: Explicitly specified output path (takes priority).

    Returns:
        Output file path with timestamp (e.g., output/battle_events_20250111_143052.jsonl).
    """
    if explicit_output:
        return explicit_output

    output_dir = Path('output')
    output_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    input_stem = Path(input_path).stem

    # e.g., "_events.jsonl" becomes "_events_20250111_143052.jsonl"
    suffix_parts = suffix.rsplit('.', 1)
    if len(suffix_parts) == 2:
        suffix_with_timestamp = f"{suffix_parts[0]}_{timestamp}.{suffix_parts[1]}"
    else:
        suffix_with_timestamp = f"{suffix}_{timestamp}"

    return str(output_dir / f"{input_stem}{suffix_with_timestamp}")


def ensure_output_dir(output_path: str) -> None:
    """Ensure output directory exists for the given path.

    Args:
        output_path: Full path to output file.
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def positive_float(value: str) -> float:
    """argparse type for durations that must be greater than zero."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be a number, got {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Battle Result Tracker - Detect match results on a live broadcast',
        epilog='For detailed help: python main.py <command> --help'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        title='Available Commands',
        description='Select a command to run',
        help='Use <command> --help for more information'
    )

    # =========================================================================
    # WATCH COMMAND (live tracker)
    # =========================================================================
    watch_parser = subparsers.add_parser(
        'watch',
        help='Watch the capture device and track battle results',
        description='Poll the capture device for game over banners and keep running win statistics'
    )
    watch_parser.add_argument(
        '--device',
        help='Capture device name (default: CAPTURE_DEVICE from .env or "OBS Virtual Camera")'
    )
    watch_parser.add_argument(
        '--input-format',
        help='ffmpeg input format (default: dshow/avfoundation/v4l2 by platform)'
    )
    watch_parser.add_argument(
        '--interval',
        type=positive_float,
        help='Seconds between sampling cycles (default: 1.0)'
    )
    watch_parser.add_argument(
        '--clear-delay',
        type=positive_float,
        help='Debounce window after a detection in seconds (default: 2.0)'
    )
    watch_parser.add_argument(
        '--ocr',
        choices=['tesseract', 'paddleocr'],
        help='OCR engine (default: tesseract)'
    )
    watch_parser.add_argument(
        '--gpu',
        action='store_true',
        help='Use GPU acceleration (for PaddleOCR)'
    )
    watch_parser.add_argument(
        '--events',
        help='JSON lines file for state and message events, "-" for stdout '
             '(default: output/battle_events_YYYYMMDD_HHMMSS.jsonl)'
    )
    watch_parser.add_argument(
        '--tts',
        action='store_true',
        help='Synthesize streak announcements with OpenAI speech (requires OPENAI_API_KEY)'
    )
    watch_parser.add_argument(
        '--time-signal',
        action='store_true',
        help='Announce the hour and win totals at the top of every hour (6pm-2am)'
    )
    watch_parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print debug logging'
    )

    # =========================================================================
    # SCAN IMAGE COMMAND (calibration)
    # =========================================================================
    scan_parser = subparsers.add_parser(
        'scan-image',
        help='Recognize the four banner zones of a saved stacked image',
        description='Run banner OCR on a saved stacked image and show the resulting outcome'
    )
    scan_parser.add_argument(
        'image',
        help='Path to stacked image (four 562x105 zones stacked vertically)'
    )
    scan_parser.add_argument(
        '-o', '--output',
        help='Optional JSON file for the scan results'
    )
    scan_parser.add_argument(
        '--ocr',
        choices=['tesseract', 'paddleocr'],
        help='OCR engine (default: tesseract)'
    )
    scan_parser.add_argument(
        '--gpu',
        action='store_true',
        help='Use GPU acceleration (for PaddleOCR)'
    )
    scan_parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print debug logging'
    )

    # =========================================================================
    # CLASSIFY COMMAND
    # =========================================================================
    classify_parser = subparsers.add_parser(
        'classify',
        help='Show the outcome for a set of detected zones',
        description='Classify detected banner zones (Area1..Area4) into a match outcome'
    )
    classify_parser.add_argument(
        'areas',
        nargs='+',
        help='Detected zones, e.g. Area1 Area2'
    )
    classify_parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print debug logging'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the battle result tracker.

    Args:
        argv: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Show help if no command provided
    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(getattr(args, 'verbose', False))

    try:
        if args.command == 'watch':
            return cmd_watch(args)
        elif args.command == 'scan-image':
            return cmd_scan_image(args)
        elif args.command == 'classify':
            return cmd_classify(args)
        else:
            print(f"Error: Unknown command '{args.command}'")
            return 1

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def load_config(args: argparse.Namespace):
    """Load configuration from .env and apply command-line overrides."""
    from src.scoreboard.config import TrackerConfig

    config = TrackerConfig.from_env()
    if getattr(args, 'device', None):
        config.capture_device = args.device
    if getattr(args, 'input_format', None):
        config.capture_format = args.input_format
    if getattr(args, 'interval', None) is not None:
        config.poll_interval = args.interval
    if getattr(args, 'clear_delay', None) is not None:
        config.clear_delay = args.clear_delay
    if getattr(args, 'ocr', None):
        config.ocr_engine = args.ocr
    return config


def build_recognizer(config, use_gpu: bool = False):
    """Create the region recognizer selected in the configuration."""
    if config.ocr_engine == 'paddleocr':
        from src.scoreboard.game_detection.paddleocr_recognizer import PaddleOCRRegionRecognizer
        return PaddleOCRRegionRecognizer(whitelist=config.marker, use_gpu=use_gpu)

    from src.scoreboard.game_detection import TesseractRegionRecognizer
    return TesseractRegionRecognizer(whitelist=config.marker, tesseract_cmd=config.tesseract_cmd)


def cmd_watch(args: argparse.Namespace) -> int:
    """Execute the live tracking command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    from src.scoreboard.game_detection import FfmpegFrameSampler
    from src.scoreboard.outputs import (
        CompositeAnnouncer, CompositeBroadcaster, JsonLinesBroadcaster,
        LoggingAnnouncer, LoggingBroadcaster, OpenAISpeechAnnouncer
    )
    from src.scoreboard.time_announcer import TimeAnnouncer
    from src.scoreboard.tracker import BattleTracker

    config = load_config(args)

    sampler = FfmpegFrameSampler(device=config.capture_device, input_format=config.capture_format)
    recognizer = build_recognizer(config, use_gpu=args.gpu)

    events_path = get_output_path('battle', '_events.jsonl', args.events)
    if events_path != '-':
        ensure_output_dir(events_path)

    announcers = [LoggingAnnouncer()]
    if args.tts:
        announcers.append(OpenAISpeechAnnouncer(
            api_key=config.openai_api_key,
            model=config.tts_model,
            voice=config.tts_voice
        ))
    announcer = CompositeAnnouncer(announcers)
    broadcaster = CompositeBroadcaster([LoggingBroadcaster(), JsonLinesBroadcaster(events_path)])

    tracker = BattleTracker(
        sampler,
        recognizer,
        announcer=announcer,
        broadcaster=broadcaster,
        config=config
    )
    time_announcer = None
    if args.time_signal:
        time_announcer = TimeAnnouncer(
            tracker.engine,
            announcer=announcer,
            broadcaster=broadcaster,
            sponsors=config.sponsors,
            timezone=config.display_timezone
        )

    shutdown = threading.Event()

    def request_shutdown(signum, frame):
        print("\nReceived shutdown signal.")
        shutdown.set()

    signal.signal(signal.SIGINT, request_shutdown)
    signal.signal(signal.SIGTERM, request_shutdown)

    print(f"Watching '{config.capture_device}' every {config.poll_interval}s ({config.ocr_engine})")
    if events_path != '-':
        print(f"  Events: {events_path}")

    try:
        tracker.start()
        if time_announcer:
            time_announcer.start()

        while not shutdown.wait(0.5):
            pass
    finally:
        if time_announcer:
            time_announcer.stop()
        tracker.stop()
        announcer.close()
        broadcaster.close()

    print(tracker.engine.battle_summary())
    return 0


def cmd_scan_image(args: argparse.Namespace) -> int:
    """Execute the stacked image scan command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    from src.scoreboard.factions import Region
    from src.scoreboard.game_detection import ImageFileSampler, decode_stacked_image
    from src.scoreboard.scoring import classify_regions

    config = load_config(args)
    recognizer = build_recognizer(config, use_gpu=args.gpu)

    frame = decode_stacked_image(ImageFileSampler(args.image).capture_frame())

    recognizer.open()
    try:
        results = []
        for region in Region:
            text = recognizer.recognize(frame, region)
            results.append({
                'area': region.label,
                'text': text,
                'game_over': text.startswith(config.marker)
            })
    finally:
        recognizer.close()

    for result in results:
        flag = "✓" if result['game_over'] else " "
        print(f"  [{flag}] {result['area']}: '{result['text']}'")

    detected = [Region.from_label(r['area']) for r in results if r['game_over']]
    outcome = classify_regions(detected)
    print(f"\nOutcome: {outcome.name if outcome else 'no game over detected'}")

    if args.output:
        ensure_output_dir(args.output)
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump({
                'image': args.image,
                'regions': results,
                'outcome': outcome.value if outcome else None
            }, f, indent=2, ensure_ascii=False)
        print(f"✓ Results saved to: {args.output}")

    return 0


def cmd_classify(args: argparse.Namespace) -> int:
    """Execute the zone classification command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for unknown zones).
    """
    from src.scoreboard.factions import parse_regions
    from src.scoreboard.scoring import MatchOutcome, classify_regions

    try:
        regions = parse_regions(args.areas)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    outcome = classify_regions(regions)
    print(outcome.name)

    if outcome is MatchOutcome.INCOMPLETE:
        print("  Incomplete match: streaks reset, stats unchanged")
    elif outcome is MatchOutcome.DRAW:
        print("  Draw: both teams went down")
    else:
        print(f"  Winner: {outcome.winner.key}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
