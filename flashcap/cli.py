#!/usr/bin/env python3
"""
FlashCap CLI interface and command routing.

This module handles command-line argument parsing and routes commands
to the appropriate handlers (capture, timed capture, secure write, info).

Main entry point: flashcap/__main__.py
"""

import argparse
import asyncio
import json
import logging
import sys

from flashcap.utils.errors import CaptureCancelled, FlashCapError
from flashcap.utils.paths import FlashCapPaths, resolve_save_directory
from flashcap.utils.settings import JsonSettingsStore, SettingsResolver


def build_resolver(args) -> SettingsResolver:
    return SettingsResolver(JsonSettingsStore(args.settings))


def _print_result(result, args):
    if args.json:
        print(json.dumps(result.to_dict()))
    else:
        print(f"Screenshot saved: {result.file_path}")
        print(f"Dimensions: {result.width}x{result.height}")


def cmd_capture(args, timed: bool) -> int:
    """Handle --screenshot and --timer."""
    from flashcap.utils.capture import CaptureOrchestrator

    orchestrator = CaptureOrchestrator(build_resolver(args))

    if timed:
        print(f"Taking screenshot in {orchestrator.settings.get_timer_delay()} seconds...")
        coro = orchestrator.capture_with_timer()
    else:
        print("Select an area or window to capture...")
        coro = orchestrator.capture_interactive()

    try:
        result = asyncio.run(coro)
    except CaptureCancelled as e:
        print(str(e))
        return 1
    except FlashCapError as e:
        print(f"Error taking screenshot: {e}")
        return 1

    _print_result(result, args)

    if args.preview:
        return cmd_preview(result)
    return 0


def cmd_preview(result) -> int:
    """Show a capture in the preview window."""
    try:
        from flashcap.ui import main as preview_main
    except ImportError as e:
        print(f"Failed to import preview window: {e}")
        print("Make sure PyQt6 is installed: pip install PyQt6")
        return 1
    return preview_main(result)


def cmd_write(args) -> int:
    """Write base64 image data to a path inside the save directory."""
    from flashcap.utils.writer import write_bytes

    try:
        if args.data_file:
            with open(args.data_file, "r", encoding="ascii") as f:
                encoded = f.read().strip()
        else:
            encoded = sys.stdin.read().strip()
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading image data: {e}")
        return 1

    setting = build_resolver(args).get_save_directory_setting()
    try:
        written = write_bytes(setting, args.write, encoded)
    except FlashCapError as e:
        print(f"Error: {e}")
        return 1

    print(f"Image written: {written}")
    return 0


def cmd_info(args) -> int:
    """Display resolved settings."""
    resolver = build_resolver(args)
    setting = resolver.get_save_directory_setting()

    try:
        save_dir = resolve_save_directory(setting)
    except FlashCapError as e:
        print(f"Error resolving save directory: {e}")
        return 1

    config = resolver.get_capture_config()
    print(f"Settings file: {args.settings or FlashCapPaths.get_settings_file()}")
    print(f"Save directory mode: {setting.mode.value}")
    print(f"Save directory: {save_dir}")
    print(f"Exclude shadow: {config.exclude_shadow}")
    print(f"Timer delay: {config.timer_delay}s")
    return 0


def main(argv=None) -> int:
    """Main entry point for CLI interface."""
    parser = argparse.ArgumentParser(
        description="FlashCap - interactive screenshot capture",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --screenshot                         # Select an area or window to capture
  %(prog)s --screenshot --preview               # Capture and show the result
  %(prog)s --timer                              # Capture after the configured delay
  %(prog)s --write copy.png --data-file img.b64 # Write base64 data into the save directory
  %(prog)s --info                               # Show resolved settings
        """,
    )

    # Commands
    parser.add_argument("--screenshot", action="store_true",
                        help="Take an interactive screenshot")
    parser.add_argument("--timer", action="store_true",
                        help="Take a screenshot after the configured delay")
    parser.add_argument("--write", metavar="PATH",
                        help="Write base64 image data to PATH inside the save directory")
    parser.add_argument("--info", action="store_true",
                        help="Show resolved settings")

    # Options
    parser.add_argument("--data-file", metavar="FILE",
                        help="File with base64 data for --write (default: stdin)")
    parser.add_argument("--preview", action="store_true",
                        help="Show the screenshot in a preview window")
    parser.add_argument("--json", action="store_true",
                        help="Print the capture result as JSON")
    parser.add_argument("--settings", metavar="FILE",
                        help="Settings file (default: ~/.config/flashcap/settings.json)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.screenshot:
        return cmd_capture(args, timed=False)
    elif args.timer:
        return cmd_capture(args, timed=True)
    elif args.write is not None:
        return cmd_write(args)
    elif args.info:
        return cmd_info(args)
    else:
        parser.print_help()
        return 0
