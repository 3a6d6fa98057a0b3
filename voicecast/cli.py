"""CLI interface with subcommand routing."""

import argparse
import asyncio
import json
import logging
import os
import sys

from voicecast.config import Settings
from voicecast.constants import VERSION
from voicecast.errors import VoicecastError
from voicecast.parser import parse_script
from voicecast.pipeline import build_pipeline
from voicecast.voices import list_voices


def cmd_run(args):
    """Run the full pipeline for a script already uploaded to the input bucket."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    pipeline = build_pipeline(settings)
    try:
        result = asyncio.run(pipeline.run(args.input_key))
    except VoicecastError as e:
        print(f"Error: {e.detail}", file=sys.stderr)
        raise SystemExit(1)

    print(json.dumps(result, indent=2))


def cmd_parse(args):
    """Validate a local script file and show its utterances."""
    file_path = args.file

    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)

    with open(file_path, encoding="utf-8") as f:
        text = f.read()

    try:
        records = parse_script(text)
    except VoicecastError as e:
        print(f"Error: {e.detail}", file=sys.stderr)
        raise SystemExit(1)

    if not records:
        print(f"Error: No utterances found in: {file_path}", file=sys.stderr)
        raise SystemExit(1)

    for record in records:
        print(f"[{record.index}] {record.voice_id}: {record.text}")
    voices = sorted({r.voice_id for r in records})
    print(f"Parsed {len(records)} utterances ({len(voices)} voices: {', '.join(voices)})")


def cmd_voices(args):
    """List valid voice identifiers."""
    voices = list_voices(args.filter)
    if not voices:
        print("No matching voices found.")
        return
    print("Available voices:")
    for v in voices:
        print(f"  {v}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="voicecast",
        description="Voicecast: turn an @Voice-tagged script into one spoken audio file",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run
    run_parser = subparsers.add_parser("run", help="Synthesize a script stored in INPUT_BUCKET")
    run_parser.add_argument("input_key", help="S3 key of the script in INPUT_BUCKET")
    run_parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    run_parser.set_defaults(func=cmd_run)

    # parse
    parse_parser = subparsers.add_parser("parse", help="Validate a local script file")
    parse_parser.add_argument("file", help="Path to the script text file")
    parse_parser.set_defaults(func=cmd_parse)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List valid voice identifiers")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)
