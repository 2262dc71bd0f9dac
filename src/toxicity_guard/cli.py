"""Command-line interface for the toxicity guard.

Usage:
    toxicity-guard classify "you are an idiot" --assets ./assets/toxicity_model
    toxicity-guard classify "have a nice day" --assets ./model --threshold 0.3 --format json
    toxicity-guard tokenize "Hello, world!" --assets ./assets/toxicity_model
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

# Output format constants
FORMAT_JSON = "json"
FORMAT_TEXT = "text"

# Exit codes for classify
EXIT_OK = 0
EXIT_TOXIC = 1
EXIT_ANALYSIS_FAILED = 2


class CLIError(Exception):
    """Base exception for CLI errors."""

    pass


# -----------------------------------------------------------------------------
# Output Formatters
# -----------------------------------------------------------------------------


def format_json(data: dict[str, Any]) -> str:
    """Format data as JSON."""
    return json.dumps(data, indent=2, default=str)


def format_result_text(result: Any, threshold: float) -> str:
    """Format a toxicity result as human-readable text."""
    if result.has_error:
        return "Analysis failed (see log output for details)"

    lines = [
        f"Toxic: {'yes' if result.is_toxic else 'no'}",
        f"Toxic probability: {result.toxic_probability:.2%}",
        f"Safe probability: {result.safe_probability:.2%}",
        "",
        "Category Scores:",
    ]
    for category, score in result.category_scores.items():
        bar = "#" * int(score * 20) + "-" * (20 - int(score * 20))
        marker = " *" if score >= threshold else ""
        lines.append(f"  {category:15s} [{bar}] {score:.2%}{marker}")

    return "\n".join(lines)


def format_tokens_text(ids: list[int], tokens: list[str]) -> str:
    """Format token ids alongside their strings, one per line."""
    lines = []
    for position, (token_id, token) in enumerate(zip(ids, tokens)):
        lines.append(f"{position:4d}  {token_id:6d}  {token}")
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Command Handlers
# -----------------------------------------------------------------------------


def _require_assets(path: str) -> Path:
    assets = Path(path)
    if not assets.is_dir():
        raise CLIError(f"Asset directory not found: {assets}")
    return assets


def cmd_classify(args: argparse.Namespace) -> int:
    """Handle classify command."""
    # Lazy imports to speed up CLI startup
    from .guard import ToxicityGuard

    if not 0.0 <= args.threshold <= 1.0:
        raise CLIError(f"Threshold must be between 0 and 1, got {args.threshold}")

    guard = ToxicityGuard.from_directory(_require_assets(args.assets))

    async def run() -> tuple[Any, bool]:
        try:
            result = await guard.detect_toxicity(args.text)
            toxic = await guard.is_toxic(args.text, threshold=args.threshold)
            return result, toxic
        finally:
            await guard.dispose()

    print("Loading toxicity model...", file=sys.stderr)
    result, toxic = asyncio.run(run())

    if args.format == FORMAT_JSON:
        payload = result.to_dict()
        payload["threshold"] = args.threshold
        payload["flagged"] = toxic
        print(format_json(payload))
    else:
        print(format_result_text(result, args.threshold))

    if result.has_error:
        return EXIT_ANALYSIS_FAILED
    return EXIT_TOXIC if toxic else EXIT_OK


def cmd_tokenize(args: argparse.Namespace) -> int:
    """Handle tokenize command."""
    from .assets import DirectoryAssetSource
    from .config import AssetConfig, load_special_tokens, load_tokenizer_config
    from .exceptions import LoadError
    from .tokenizer import WordPieceTokenizer
    from .vocabulary import Vocabulary

    if args.max_length is not None and args.max_length < 1:
        raise CLIError(f"--max-length must be positive, got {args.max_length}")

    source = DirectoryAssetSource(_require_assets(args.assets))
    names = AssetConfig()

    async def read_optional(name: str) -> bytes | None:
        try:
            return await source.load(name)
        except LoadError:
            return None

    async def load() -> WordPieceTokenizer:
        vocabulary = Vocabulary.from_bytes(await source.load(names.vocabulary_file))
        config = load_tokenizer_config(await read_optional(names.tokenizer_config_file))
        special_tokens = load_special_tokens(await read_optional(names.special_tokens_file))
        if args.max_length is not None:
            config = replace(config, max_sequence_length=args.max_length)
        return WordPieceTokenizer(vocabulary, config, special_tokens)

    try:
        tokenizer = asyncio.run(load())
    except LoadError as e:
        raise CLIError(str(e)) from e

    ids = tokenizer.encode(args.text)
    if args.format == FORMAT_JSON:
        print(format_json({"input_ids": ids, "tokens": tokenizer.decode_ids(ids)}))
    else:
        # Trailing padding carries no information
        pad_id = tokenizer.special_ids.pad_id
        length = len(ids)
        while length > 0 and ids[length - 1] == pad_id:
            length -= 1
        print(format_tokens_text(ids[:length], tokenizer.decode_ids(ids[:length])))
        print(f"({len(ids) - length} padding tokens omitted)")
    return EXIT_OK


# -----------------------------------------------------------------------------
# Argument Parser
# -----------------------------------------------------------------------------


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="toxicity-guard",
        description="On-device text toxicity classification",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # classify
    classify_parser = subparsers.add_parser(
        "classify",
        help="Classify a text for toxicity",
    )
    classify_parser.add_argument("text", type=str, help="Text to classify")
    classify_parser.add_argument(
        "--assets",
        type=str,
        required=True,
        help="Directory containing the model, vocabulary and tokenizer files",
    )
    classify_parser.add_argument(
        "--threshold",
        type=float,
        default=0.5,
        help="Per-category threshold for flagging (default: 0.5)",
    )
    classify_parser.add_argument(
        "--format",
        type=str,
        choices=[FORMAT_JSON, FORMAT_TEXT],
        default=FORMAT_TEXT,
        help="Output format (default: text)",
    )

    # tokenize
    tokenize_parser = subparsers.add_parser(
        "tokenize",
        help="Show the WordPiece token ids for a text",
    )
    tokenize_parser.add_argument("text", type=str, help="Text to tokenize")
    tokenize_parser.add_argument(
        "--assets",
        type=str,
        required=True,
        help="Directory containing vocab.txt and tokenizer files",
    )
    tokenize_parser.add_argument(
        "--max-length",
        type=int,
        default=None,
        help="Override the maximum sequence length",
    )
    tokenize_parser.add_argument(
        "--format",
        type=str,
        choices=[FORMAT_JSON, FORMAT_TEXT],
        default=FORMAT_TEXT,
        help="Output format (default: text)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Command dispatch
    handlers = {
        "classify": cmd_classify,
        "tokenize": cmd_tokenize,
    }

    handler = handlers.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
