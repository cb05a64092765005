"""
Command-Line Interface for Objectify Recs
=========================================

Usage:
    python -m objectify_recs.cli <image> [options]

    or

    objectify-recs <image> [options]

Options:
    --catalog, -c   Catalog CSV path or URL (default: OBJECTIFY_CATALOG)
    --num, -n       Maximum number of songs (default: 5)
    --tolerance     Tolerance band for every enforced feature (default: 0.15)
    --ignore-region Don't require the song's region to match
    --strict        Fail on a malformed answer instead of defaulting to 0.5
    --structured    Ask the service for JSON output
    --output, -o    Output file path (default: stdout)
    --format        Output format: json, csv or simple (default: json)
    --verbose, -v   Verbose output with progress details
    --help, -h      Show this help message

Examples:
    python -m objectify_recs.cli photo.jpg
    python -m objectify_recs.cli photo.png --format simple --ignore-region
    python -m objectify_recs.cli photo.jpg -c songs.csv -o recommendations.json
"""

import argparse
import logging
import os
import sys

from .catalog import load_catalog
from .config import DEFAULT_TOLERANCE, NUM_RECOMMENDATIONS, MatchConfig
from .gemini_client import GeminiClient
from .imaging import encode_image_file
from .recommender import RecommendationEngine, RecommendationOutput


def non_negative_int(value: str) -> int:
    """argparse type for counts that can't go below zero."""
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more, got {number}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='objectify-recs',
        description='Objectify Recs - songs that sound like your photo',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s photo.jpg
  %(prog)s photo.jpg -n 3 --format simple
  %(prog)s photo.jpg --catalog songs.csv -o recs.json

Environment Variables:
  GEMINI_API_KEY      Your Gemini API key
  GEMINI_MODEL        Model name (default: gemini-2.0-flash)
  OBJECTIFY_CATALOG   Catalog CSV path or URL
        """
    )

    parser.add_argument(
        'image',
        type=str,
        help='Path to a photo (JPEG, PNG, WebP, ...)'
    )

    parser.add_argument(
        '-c', '--catalog',
        type=str,
        default=None,
        help='Catalog CSV path or URL (default: $OBJECTIFY_CATALOG or data/catalog.csv)'
    )

    parser.add_argument(
        '-n', '--num',
        type=non_negative_int,
        default=NUM_RECOMMENDATIONS,
        help=f'Maximum number of songs to return (default: {NUM_RECOMMENDATIONS})'
    )

    parser.add_argument(
        '--tolerance',
        type=float,
        default=DEFAULT_TOLERANCE,
        help=f'Tolerance band for danceability, energy, loudness and valence (default: {DEFAULT_TOLERANCE})'
    )

    parser.add_argument(
        '--ignore-region',
        action='store_true',
        help="Match songs from any region"
    )

    parser.add_argument(
        '--strict',
        action='store_true',
        help='Fail on a malformed answer instead of substituting 0.5'
    )

    parser.add_argument(
        '--structured',
        action='store_true',
        help='Request JSON output from the descriptor service'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output file path (default: print to stdout)'
    )

    parser.add_argument(
        '--format',
        type=str,
        choices=['json', 'csv', 'simple'],
        default='json',
        help='Output format (default: json)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    return parser


def format_output(result: RecommendationOutput, fmt: str) -> str:
    """Format recommendation output based on requested format."""
    if fmt == 'json':
        return result.to_json(indent=2)

    elif fmt == 'csv':
        lines = ['track_id,track_name,artists,region,url']
        for rec in result.recommendations:
            # Escape quotes in free text
            name = rec.track_name.replace('"', '""')
            artists = rec.artists.replace('"', '""')
            lines.append(
                f'{rec.track_id},"{name}","{artists}",{rec.region},{rec.url}'
            )
        return '\n'.join(lines)

    elif fmt == 'simple':
        lines = [
            "Description:",
            result.response_text,
            "",
        ]
        if result.error:
            lines.append(f"Error: {result.error}")
            lines.append("")
        lines.append("Top {0} Songs:".format(len(result.recommendations)))
        lines.append("-" * 50)
        if not result.recommendations:
            lines.append("No songs matched this photo.")
        for i, rec in enumerate(result.recommendations, 1):
            lines.append(f"{i:2}. {rec.track_name}")
            lines.append(f"    Artists: {rec.artists}")
            if rec.region:
                lines.append(f"    Region: {rec.region}")
            lines.append(f"    Listen: {rec.url}")
            lines.append("")
        return '\n'.join(lines)

    return result.to_json()


def validate_environment() -> bool:
    """Check if required environment variables are set."""
    if not os.environ.get('GEMINI_API_KEY'):
        print("Error: Gemini API key not found!", file=sys.stderr)
        print("", file=sys.stderr)
        print("Please set the following environment variable:", file=sys.stderr)
        print("  GEMINI_API_KEY=your_api_key", file=sys.stderr)
        print("", file=sys.stderr)
        print("Get a key at: https://aistudio.google.com/apikey", file=sys.stderr)
        return False

    return True


def main(argv=None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Validate environment
    if not validate_environment():
        return 1

    try:
        encoded = encode_image_file(args.image)

        config = MatchConfig.uniform(
            args.tolerance,
            match_region=not args.ignore_region,
            limit=args.num,
        )
        engine = RecommendationEngine(
            catalog=load_catalog(args.catalog),
            client=GeminiClient(),
            match_config=config,
            structured=args.structured,
            strict=args.strict,
        )

        result = engine.analyze(encoded.data, mime_type=encoded.mime_type)

        # Format output
        output = format_output(result, args.format)

        # Write output
        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(output)
            print(f"Recommendations saved to: {args.output}")
        else:
            print(output)

        return 1 if result.failed else 0

    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
