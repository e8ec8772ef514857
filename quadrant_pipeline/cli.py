"""Command line entry point for the quadrant pipeline."""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from .models import Category, Fragment, Piece
from .pipeline import QuadrantPipeline


def load_config(config_path: str = None) -> dict:
    """Load configuration from YAML file."""
    if not config_path:
        return {}
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def setup_logging(log_level: str = 'INFO', log_file: str = None):
    """Setup logging configuration."""
    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def load_fragments(path: str) -> list:
    """Load fragment records from a JSON list."""
    with open(path, 'r') as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path}: expected a JSON list of fragments")
    return [Fragment.from_dict(record) for record in records]


def load_pieces(path: str) -> dict:
    """Load raw pieces from a JSON object keyed by category label."""
    with open(path, 'r') as f:
        records = json.load(f)
    if not isinstance(records, dict):
        raise ValueError(f"{path}: expected a JSON object keyed by category")

    pieces = {}
    for label, items in records.items():
        category = Category.parse(label)
        if not isinstance(items, list):
            raise ValueError(f"{path}: pieces for {label} must be a list")
        pieces[category] = [Piece.from_dict(item, category) for item in items]
    return pieces


def main(argv=None):
    """Main execution function."""
    parser = argparse.ArgumentParser(description='Assign fragments and filter quadrant pieces')
    parser.add_argument(
        '--config',
        default=None,
        help='Path to YAML configuration file'
    )
    parser.add_argument(
        '--fragments',
        required=True,
        help='Path to JSON list of enriched fragments'
    )
    parser.add_argument(
        '--pieces',
        default=None,
        help='Path to JSON object of raw pieces keyed by category'
    )
    parser.add_argument(
        '--output',
        default='output/quadrant_results.json',
        help='Output JSON file path'
    )
    parser.add_argument(
        '--show-scores',
        action='store_true',
        help='Print the fragment x category score table'
    )
    parser.add_argument(
        '--log-level',
        default=None,
        help='Override the configured log level'
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, yaml.YAMLError) as e:
        print(f"Could not load configuration: {e}", file=sys.stderr)
        return 1

    output_config = config.get('output', {})
    setup_logging(
        args.log_level or output_config.get('log_level', 'INFO'),
        output_config.get('log_file')
    )
    logger = logging.getLogger(__name__)

    try:
        fragments = load_fragments(args.fragments)
        pieces = load_pieces(args.pieces) if args.pieces else {}
    except (OSError, ValueError) as e:
        logger.error(f"Could not load input: {e}")
        return 1

    pipeline = QuadrantPipeline(config=config)

    if args.show_scores:
        print(pipeline.relevance_scorer.score_table(fragments).to_string())

    results = pipeline.process_pieces(fragments, pieces)

    print("\n" + "=" * 50)
    print("QUADRANT RESULTS")
    print("=" * 50)
    for category in Category:
        ids = [fragment.id for fragment in results.assignments[category]]
        print(f"  {category.value}: {len(ids)} fragments {ids}, "
              f"{len(results.pieces[category])} pieces")
    print(f"\nTotal pieces: {results.metadata['total_pieces']}")
    print(f"Cross-category duplicates removed: {results.metadata['cross_category_duplicates']}")
    print(f"Fragment coverage: {results.metadata['fragment_coverage']:.0%}")

    pool = pipeline.new_pool()
    pipeline.fill_pool(pool, results)
    print(f"Pool sizes: {pool.stats().per_category}")

    Path(args.output).parent.mkdir(parents=True, exist_ok=True)
    pipeline.save_results(results, args.output)

    return 0


if __name__ == '__main__':
    sys.exit(main())
