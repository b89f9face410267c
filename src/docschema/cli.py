"""docschema CLI."""

import argparse
import logging
import sys

from bson import json_util

from . import __version__


def _build_config(args):
    """Config from --config (if any), overridden by explicit flags."""
    from .config import Config, load_config

    config = load_config(args.config) if args.config else Config()
    overrides = {
        "max_depth": args.max_depth,
        "output_format": args.format,
        "limit": args.limit,
    }
    for flag in ("collection", "uri", "database", "query", "sort"):
        overrides[flag] = getattr(args, flag, None)
    if getattr(args, "persist", False):
        overrides["persist_results"] = True
    if args.quiet:
        overrides["quiet"] = True

    data = config.to_dict()
    # a results collection derived from the old collection name follows it
    if overrides["collection"] and data["results_collection"] == f"{config.collection}Keys":
        data["results_collection"] = None
    for name, value in overrides.items():
        if value is not None:
            data[name] = value
    config = Config.from_dict(data)
    if config.quiet:
        logging.getLogger().setLevel(logging.WARNING)
    return config


def _parse_json_arg(value):
    try:
        return json_util.loads(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not valid JSON: {value}")


def cmd_file(args):
    """Infer the schema of a JSONL file."""
    from .pipeline import format_result, run
    from .source import JsonlSource

    config = _build_config(args)
    source = JsonlSource(args.input, indexes_path=args.indexes)
    result = run(config, source)
    print(format_result(result, config.output_format))


def cmd_mongo(args):
    """Infer the schema of a MongoDB collection."""
    from pymongo import MongoClient

    from .pipeline import format_result, run
    from .source import (
        MongoSource,
        check_collection,
        persist_results,
        results_database,
    )

    config = _build_config(args)
    client = MongoClient(config.uri)
    try:
        check_collection(client, config.database, config.collection)
        source = MongoSource(client[config.database][config.collection])
        result = run(config, source)
        if config.persist_results:
            rows = [row.to_dict() for row in result.field_report()]
            with results_database(client, config) as db:
                persist_results(db, config.results_collection, rows)
        print(format_result(result, config.output_format))
    finally:
        client.close()


def _add_common(p):
    p.add_argument("--config", help="YAML settings file")
    p.add_argument("--max-depth", type=int, help="Maximum nesting depth (default: 99)")
    p.add_argument(
        "--format",
        choices=["ascii", "json", "yaml"],
        help="ascii: per-field table; json/yaml: compiled schema",
    )
    p.add_argument("--limit", type=int, help="Analyze at most this many documents")


def main():
    parser = argparse.ArgumentParser(
        prog="docschema",
        description="Infer the schema of a schema-less document collection.",
    )
    parser.add_argument(
        "--version", action="version", version=f"docschema {__version__}"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only log warnings and errors"
    )

    subparsers = parser.add_subparsers(dest="command")

    # file
    p_file = subparsers.add_parser("file", help="Analyze a JSONL file")
    p_file.add_argument("input", help="JSONL file (MongoDB Extended JSON)")
    p_file.add_argument("--indexes", help="JSON file with a list of index documents")
    _add_common(p_file)
    p_file.set_defaults(func=cmd_file)

    # mongo
    p_mongo = subparsers.add_parser("mongo", help="Analyze a MongoDB collection")
    p_mongo.add_argument("--uri", help="MongoDB connection string")
    p_mongo.add_argument("--db", dest="database", help="Database name")
    p_mongo.add_argument("--collection", help="Collection name")
    p_mongo.add_argument("--query", type=_parse_json_arg, help="Filter as JSON")
    p_mongo.add_argument("--sort", type=_parse_json_arg, help="Sort as JSON")
    p_mongo.add_argument(
        "--persist", action="store_true", help="Store the field report in MongoDB"
    )
    _add_common(p_mongo)
    p_mongo.set_defaults(func=cmd_mongo)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )

    from pymongo.errors import PyMongoError

    try:
        args.func(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except UnicodeDecodeError:
        print("Error: File is not valid UTF-8 text (is it a binary file?)", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except PyMongoError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
