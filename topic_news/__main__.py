from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import load_config
from .core import NewsAggregator
from .exceptions import ConfigError
from .serving import load_latest
from .store import SnapshotStore


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="topic_news", description="Topical news aggregator")
    parser.add_argument("--config", help="JSON config file overriding the built-in tiers and terms")
    parser.add_argument("--env-file", help=".env file to load (default: search from cwd)")
    parser.add_argument("--cache", help="Snapshot file path (overrides config)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Run the aggregation once and print the run summary")
    sub.add_parser("show", help="Print the currently cached snapshot")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config, args.env_file)
    except ConfigError as e:
        logging.getLogger("topic_news").error("%s", e)
        return 2
    store = SnapshotStore(args.cache or config.cache_path)

    if args.command == "show":
        print(json.dumps(load_latest(store), ensure_ascii=False, indent=2))
        return 0

    result = NewsAggregator(config, store).run()
    print(json.dumps(result.summary(), ensure_ascii=False, indent=2))
    if result.status == result.SUCCEEDED and not result.persisted:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
