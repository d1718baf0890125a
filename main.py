#!/usr/bin/env python3
"""Main entry point for the ps exporter"""
import argparse
import sys
import time

from collectors import ps
from config import Config
from logging_config import get_logger, log_error, setup_structured_logging
from metrics.accumulator import LoggingSink
from metrics.registry import CollectorRegistry


def build_registry(config: Config) -> CollectorRegistry:
    registry = CollectorRegistry(config)
    ps.register(registry)
    return registry


def run_forever(registry: CollectorRegistry, sink, interval: int, sleep=time.sleep) -> None:
    """Gather every interval seconds until interrupted"""
    logger = get_logger(__name__)
    while True:
        started = time.monotonic()
        failures = registry.gather_all(sink)
        if failures:
            logger.warning("Collection cycle had failures", failures=failures)
        sleep(max(0.0, interval - (time.monotonic() - started)))


def main(argv=None) -> int:
    """Main application entry point"""
    parser = argparse.ArgumentParser(description=ps.DESCRIPTION)
    parser.add_argument("--once", action="store_true", help="run a single collection cycle and exit")
    parser.add_argument("--print-config", action="store_true", help="print the sample configuration and exit")
    args = parser.parse_args(argv)

    if args.print_config:
        print(ps.SAMPLE_CONFIG)
        return 0

    try:
        config = Config()
        setup_structured_logging(config)
        logger = get_logger(__name__)
        logger.info("Starting up", timeout=config.timeout, collection_interval=config.collection_interval,
                    event_type="startup")

        registry = build_registry(config)
        sink = LoggingSink()

        if args.once:
            return 1 if registry.gather_all(sink) else 0

        run_forever(registry, sink, config.collection_interval)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logger = get_logger(__name__)
        log_error(logger, e, {"component": "main", "phase": "startup"})
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
