"""Command line entry point: run the demonstration scenarios and print their event logs."""

import argparse
import logging
import sys

from .config import RuntimeConfig
from .runtime import Runtime
from .scenarios import SCENARIOS


def build_parser():
    parser = argparse.ArgumentParser(
        prog='pyarc-demo',
        description='Run reference counting scenarios and print their lifecycle events.',
    )
    parser.add_argument('scenarios', nargs='*', metavar='scenario',
                        help='scenarios to run (default: all)')
    parser.add_argument('--list', action='store_true',
                        help='list available scenarios and exit')
    parser.add_argument('--trace', action='store_true',
                        help='include every retain/release in the event log')
    parser.add_argument('--single-threaded', action='store_true',
                        help='run without the runtime lock')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='logging level (default: WARNING)')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list:
        for name, scenario in SCENARIOS.items():
            doc = (scenario.__doc__ or '').strip().splitlines()
            print(f"{name:<24} {doc[0] if doc else ''}")
        return 0

    unknown = [name for name in args.scenarios if name not in SCENARIOS]
    if unknown:
        parser.error(f"unknown scenario(s): {', '.join(unknown)}")

    logging.basicConfig(level=args.log_level,
                        format='%(levelname)s %(name)s: %(message)s')

    config = RuntimeConfig.from_env()
    config = RuntimeConfig(
        thread_safe=config.thread_safe and not args.single_threaded,
        record_events=True,
        trace=config.trace or args.trace,
        max_events=config.max_events,
    )

    for name in args.scenarios or list(SCENARIOS):
        result = SCENARIOS[name](Runtime(config))
        print(f"== {result.name}")
        for line in result.lines:
            print(f"   {line}")
        for event in result.events:
            print(f"   {event}")
        if result.leaks:
            leaked = ', '.join(f"{s.label} (strong={s.strong_count})" for s in result.leaked)
            print(f"   leaked: {leaked}")
        print()
    return 0


if __name__ == '__main__':
    sys.exit(main())
