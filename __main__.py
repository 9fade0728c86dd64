"""
Entry point for myrc.
This module provides a command-line interface to start either a server or client.
"""

import argparse
import sys

from myrc.config import config
from myrc.core.logging import auto_configure
from myrc.start import client, server


def parse(argv=None):
    # Initialize argument parser for command line interface
    parser = argparse.ArgumentParser(prog='myrc', description='myrc chat starter')
    subparsers = parser.add_subparsers(dest='command', required=True, help='Available commands')

    # Setup server command line arguments
    server_parser = subparsers.add_parser('server', help='Startup SERVER')
    server_parser.add_argument('--host', default=config.DEFAULT_HOST,
                               help=f'SERVER bind address (default: {config.DEFAULT_HOST})')
    server_parser.add_argument('--port', type=int, default=config.DEFAULT_PORT,
                               help=f'SERVER port (default: {config.DEFAULT_PORT})')
    server_parser.add_argument('--log-level', default=config.LOG_LEVEL,
                               help=f'Log level (default: {config.LOG_LEVEL})')
    server_parser.add_argument('--env', default=config.ENVIRONMENT,
                               help='Logging preset: development, production or testing')

    # Setup client command line arguments
    client_parser = subparsers.add_parser('client', help='Startup CLIENT')
    client_parser.add_argument('--host', default=config.DEFAULT_CLIENT_HOST,
                               help=f'SERVER address (default: {config.DEFAULT_CLIENT_HOST})')
    client_parser.add_argument('--port', type=int, default=config.DEFAULT_PORT,
                               help=f'SERVER port (default: {config.DEFAULT_PORT})')

    return parser.parse_args(argv)


def main(argv=None):
    args = parse(argv)

    # Launch either server or client based on command line arguments
    if args.command == 'server':
        auto_configure(args.env, args.log_level)
        return server.server(host=args.host, port=args.port)
    elif args.command == 'client':
        client.client(host=args.host, port=args.port)
        return 0
    raise ValueError(f'Unknown command: {args.command}')


if __name__ == '__main__':
    sys.exit(main())
