"""
Command line entry point: python -m shortener

Flags fill in settings; an environment variable always beats its flag:
    -a  SERVER_ADDRESS      (env SHORTENER_SERVER_ADDRESS / SERVER_ADDRESS)
    -b  BASE_URL            (env SHORTENER_BASE_URL / BASE_URL)
    -f  FILE_STORAGE_PATH   (env FILE_STORAGE_PATH)
    -d  DATABASE_DSN        (env DATABASE_DSN)
"""

import argparse
import os
from typing import Optional, Sequence

import uvicorn

from shortener.core.logging_config import setup_logging
from shortener.core.setting import Settings
from shortener.core.urls import parse_server_address

# Setting name -> (flag dest, environment variables that override the flag)
FLAG_SETTINGS = {
    "SERVER_ADDRESS": ("address", ("SHORTENER_SERVER_ADDRESS", "SERVER_ADDRESS")),
    "BASE_URL": ("base_url", ("SHORTENER_BASE_URL", "BASE_URL")),
    "FILE_STORAGE_PATH": ("file_storage_path", ("FILE_STORAGE_PATH",)),
    "DATABASE_DSN": ("database_dsn", ("DATABASE_DSN",)),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shortener", description="URL shortener service")
    parser.add_argument("-a", dest="address", help="HTTP server address, e.g. localhost:8080")
    parser.add_argument("-b", dest="base_url", help="Base URL of short links, e.g. http://localhost:8080")
    parser.add_argument("-f", dest="file_storage_path", help="Path of the URL storage file")
    parser.add_argument("-d", dest="database_dsn", help="Database connection string")
    return parser


def load_settings(argv: Optional[Sequence[str]] = None) -> Settings:
    """Build Settings from the environment, using flags only where the environment is silent."""
    args = build_parser().parse_args(argv)

    overrides = {}
    for name, (dest, env_names) in FLAG_SETTINGS.items():
        value = getattr(args, dest)
        if value is None:
            continue
        if any(os.environ.get(env_name) for env_name in env_names):
            continue
        overrides[name] = value

    return Settings(**overrides)


def main(argv: Optional[Sequence[str]] = None) -> None:
    app_settings = load_settings(argv)
    logger = setup_logging(app_settings.LOG_LEVEL)

    # Imported here so the app is built after logging is configured
    from shortener.main import create_app

    host, port = parse_server_address(app_settings.SERVER_ADDRESS)
    logger.info(f"Starting server on {host}:{port}")

    uvicorn.run(
        create_app(app_settings),
        host=host,
        port=port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
