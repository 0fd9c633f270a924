"""Configuration module — frozen dataclass loaded from environment variables and CLI args."""

import argparse
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    host: str = "0.0.0.0"
    port: int = 8080
    ezkey: str = ""
    api_url: str = "http://api.stathat.com/ez"
    flush_interval: float = 15.0
    http_timeout: float = 10.0
    max_attempts: int = 2
    queue_size: int = 10000
    enqueue_timeout: float = 0.1
    flush_workers: int = 4
    log_level: str = "INFO"


def load_config(argv=None) -> Config:
    """Build Config from environment variables, then override with CLI args.

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    env_host = os.environ.get("HOST", Config.host)
    env_port = int(os.environ.get("PORT", Config.port))
    env_ezkey = os.environ.get("EZKEY", Config.ezkey)
    env_api_url = os.environ.get("API_URL", Config.api_url)
    env_flush_interval = float(
        os.environ.get("FLUSH_INTERVAL", Config.flush_interval)
    )
    env_log_level = os.environ.get("LOG_LEVEL", Config.log_level)

    parser = argparse.ArgumentParser(description="Stat batching proxy")
    parser.add_argument("--host", type=str, default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--ezkey", type=str, default=None)
    parser.add_argument("--api-url", type=str, default=None)
    parser.add_argument("--flush-interval", type=float, default=None)
    parser.add_argument("--log-level", type=str, default=None)

    args = parser.parse_args(argv)

    return Config(
        host=args.host if args.host is not None else env_host,
        port=args.port if args.port is not None else env_port,
        ezkey=args.ezkey if args.ezkey is not None else env_ezkey,
        api_url=args.api_url if args.api_url is not None else env_api_url,
        flush_interval=args.flush_interval if args.flush_interval is not None else env_flush_interval,
        http_timeout=float(os.environ.get("HTTP_TIMEOUT", Config.http_timeout)),
        max_attempts=int(os.environ.get("MAX_ATTEMPTS", Config.max_attempts)),
        queue_size=int(os.environ.get("QUEUE_SIZE", Config.queue_size)),
        enqueue_timeout=float(
            os.environ.get("ENQUEUE_TIMEOUT", Config.enqueue_timeout)
        ),
        flush_workers=int(os.environ.get("FLUSH_WORKERS", Config.flush_workers)),
        log_level=(args.log_level if args.log_level is not None else env_log_level).upper(),
    )
