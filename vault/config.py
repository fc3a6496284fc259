# vault/config.py
import argparse
import json
import os
from pathlib import Path

default_config = {
    "host": "0.0.0.0",
    "port": 9900,
    "upstream_url": "http://localhost:16888/rpc",
    "database_url": None,
    "max_connections": 200,
    "request_timeout": 30.0,
    "upstream_timeout": 10.0,
    "default_fee": {"denom": "GammaWei", "amount": 1},
    "default_gas": 1,
    "faucet_url": None,
    "log_level": "INFO",
}


def config_path() -> Path:
    override = os.getenv("THETA_VAULT_CONFIG")
    if override:
        return Path(override)
    return Path.home() / ".theta_vault" / "config.json"


def load_config(path=None):
    """
    Reads the JSON config file, writing the defaults there on first run. Keys
    missing from an existing file fall back to their defaults.
    """
    config_file = Path(path) if path else config_path()
    config_file.parent.mkdir(parents=True, exist_ok=True)

    if config_file.exists():
        with config_file.open("r") as f:
            stored = json.load(f)
        return {**default_config, **stored}

    with config_file.open("w") as f:
        json.dump(default_config, f, indent=2)
    return dict(default_config)


def parse_args(argv=None):
    config_data = load_config()

    parser = argparse.ArgumentParser(description="Theta key vault and signing gateway")
    parser.add_argument('--host', type=str, default=config_data["host"], help="Host to bind")
    parser.add_argument('--port', type=int, default=config_data["port"], help="RPC port")
    parser.add_argument('--upstream_url', type=str, default=config_data["upstream_url"],
                        help="JSON-RPC endpoint of the upstream node")
    parser.add_argument('--database_url', type=str, default=config_data["database_url"],
                        help="SQLAlchemy URL of the key store (DATABASE_URL env takes precedence)")
    parser.add_argument('--max_connections', type=int, default=config_data["max_connections"],
                        help="Max number of requests served concurrently")
    parser.add_argument('--request_timeout', type=float, default=config_data["request_timeout"],
                        help="Deadline (in seconds) for one gateway call")
    parser.add_argument('--upstream_timeout', type=float, default=config_data["upstream_timeout"],
                        help="Timeout (in seconds) for one upstream request")
    parser.add_argument('--default_gas', type=int, default=config_data["default_gas"],
                        help="Gas used when a call does not specify one")
    parser.add_argument('--faucet_url', type=str, default=config_data["faucet_url"],
                        help="Faucet endpoint notified of newly created addresses")
    parser.add_argument('--log_level', type=str, default=config_data["log_level"], help="Log level")
    args = parser.parse_args(argv)

    args.default_fee = config_data["default_fee"]
    args.database_url = os.getenv("DATABASE_URL") or args.database_url

    if args.max_connections < 1:
        parser.error("--max_connections must be at least 1")
    return args
