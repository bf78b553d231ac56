#!/usr/bin/env python3
"""
Basic usage examples for the Coinbase HMAC client library.

Reads credentials from an INI file (default ~/.api-configs/coinbase.conf)
holding ``baseurl``, ``key`` and ``secret`` and makes a few signed GET
requests.

Usage:
    python example_usage.py [/path/to/config/file]
"""

import json
import logging
import os
import sys

from coinbase_hmac import CoinbaseClient, CoinbaseHMACError, ConfigurationError

DEFAULT_CONFIG_PATH = os.path.join(os.path.expanduser("~"), ".api-configs", "coinbase.conf")

USAGE = """
    client = CoinbaseClient.from_config_file("/path/to/config/file")

    client.get("prices", "spot_rate")
    client.get("prices", "buy", {"qty": 2, "currency": "USD"})
    client.call("get___prices__buy", {"qty": 2, "currency": "USD"})
"""


def print_usage(message):
    print(message, file=sys.stderr)
    print(USAGE, file=sys.stderr)


def main():
    """Run basic usage examples."""
    logging.basicConfig(level=logging.INFO)

    config_path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CONFIG_PATH

    try:
        client = CoinbaseClient.from_config_file(config_path)
    except ConfigurationError as e:
        print_usage(f"Error specifying config file: {e}")
        return 1

    with client:
        try:
            print("1. Spot rate (explicit path segments)...")
            print(f"   {client.get('prices', 'spot_rate').decode('utf-8')}\n")

            print("2. Buy price with a JSON body (compound token)...")
            print(f"   {client.call('get___prices__buy', {'qty': 2, 'currency': 'USD'}).decode('utf-8')}\n")

            print("3. Buy price with a JSON body (trailing payload)...")
            print(f"   {client.get('prices', 'buy', {'qty': 2, 'currency': 'USD'}).decode('utf-8')}\n")

            print("4. Recent transactions...")
            results = json.loads(client.get("transactions", {"page": 1}))
            for txn in results.get("transactions", []):
                txn_id = txn["transaction"]["id"]
                print(f"   {txn_id}: {txn['transaction']['status']}")
                print(f"   {client.get('transactions', txn_id).decode('utf-8')}")
        except CoinbaseHMACError as e:
            print(f"   ✗ Request failed: {e}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
