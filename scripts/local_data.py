#!/usr/bin/env python3
"""
Manage the local mirror from the command line.

Usage:
    python scripts/local_data.py seed       # demo catalog + one assignment
    python scripts/local_data.py reset      # forget every mirrored collection
    python scripts/local_data.py status     # which storage answers right now

Reads the same .env file as the API. Seeding is skipped while Snowflake
is configured and reachable.
"""

import sys

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from suivi_natation.config.settings import get_settings  # noqa: E402
from suivi_natation.facade import TrainingApi  # noqa: E402


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Manage the local training data mirror')
    parser.add_argument('command', choices=['seed', 'reset', 'status'])
    args = parser.parse_args()

    settings = get_settings()
    api = TrainingApi.from_settings(settings)
    try:
        capabilities = api.get_capabilities()
        print(f"Storage mode: {capabilities.mode}")
        print(f"Local data directory: {settings.local_data_dir}")

        if args.command == 'status':
            print(f"Imports available: {capabilities.imports}")
            return 0

        if args.command == 'reset':
            api.reset_cache()
            print("Local mirror cleared")
            return 0

        result = api.seed_demo_data()
        if result["status"] == "skipped":
            print("Remote backend in use, nothing seeded")
            return 1
        print("Demo data seeded")
        return 0
    finally:
        api.close()


if __name__ == '__main__':
    sys.exit(main())
