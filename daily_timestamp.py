#!/usr/bin/env python3
"""
daily_timestamp.py
==================
Posts a fresh ``~~~~~`` signature to User:Hoohu-bot/timestamp, so the
wiki shows when the bot last ran.
"""

import argparse
import datetime as dt
import io
import json
import sys

import bot_config
import wiki_client
from wiki_errors import AuthError, TransportError

TIMESTAMP_PAGE = "User:Hoohu-bot/timestamp"
SUMMARY = "Daily timestamp print."


def post_timestamp(site, dry_run=False):
    if dry_run:
        print(f"DRY RUN: would save ~~~~~ to [[{TIMESTAMP_PAGE}]]")
        return None
    result = wiki_client.edit_page(site, TIMESTAMP_PAGE, "~~~~~", SUMMARY, tag=bot_config.TAG_DAILY)
    print(json.dumps(result, ensure_ascii=False))
    return result


def main():
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")

    parser = argparse.ArgumentParser(description="Post the daily timestamp.")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    print(f"[{dt.datetime.now(dt.timezone.utc):%Y-%m-%dT%H:%M:%SZ}] Daily timestamp print started.")
    try:
        site = wiki_client.connect(bot_config.API_URL, bot_config.USER_AGENT,
                                   max_retries=bot_config.MAX_RETRIES)
        wiki_client.login(site, bot_config.USERNAME, bot_config.PASSWORD)
        post_timestamp(site, args.dry_run)
    except (AuthError, TransportError) as e:
        print(f"Fatal error: {e}")
        sys.exit(1)
    print(f"[{dt.datetime.now(dt.timezone.utc):%Y-%m-%dT%H:%M:%SZ}] Daily timestamp print completed.")


if __name__ == "__main__":
    main()
