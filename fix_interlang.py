#!/usr/bin/env python3
"""
fix_interlang.py
================
Normalizes and repairs the interlanguage links of main-namespace pages.

Each page's ``[[vi:...]]`` / ``[[zh:...]]`` links are resolved on the
foreign wiki (following redirects and page moves), dead links are dropped,
and the rest are written back as one sorted footer line.  Pages listed on
Special:Withoutinterwiki are not touched.

Usage:
    python fix_interlang.py
    python fix_interlang.py --dry-run --titles "User:Hoohu-bot/test"
"""

import argparse
import datetime as dt
import io
import sys
import time

import bot_config
import wiki_client
from interlang import RemoteSites, extract_interlangs, normalize_interlangs
from wiki_errors import AuthError, TransportError, WikiBotError

SUMMARY = "Normalize and repair interlanguage links."


def collect_candidates(site, titles=None):
    """Explicit ``titles`` if given, else every article that has interwikis."""
    if titles:
        return list(dict.fromkeys(titles))
    without = set(wiki_client.iter_querypage(site, "Withoutinterwiki"))
    print(f"Withoutinterwiki count: {len(without)}")
    all_pages = list(wiki_client.iter_allpages(site, namespace=0))
    print(f"Total main-namespace pages: {len(all_pages)}")
    return [t for t in all_pages if t not in without]


def process_page(site, title, remote_sites, dry_run=False):
    """Rewrite the interlanguage footer of one page; returns a status word."""
    print(f"Processing page: {title}")
    content = wiki_client.fetch_page_text(site, title)
    if content is None:
        print(f"  [SKIP] page not found: {title}")
        return "skipped"

    if not extract_interlangs(content, remote_sites.langs):
        print("  [SKIP] no interlang links for allowed langs on page.")
        return "skipped"

    result = normalize_interlangs(content, remote_sites.langs, remote_sites.resolve)
    if not result.changed:
        print("  [NOCHANGE] page content unchanged -> skip editing.")
        return "unchanged"

    if dry_run:
        print(f"  DRY RUN: would save footer {sorted(result.links.items())}")
        return "fixed"

    print(f"  [EDIT] saving updated interlang footer for {title}")
    wiki_client.edit_page(site, title, result.text, SUMMARY)
    print(f"  [OK] {title} updated.")
    time.sleep(bot_config.THROTTLE)
    return "fixed"


def run(site, titles, remote_sites, dry_run=False):
    counts = {"fixed": 0, "unchanged": 0, "skipped": 0, "errors": 0}
    for title in titles:
        try:
            counts[process_page(site, title, remote_sites, dry_run)] += 1
        except WikiBotError as e:
            print(f"  [ERROR] processing {title}: {e}")
            counts["errors"] += 1
    return counts


def main():
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")

    parser = argparse.ArgumentParser(description="Normalize interlanguage links.")
    parser.add_argument("--dry-run", action="store_true", help="Report planned edits without saving.")
    parser.add_argument("--titles", default="", help="Comma-separated titles (default: all articles).")
    parser.add_argument("--max-depth", type=int, default=bot_config.MAX_DEPTH)
    args = parser.parse_args()

    print(f"[{dt.datetime.now(dt.timezone.utc):%Y-%m-%dT%H:%M:%SZ}] interlang fix started.")
    try:
        site = wiki_client.connect(bot_config.API_URL, bot_config.USER_AGENT,
                                   max_retries=bot_config.MAX_RETRIES)
        wiki_client.login(site, bot_config.USERNAME, bot_config.PASSWORD)
        titles = collect_candidates(site, [t.strip() for t in args.titles.split(",") if t.strip()])
    except (AuthError, TransportError) as e:
        print(f"Login failed: {e}")
        sys.exit(1)
    print(f"Pages to process (after filtering): {len(titles)}")

    remote_sites = RemoteSites(bot_config.OTHER_APIS, bot_config.USER_AGENT, max_depth=args.max_depth)
    counts = run(site, titles, remote_sites, args.dry_run)

    print("\n" + "=" * 60)
    for key, value in counts.items():
        print(f"{key.capitalize() + ':':<11}{value}")
    print(f"[{dt.datetime.now(dt.timezone.utc):%Y-%m-%dT%H:%M:%SZ}] interlang fix completed.")


if __name__ == "__main__":
    main()
