#!/usr/bin/env python3
"""
redirect_fix.py
===============
Repairs the pages listed on Special:DoubleRedirects and
Special:BrokenRedirects.

For every listed redirect the chain of redirects and page moves is followed
to its end:
  • ends on a live page      → rewrite as ``#REDIRECT [[final target]]``
  • comes back to itself     → replace with ``{{delete|Self-redirect.}}``
  • loops / dead-ends        → replace with ``{{delete|Broken redirect.}}``
  • a query failed           → leave the page alone, report it

Usage:
    python redirect_fix.py
    python redirect_fix.py --dry-run --titles "User:Hoohu-bot/test"
"""

import argparse
import datetime as dt
import io
import sys
import time

import bot_config
import wiki_client
from title_resolver import Outcome, normalize_title, query_redirect, resolve_title
from wiki_errors import AuthError, TransportError, WikiBotError

REPORTS = ("DoubleRedirects", "BrokenRedirects")

SELF_DELETE = ("{{delete|Self-redirect.}}", "Mark self-redirect for deletion.")
BROKEN_DELETE = ("{{delete|Broken redirect.}}", "Mark broken redirect for deletion.")


def redirect_edit(final):
    return f"#REDIRECT [[{final}]]", f"Fix redirect → [[{final}]]."


def collect_candidates(site, extra_titles=()):
    """Titles from both reports plus ``extra_titles``, de-duplicated in order."""
    titles = []
    for report in REPORTS:
        found = list(wiki_client.iter_querypage(site, report))
        print(f"{report}: {len(found)}")
        titles.extend(found)
    titles.extend(normalize_title(t) for t in extra_titles if normalize_title(t))
    return list(dict.fromkeys(titles))


def plan_fix(title, resolution):
    """Map a resolution to ``(text, summary)``, or None to leave the page alone."""
    title = normalize_title(title)
    if resolution.outcome is Outcome.EXISTS:
        if resolution.final_title == title:
            return SELF_DELETE
        return redirect_edit(resolution.final_title)
    if resolution.outcome is Outcome.SELF:
        return SELF_DELETE
    if resolution.outcome is Outcome.ERROR:
        return None
    return BROKEN_DELETE


def process_title(site, title, max_depth=bot_config.MAX_DEPTH, dry_run=False):
    """Handle one candidate; returns a short status word for the summary."""
    print(f"\n[PROCESS] Handling {title!r}")

    name, target, page = query_redirect(site, normalize_title(title))
    if target is None:
        if page and not page.get("missing"):
            print(f"[SKIP] {title!r} exists and is not a redirect → skip.")
            return "skipped"
    elif target in (normalize_title(title), name):
        print(f"[SELF] {title!r} is a self-redirect. Replacing content with delete template.")
        return save(site, title, *SELF_DELETE, dry_run=dry_run)

    resolution = resolve_title(site, title, max_depth)
    print(f"[RESULT] {title!r} -> {resolution.outcome.value}: {' → '.join(resolution.chain)}")

    plan = plan_fix(name, resolution)
    if plan is None:
        print(f"[ERROR] {title!r} could not be resolved (query failed); leaving it.")
        return "errors"
    if plan is SELF_DELETE:
        print(f"[SELF] {title!r} detected self-redirect in chain. Replacing with delete template.")
    elif plan is BROKEN_DELETE:
        print(f"[DELETE] {title!r} has no resolvable final target. Replacing with delete template.")
    else:
        print(f"[FIX] {title!r} -> set redirect to final target {resolution.final_title!r}")
    return save(site, title, *plan, dry_run=dry_run)


def save(site, title, text, summary, dry_run=False):
    if dry_run:
        print(f"  DRY RUN: would save {text!r} ({summary})")
        return "fixed"
    wiki_client.edit_page(site, title, text, summary, tag=bot_config.TAG_REDIRECT)
    time.sleep(bot_config.THROTTLE)
    return "fixed"


def run(site, titles, max_depth=bot_config.MAX_DEPTH, dry_run=False):
    counts = {"fixed": 0, "skipped": 0, "errors": 0}
    for title in titles:
        try:
            counts[process_title(site, title, max_depth, dry_run)] += 1
        except WikiBotError as e:
            print(f"[ERROR] while processing {title!r}: {e}")
            counts["errors"] += 1
    return counts


def main():
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")

    parser = argparse.ArgumentParser(description="Fix double and broken redirects.")
    parser.add_argument("--dry-run", action="store_true", help="Report planned edits without saving.")
    parser.add_argument("--titles", default="", help="Comma-separated extra titles to check.")
    parser.add_argument("--max-depth", type=int, default=bot_config.MAX_DEPTH)
    args = parser.parse_args()

    print(f"[{dt.datetime.now(dt.timezone.utc):%Y-%m-%dT%H:%M:%SZ}] Redirect fix started.")
    try:
        site = wiki_client.connect(bot_config.API_URL, bot_config.USER_AGENT,
                                   max_retries=bot_config.MAX_RETRIES)
        wiki_client.login(site, bot_config.USERNAME, bot_config.PASSWORD)
        titles = collect_candidates(site, args.titles.split(","))
    except (AuthError, TransportError) as e:
        print(f"Fatal error: {e}")
        sys.exit(1)
    print(f"Combined list length: {len(titles)}")

    counts = run(site, titles, args.max_depth, args.dry_run)

    print("\n" + "=" * 60)
    print(f"Fixed:   {counts['fixed']}")
    print(f"Skipped: {counts['skipped']}")
    print(f"Errors:  {counts['errors']}")
    print(f"[{dt.datetime.now(dt.timezone.utc):%Y-%m-%dT%H:%M:%SZ}] Redirect fix completed.")


if __name__ == "__main__":
    main()
