#!/usr/bin/env python3
"""
sandbox_cleanup.py
==================
Resets the public sandboxes to their blank header once nobody has touched
them for an hour.  A sandbox that still matches its blank content, or that
was edited in the last hour, is left alone.
"""

import argparse
import datetime as dt
import io
import json
import sys
import time

import bot_config
import wiki_client
from wiki_errors import AuthError, TransportError, WikiBotError

IDLE_MINUTES = 60

SANDBOX_HEADER = "<noinclude><!--DO NOT REMOVE THIS LINE-->{{sandbox top}}<!--PERFORM YOUR TEST BELOW--></noinclude>"
WIKITEXT_SUMMARY = ("Sandbox cleanup. For long-term testing, please use "
                    "[[Special:MyPage/sandbox|your personal sandbox]].")

PAGES = {
    "Pleasant Goat Wiki:Sandbox": {"content": SANDBOX_HEADER, "summary": WIKITEXT_SUMMARY},
    "Template:Sandbox":           {"content": SANDBOX_HEADER, "summary": WIKITEXT_SUMMARY},
    "Module:Sandbox": {
        "content": "",
        "summary": ("Sandbox cleanup. For long-term testing, please use "
                    "“Module:Sandbox/Your_username” or its subpages."),
    },
}


def parse_timestamp(ts):
    return dt.datetime.strptime(ts, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=dt.timezone.utc)


def fetch_sandboxes(site, titles):
    """Return {title: (content or None, last edit time or None)} in one query."""
    data = wiki_client.post_query(
        site,
        prop="revisions|info",
        titles="|".join(titles),
        rvprop="content|timestamp",
        rvslots="main",
        formatversion=2,
    )
    found = {}
    for page in data.get("query", {}).get("pages", []):
        revs = page.get("revisions") or []
        if page.get("missing") or not revs:
            found[page["title"]] = (None, None)
            continue
        found[page["title"]] = (wiki_client.revision_content(revs[0]), parse_timestamp(revs[0]["timestamp"]))
    return found


def needs_reset(current, last_edit, blank, now):
    """True if the sandbox differs from ``blank`` and has been idle long enough."""
    if current == blank:
        return False
    if last_edit is None:
        return True
    return (now - last_edit).total_seconds() // 60 > IDLE_MINUTES


def run(site, pages=PAGES, now=None, dry_run=False):
    now = now or dt.datetime.now(dt.timezone.utc)
    reset = []
    for title, (current, last_edit) in fetch_sandboxes(site, list(pages)).items():
        wanted = pages.get(title)
        if wanted is None:
            continue
        if current == wanted["content"]:
            print(f"{title}: no change.")
            continue
        age = "never" if last_edit is None else f"{int((now - last_edit).total_seconds() // 60)} minutes ago"
        if not needs_reset(current, last_edit, wanted["content"], now):
            print(f"{title}: edited recently ({age}) → skip.")
            continue
        print(f"{title}: content differs, last edited {age} → reset.")
        if dry_run:
            reset.append(title)
            continue
        try:
            result = wiki_client.edit_page(site, title, wanted["content"], wanted["summary"],
                                           tag=bot_config.TAG_SANDBOX)
        except WikiBotError as e:
            print(f"  [ERROR] resetting {title}: {e}")
            continue
        print(json.dumps(result, ensure_ascii=False))
        reset.append(title)
        time.sleep(bot_config.THROTTLE)
    return reset


def main():
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")

    parser = argparse.ArgumentParser(description="Reset idle sandboxes.")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    print(f"[{dt.datetime.now(dt.timezone.utc):%Y-%m-%dT%H:%M:%SZ}] Sandbox cleanup started.")
    try:
        site = wiki_client.connect(bot_config.API_URL, bot_config.USER_AGENT,
                                   max_retries=bot_config.MAX_RETRIES)
        wiki_client.login(site, bot_config.USERNAME, bot_config.PASSWORD)
        run(site, dry_run=args.dry_run)
    except (AuthError, TransportError) as e:
        print(f"Fatal error: {e}")
        sys.exit(1)
    print(f"[{dt.datetime.now(dt.timezone.utc):%Y-%m-%dT%H:%M:%SZ}] Sandbox cleanup completed.")


if __name__ == "__main__":
    main()
