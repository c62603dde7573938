"""
title_resolver.py
=================
Find the current title of a page that may have been redirected or moved.

The walk issues one ``redirects=1`` query per hop so every intermediate
title lands in the chain, and falls back to the move log when a title no
longer exists.  It never edits anything.

    res = resolve_title(site, "Old Name")
    res.outcome      # Outcome.EXISTS
    res.final_title  # "New Name"
    res.chain        # ("Old Name", "New Name")
"""

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

import wiki_client
from bot_config import MAX_DEPTH
from wiki_errors import CycleError, NotFoundError, SelfReferenceError, TransportError


class Outcome(enum.Enum):
    EXISTS = "exists"
    SELF = "self"
    LOOP = "loop"
    MISSING = "missing"
    MAX_DEPTH = "maxdepth"
    ERROR = "error"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one title; ``chain`` lists the titles visited."""

    outcome: Outcome
    chain: Tuple[str, ...]
    final_title: Optional[str] = None

    @classmethod
    def exists(cls, final_title, chain):
        return cls(Outcome.EXISTS, tuple(chain), final_title)

    @classmethod
    def self_redirect(cls, chain):
        return cls(Outcome.SELF, tuple(chain))

    @classmethod
    def loop(cls, chain):
        return cls(Outcome.LOOP, tuple(chain))

    @classmethod
    def missing(cls, chain):
        return cls(Outcome.MISSING, tuple(chain))

    @classmethod
    def max_depth(cls, chain):
        return cls(Outcome.MAX_DEPTH, tuple(chain))

    @classmethod
    def error(cls, chain):
        return cls(Outcome.ERROR, tuple(chain))

    def raise_for_outcome(self) -> str:
        """Return ``final_title``, or raise the error matching a failed walk."""
        start = self.chain[0] if self.chain else None
        arrow = " → ".join(self.chain)
        if self.outcome is Outcome.EXISTS:
            return self.final_title
        if self.outcome is Outcome.SELF:
            raise SelfReferenceError(f"self-redirect: {arrow}", title=start, chain=self.chain)
        if self.outcome in (Outcome.LOOP, Outcome.MAX_DEPTH):
            raise CycleError(f"{self.outcome.value}: {arrow}", title=start, chain=self.chain)
        if self.outcome is Outcome.MISSING:
            raise NotFoundError(f"no live page: {arrow}", title=start, chain=self.chain)
        raise TransportError(f"query failed: {arrow}", title=start, chain=self.chain)


def normalize_title(title) -> str:
    return str(title).strip()


# ─── queries ──────────────────────────────────────────────────────

def query_redirect(site, title):
    """One hop: return ``(server_title, redirect_target or None, page_dict or None)``.

    ``server_title`` is ``title`` as the wiki normalized it (``loop`` → ``Loop``).
    """
    data = wiki_client.query(site, titles=title, redirects=1, formatversion=2)
    q = data.get("query", {})
    lookup = title
    for n in q.get("normalized", []):
        if normalize_title(n.get("from", "")) == title:
            lookup = normalize_title(n.get("to", ""))
    for r in q.get("redirects", []):
        if normalize_title(r.get("from", "")) in (title, lookup):
            return lookup, normalize_title(r.get("to", "")), None
    pages = q.get("pages", [])
    return lookup, None, (pages[0] if pages else None)


def find_move_target(site, title):
    """Destination of the newest move of ``title`` recorded in the log.

    Assumes the API lists log events newest first (its default).  Entries
    without a ``target_title`` are skipped.
    """
    data = wiki_client.query(site, list="logevents", letype="move", letitle=title, lelimit="max")
    for ev in data.get("query", {}).get("logevents", []):
        target = (ev.get("params") or {}).get("target_title")
        if target and normalize_title(target):
            return normalize_title(target)
    return None


# ─── resolver ─────────────────────────────────────────────────────

def resolve_title(site, start_title, max_depth=MAX_DEPTH) -> Resolution:
    start = normalize_title(start_title)
    # the start title as typed and as the wiki spells it
    start_keys = {start}
    current = start
    seen = set()
    chain = []

    for _ in range(max_depth):
        if current in seen:
            if current in start_keys:
                return Resolution.self_redirect(chain + [current])
            return Resolution.loop(chain + [current])
        seen.add(current)
        chain.append(current)

        try:
            name, target, page = query_redirect(site, current)
        except TransportError as e:
            print(f"[ERROR] redirect query failed for {current!r}: {e}")
            return Resolution.error(chain)
        seen.add(name)
        if len(chain) == 1:
            start_keys.add(name)

        if target is not None:
            if target in start_keys:
                return Resolution.self_redirect(chain + [target])
            current = target
            continue

        if page and not page.get("missing") and not page.get("invalid"):
            return Resolution.exists(name, chain)
        if page and page.get("invalid"):
            return Resolution.missing(chain)

        try:
            moved_to = find_move_target(site, current)
        except TransportError as e:
            print(f"[ERROR] move log query failed for {current!r}: {e}")
            return Resolution.error(chain)
        if moved_to is None:
            return Resolution.missing(chain)
        current = moved_to

    return Resolution.max_depth(chain)
