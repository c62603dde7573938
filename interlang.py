"""
interlang.py
============
Rebuild the interlanguage-link footer of a page.

Every ``[[vi:...]]`` / ``[[zh:...]]`` token (for the configured codes) is
pulled out of the text, each linked title is resolved on the foreign wiki,
and the survivors are written back as a single sorted line at the bottom:

    ...page text...
    [[vi:Hà Nội]][[zh:北京]]

Links whose target cannot be resolved are dropped.  Piped links
(``[[zh:Page|text]]``) are not supported: they are removed and never kept.
"""

import os
import re
import urllib.parse
from typing import Dict, NamedTuple, Optional

import wiki_client
from bot_config import HUIJI_AUTHKEY_ENV, HUIJI_HOST, MAX_DEPTH, REMOTE_MAX_RETRIES
from title_resolver import resolve_title
from wiki_errors import TransportError, WikiBotError

LINE_SPLIT_RE = re.compile(r"\r?\n")


class InterlangEntry(NamedTuple):
    lang: str
    title: str
    anchor: Optional[str]


class NormalizedText(NamedTuple):
    text: str
    changed: bool
    links: Dict[str, str]


# ─── parsing ──────────────────────────────────────────────────────

def interlang_pattern(langs):
    """Regex for ``[[code:Target]]`` tokens; ``[[:code:...]]`` links are left alone."""
    codes = "|".join(re.escape(lang) for lang in langs)
    return re.compile(rf"\[\[(?!:)({codes}):([^\]\n]+?)\]\]", re.IGNORECASE)


def extract_interlangs(text, langs) -> Dict[str, InterlangEntry]:
    """First link per language code, in order of appearance.

    A link with no page title (``[[vi:#Anchor]]``) still takes its code's
    slot but cannot be resolved, so that code is left out altogether.
    """
    entries = {}
    claimed = set()
    if not langs:
        return entries
    for m in interlang_pattern(langs).finditer(text):
        lang = m.group(1).lower()
        raw = m.group(2).strip()
        if "|" in raw or lang in claimed:
            continue
        claimed.add(lang)
        anchor = None
        if "#" in raw:
            raw, anchor = (part.strip() for part in raw.split("#", 1))
            anchor = anchor or None
        if raw:
            entries[lang] = InterlangEntry(lang, raw, anchor)
    return entries


def strip_interlangs(text, langs):
    """Remove every link token; drop lines left empty by the removal."""
    if not langs:
        return text.rstrip()
    pattern = interlang_pattern(langs)
    kept = []
    for line in LINE_SPLIT_RE.split(text):
        cleaned = pattern.sub("", line).rstrip()
        if not cleaned.strip() and line.strip():
            continue
        kept.append(cleaned)
    return "\n".join(kept).rstrip()


def build_footer(links):
    return "".join(f"[[{lang}:{links[lang]}]]" for lang in sorted(links))


# ─── normalizer ───────────────────────────────────────────────────

def normalize_interlangs(text, allowed_langs, resolve) -> NormalizedText:
    """Rewrite the footer of ``text``.

    ``resolve(lang, title)`` returns a ``Resolution``; it may raise
    ``TransportError`` when the foreign wiki cannot be reached, which skips
    that language for this page.
    """
    links = {}
    for lang, entry in extract_interlangs(text, allowed_langs).items():
        print(f"  [CHECK] lang={lang}, initial={entry.title!r}, anchor={entry.anchor or '<none>'}")
        try:
            final = resolve(lang, entry.title).raise_for_outcome()
        except TransportError as e:
            print(f"    [ERROR] {lang}:{entry.title} could not be resolved, dropping: {e}")
            continue
        except WikiBotError as e:
            print(f"    [NOTFOUND] {lang}:{entry.title} -> drop ({e})")
            continue
        links[lang] = f"{final}#{entry.anchor}" if entry.anchor else final
        print(f"    [FOUND] {lang} -> {links[lang]}")

    cleaned = strip_interlangs(text, allowed_langs)
    footer = build_footer(links)
    if cleaned and footer:
        new_text = f"{cleaned}\n{footer}"
    else:
        new_text = footer or cleaned
    return NormalizedText(new_text, new_text.strip() != text.strip(), links)


# ─── remote wikis ─────────────────────────────────────────────────

def remote_headers(api_url):
    headers = {}
    if HUIJI_HOST in urllib.parse.urlparse(api_url).netloc:
        key = os.getenv(HUIJI_AUTHKEY_ENV)
        if key:
            headers["X-authkey"] = key
        else:
            print(f"[WARN] {HUIJI_AUTHKEY_ENV} is not set; {api_url} will probably refuse the bot.")
    return headers


def open_remote_site(api_url, user_agent):
    site = wiki_client.connect(
        api_url, user_agent,
        custom_headers=remote_headers(api_url),
        max_retries=REMOTE_MAX_RETRIES,
    )
    return wiki_client.check_site(site, api_url)


def make_remote_site(api_url, user_agent):
    """Connect to and check a foreign wiki, falling back from http:// to https:// once."""
    try:
        return open_remote_site(api_url, user_agent)
    except TransportError:
        if not api_url.startswith("http://"):
            raise
    https_url = "https://" + api_url[len("http://"):]
    try:
        site = open_remote_site(https_url, user_agent)
    except TransportError as e:
        print(f"[ERROR] Both HTTP and HTTPS failed for {api_url}: {e}")
        raise
    print(f"[WARN] {api_url} unreachable; using HTTPS fallback {https_url}")
    return site


class RemoteSites:
    """Foreign-wiki handles for one run, keyed by language code.

    A handle is created (and checked) the first time its language is needed
    and reused afterwards.  A language whose check failed stays unavailable
    until the object is discarded, i.e. for the rest of the run.
    """

    def __init__(self, api_urls, user_agent, max_depth=MAX_DEPTH, factory=make_remote_site):
        self.api_urls = dict(api_urls)
        self.user_agent = user_agent
        self.max_depth = max_depth
        self.factory = factory
        self._sites = {}
        self._failed = {}

    @property
    def langs(self):
        return list(self.api_urls)

    def site_for(self, lang):
        if lang in self._sites:
            return self._sites[lang]
        api_url = self.api_urls[lang]
        if lang in self._failed:
            raise TransportError(f"{lang} ({api_url}) is unavailable for this run") from self._failed[lang]
        try:
            site = self.factory(api_url, self.user_agent)
        except TransportError as e:
            print(f"    [ERROR] Could not create remote API for {lang} ({api_url}), skipping this lang.")
            self._failed[lang] = e
            raise
        self._sites[lang] = site
        return site

    def resolve(self, lang, title):
        return resolve_title(self.site_for(lang), title, self.max_depth)
