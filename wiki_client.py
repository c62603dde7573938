"""
wiki_client.py
==============
Thin helpers around ``mwclient.Site`` used by every Hoohu-bot script.

mwclient owns the HTTP session, cookies, maxlag handling and retries; the
helpers here only shape the API parameters and turn library failures into
``wiki_errors.TransportError`` / ``AuthError`` so callers handle one family
of exceptions.
"""

import urllib.parse

import mwclient
import requests
from mwclient.errors import LoginError, MwClientError

from wiki_errors import AuthError, TransportError

TRANSPORT_ERRORS = (MwClientError, requests.exceptions.RequestException)


# ─── connection ───────────────────────────────────────────────────

def split_api_url(api_url):
    """Split ``https://host/w/api.php`` into (scheme, host, script path)."""
    p = urllib.parse.urlparse(api_url)
    path = p.path.rsplit("/api.php", 1)[0] + "/"
    return p.scheme or "https", p.netloc, path


def connect(api_url, user_agent, custom_headers=None, max_retries=10) -> mwclient.Site:
    """Open a Site for ``api_url``.

    mwclient reads ``meta=siteinfo`` while constructing the Site, so a
    returned Site has already answered one query.
    """
    scheme, host, path = split_api_url(api_url)
    try:
        return mwclient.Site(
            host,
            path=path,
            scheme=scheme,
            clients_useragent=user_agent,
            custom_headers=custom_headers or None,
            max_retries=max_retries,
        )
    except TRANSPORT_ERRORS as e:
        raise TransportError(f"cannot reach {api_url}: {e}") from e


def check_site(site, api_url):
    """Ask for ``meta=siteinfo`` and insist on an answer.

    Needed on top of ``connect``: mwclient swallows ``readapidenied`` while
    building a Site, so a wiki that refuses reads still yields one.
    """
    data = query(site, meta="siteinfo")
    if not data.get("query", {}).get("general"):
        raise TransportError(f"{api_url} returned no siteinfo")
    return site


def login(site, username, password):
    try:
        site.login(username, password)
    except LoginError as e:
        raise AuthError(f"login failed for {username}: {e}") from e
    except TRANSPORT_ERRORS as e:
        raise AuthError(f"login request failed for {username}: {e}") from e


# ─── raw calls ────────────────────────────────────────────────────

def query(site, **params):
    """GET ``action=query`` and return the decoded response."""
    try:
        return site.get("query", **params) or {}
    except TRANSPORT_ERRORS as e:
        raise TransportError(f"query failed ({params}): {e}", title=params.get("titles")) from e


def post_query(site, **params):
    """Same as :func:`query` but sent as POST (long title lists, report pages)."""
    try:
        return site.post("query", **params) or {}
    except TRANSPORT_ERRORS as e:
        raise TransportError(f"query failed ({params}): {e}", title=params.get("titles")) from e


def edit_page(site, title, text, summary, tag=None):
    """Save ``text`` to ``title`` as a bot edit without touching the watchlist.

    This is the only call in the project that changes the wiki.
    """
    params = {
        "title": title,
        "text": text,
        "summary": summary,
        "bot": 1,
        "watchlist": "nochange",
    }
    if tag:
        params["tags"] = tag
    try:
        params["token"] = site.get_token("csrf")
        return site.post("edit", **params)
    except TRANSPORT_ERRORS as e:
        raise TransportError(f"edit failed: {e}", title=title) from e


# ─── listings ─────────────────────────────────────────────────────

def iter_querypage(site, report):
    """Yield titles from ``Special:<report>`` (DoubleRedirects, BrokenRedirects, ...)."""
    params = {
        "list": "querypage",
        "qppage": report,
        "qplimit": "max",
    }
    while True:
        data = post_query(site, **params)
        for entry in data.get("query", {}).get("querypage", {}).get("results", []):
            title = str(entry.get("title", "")).strip()
            if title:
                yield title
        if "continue" in data:
            params.update(data["continue"])
        else:
            break


def iter_allpages(site, namespace=0):
    """Yield every page title in ``namespace``, following ``apcontinue``."""
    params = {
        "list": "allpages",
        "apnamespace": namespace,
        "aplimit": "max",
    }
    while True:
        data = query(site, **params)
        for entry in data.get("query", {}).get("allpages", []):
            yield entry["title"]
        cont = data.get("continue", {}).get("apcontinue")
        if not cont:
            break
        params["apcontinue"] = cont


def revision_content(rev):
    """Wikitext of a revision dict, with or without the slots layout."""
    slots = rev.get("slots")
    if slots and "main" in slots:
        return slots["main"].get("content", "")
    return rev.get("content", "")


def fetch_page_text(site, title):
    """Current wikitext of ``title``; None if the page does not exist."""
    data = query(
        site,
        titles=title,
        prop="revisions",
        rvprop="content",
        rvslots="main",
        formatversion=2,
    )
    pages = data.get("query", {}).get("pages", [])
    if not pages or pages[0].get("missing") or pages[0].get("invalid"):
        return None
    revs = pages[0].get("revisions") or []
    return revision_content(revs[0]) if revs else ""
