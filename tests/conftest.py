"""In-memory stand-in for ``mwclient.Site`` used across the test suite."""

import pytest
import requests
from mwclient.errors import APIError

import bot_config


class FakeWiki:
    """Answers the handful of API calls the bots make.

    ``pages`` maps existing titles to wikitext, ``redirects`` maps redirect
    titles to their targets, ``moves`` maps titles to move-log events
    (newest first), ``broken`` lists titles whose queries fail.
    ``normalized`` maps titles to the spelling the server reports for them;
    ``read_denied`` makes every query fail the way a locked-down wiki does.
    """

    def __init__(self, pages=None, redirects=None, moves=None, reports=None, broken=(),
                 timestamps=None, batch=500, normalized=None, read_denied=False):
        self.pages = dict(pages or {})
        self.redirects = dict(redirects or {})
        self.moves = dict(moves or {})
        self.reports = dict(reports or {})
        self.timestamps = dict(timestamps or {})
        self.broken = set(broken)
        self.batch = batch
        self.normalized = dict(normalized or {})
        self.read_denied = read_denied
        self.calls = []
        self.edits = []

    # mwclient.Site surface
    def get(self, action, **params):
        self.calls.append((action, params))
        if action != "query":
            raise AssertionError(f"unexpected GET action {action}")
        return self._query(params)

    def post(self, action, **params):
        self.calls.append((action, params))
        if action == "query":
            return self._query(params)
        if action == "edit":
            self.edits.append(params)
            self.pages[params["title"]] = params["text"]
            return {"edit": {"result": "Success", "title": params["title"]}}
        raise AssertionError(f"unexpected POST action {action}")

    def get_token(self, kind):
        return "+\\"

    # helpers
    def _query(self, params):
        if self.read_denied:
            raise APIError("readapidenied", "You need read permission to use this module.", {})
        if params.get("meta") == "siteinfo":
            return {"query": {"general": {"sitename": "Fake", "generator": "MediaWiki 1.39"}}}
        title = params.get("titles") or params.get("letitle")
        if title in self.broken:
            raise requests.exceptions.ConnectionError(f"connection reset while asking for {title}")
        kind = params.get("list")
        if kind == "logevents":
            return {"query": {"logevents": list(self.moves.get(title, []))}}
        if kind == "querypage":
            results = [{"title": t} for t in self.reports.get(params["qppage"], [])]
            return {"query": {"querypage": {"name": params["qppage"], "results": results}}}
        if kind == "allpages":
            return self._allpages(params)
        if params.get("redirects"):
            return self._follow(title)
        if "revisions" in params.get("prop", ""):
            return self._revisions(title.split("|"))
        raise AssertionError(f"unexpected query {params}")

    def _page(self, title):
        if title in self.pages or title in self.redirects:
            return {"pageid": abs(hash(title)) % 10000, "ns": 0, "title": title}
        return {"ns": 0, "title": title, "missing": True}

    def _follow(self, title):
        if title in self.normalized:
            data = self._follow(self.normalized[title])
            data["query"]["normalized"] = [{"from": title, "to": self.normalized[title]}]
            return data
        if title in self.redirects:
            target = self.redirects[title]
            return {"query": {"redirects": [{"from": title, "to": target}],
                              "pages": [self._page(target)]}}
        return {"query": {"pages": [self._page(title)]}}

    def _revisions(self, titles):
        out = []
        for t in titles:
            page = self._page(t)
            if t in self.pages:
                page["revisions"] = [{
                    "timestamp": self.timestamps.get(t, "2024-01-01T00:00:00Z"),
                    "slots": {"main": {"contentmodel": "wikitext", "content": self.pages[t]}},
                }]
            out.append(page)
        return {"query": {"pages": out}}

    def _allpages(self, params):
        titles = sorted(t for t in self.pages if ":" not in t)
        start = int(params.get("apcontinue", 0))
        chunk = titles[start:start + self.batch]
        data = {"query": {"allpages": [{"ns": 0, "title": t} for t in chunk]}}
        if start + self.batch < len(titles):
            data["continue"] = {"apcontinue": str(start + self.batch), "continue": "-||"}
        return data


@pytest.fixture(autouse=True)
def no_throttle(monkeypatch):
    monkeypatch.setattr(bot_config, "THROTTLE", 0)


@pytest.fixture
def fake_wiki():
    return FakeWiki
