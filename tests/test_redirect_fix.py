import redirect_fix
from redirect_fix import BROKEN_DELETE, SELF_DELETE, collect_candidates, plan_fix, process_title, run
from title_resolver import Resolution


class TestPlanFix:
    def test_exists_elsewhere_rewrites_redirect(self):
        text, summary = plan_fix("A", Resolution.exists("C", ["A", "B", "C"]))
        assert text == "#REDIRECT [[C]]"
        assert summary == "Fix redirect → [[C]]."

    def test_exists_as_itself_is_self(self):
        assert plan_fix("A", Resolution.exists("A", ["A"])) is SELF_DELETE

    def test_self(self):
        assert plan_fix("A", Resolution.self_redirect(["A", "B", "A"])) is SELF_DELETE

    def test_broken_outcomes(self):
        for res in (Resolution.loop(["A", "B", "C", "B"]), Resolution.missing(["A", "B"]),
                    Resolution.max_depth(["A"])):
            assert plan_fix("A", res) is BROKEN_DELETE

    def test_error_leaves_page_alone(self):
        assert plan_fix("A", Resolution.error(["A"])) is None


class TestProcessTitle:
    def test_double_redirect_is_fixed(self, fake_wiki):
        site = fake_wiki(pages={"C": "content"}, redirects={"A": "B", "B": "C"})
        assert process_title(site, "A") == "fixed"
        edit = site.edits[0]
        assert edit["title"] == "A"
        assert edit["text"] == "#REDIRECT [[C]]"
        assert edit["tags"] == "hoohu-redirect"
        assert edit["watchlist"] == "nochange"
        assert edit["bot"] == 1

    def test_direct_self_redirect_gets_delete_template(self, fake_wiki):
        site = fake_wiki(redirects={"Loop": "Loop"})
        process_title(site, "Loop")
        assert len(site.edits) == 1
        assert site.edits[0]["text"] == "{{delete|Self-redirect.}}"
        assert site.edits[0]["summary"] == "Mark self-redirect for deletion."

    def test_normalized_self_redirect_gets_delete_template(self, fake_wiki):
        site = fake_wiki(normalized={"loop": "Loop"}, redirects={"Loop": "Loop"})
        process_title(site, "loop")
        assert site.edits[0]["text"] == "{{delete|Self-redirect.}}"

    def test_transitive_self_redirect(self, fake_wiki):
        site = fake_wiki(redirects={"A": "B", "B": "A"})
        process_title(site, "A")
        assert site.edits[0]["text"] == "{{delete|Self-redirect.}}"

    def test_broken_redirect_gets_delete_template(self, fake_wiki):
        site = fake_wiki(redirects={"A": "Deleted page"})
        process_title(site, "A")
        assert site.edits[0]["text"] == "{{delete|Broken redirect.}}"
        assert site.edits[0]["summary"] == "Mark broken redirect for deletion."

    def test_target_moved_is_followed(self, fake_wiki):
        site = fake_wiki(
            pages={"Renamed": "x"},
            redirects={"A": "Old"},
            moves={"Old": [{"type": "move", "params": {"target_title": "Renamed"}}]},
        )
        process_title(site, "A")
        assert site.edits[0]["text"] == "#REDIRECT [[Renamed]]"

    def test_live_page_is_skipped(self, fake_wiki):
        site = fake_wiki(pages={"A": "an article"})
        assert process_title(site, "A") == "skipped"
        assert site.edits == []

    def test_query_error_never_edits(self, fake_wiki):
        site = fake_wiki(redirects={"A": "B"}, broken={"B"})
        assert process_title(site, "A") == "errors"
        assert site.edits == []

    def test_dry_run_never_edits(self, fake_wiki):
        site = fake_wiki(pages={"C": "x"}, redirects={"A": "B", "B": "C"})
        assert process_title(site, "A", dry_run=True) == "fixed"
        assert site.edits == []


class TestRun:
    def test_candidates_are_deduplicated(self, fake_wiki):
        site = fake_wiki(reports={
            "DoubleRedirects": ["A", "B"],
            "BrokenRedirects": ["B", "C"],
        })
        assert collect_candidates(site, ["  D ", "", "A"]) == ["A", "B", "C", "D"]

    def test_per_title_errors_do_not_stop_the_run(self, fake_wiki, capsys):
        site = fake_wiki(pages={"Z": "x"}, redirects={"B": "Y", "Y": "Z"}, broken={"A"})
        counts = run(site, ["A", "B"])
        assert counts == {"fixed": 1, "skipped": 0, "errors": 1}
        assert site.edits[0]["title"] == "B"
        assert "[ERROR] while processing 'A'" in capsys.readouterr().out

    def test_uses_configured_tag(self, fake_wiki, monkeypatch):
        monkeypatch.setattr(redirect_fix.bot_config, "TAG_REDIRECT", "test-tag")
        site = fake_wiki(redirects={"A": "A"})
        run(site, ["A"])
        assert site.edits[0]["tags"] == "test-tag"
