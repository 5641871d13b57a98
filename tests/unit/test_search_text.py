"""Tests for the search document builder."""

from trailmark.transcripts import Role, SearchLine, SearchTextMetadata, build_search_text


class TestBuildSearchText:
    def test_full_document(self):
        text = build_search_text(
            SearchTextMetadata(
                session_id="s1",
                agent="pi",
                commits=["c1", "c2"],
                branch="main",
                repo="acme/widgets",
                data_path="/tmp/a.jsonl",
                session_name="auth",
                first_message="fix auth",
            ),
            [SearchLine(Role.HUMAN, "fix auth"), SearchLine(Role.TOOL, "Edit /a.ts")],
        )
        assert text == (
            "Session: s1\n"
            "Agent: pi\n"
            "Commits: c1, c2\n"
            "Branch: main\n"
            "Repo: acme/widgets\n"
            "DataPath: /tmp/a.jsonl\n"
            "SessionName: auth\n"
            "FirstMessage: fix auth\n"
            "\n"
            "[human] fix auth\n"
            "[tool] Edit /a.ts\n"
        )

    def test_optional_fields_omitted(self):
        text = build_search_text(SearchTextMetadata(session_id="s1", agent="pi"), [])
        assert text == "Session: s1\nAgent: pi\n\n\n"
