"""Unit tests for the excerpt-quoting response composer."""

from __future__ import annotations

from neuraldoc.services.response_composer import NO_DOCUMENTS_MESSAGE, ResponseComposer


class TestResponseComposer:
    def test_empty_context_gives_no_documents_message(self) -> None:
        assert ResponseComposer().compose("anything", []) == NO_DOCUMENTS_MESSAGE

    def test_quotes_excerpts_under_header(self) -> None:
        answer = ResponseComposer().compose("q", ["First excerpt.", "Second excerpt."])

        header, rest = answer.split("\n\n", 1)
        assert header == "Based on the uploaded documents, here's what I found:"
        body, disclaimer = rest.split("\n\n---\n\n")
        assert body == "First excerpt.\n\nSecond excerpt."
        assert "based only on the content you uploaded" in disclaimer

    def test_caps_number_of_excerpts(self) -> None:
        context = [f"Excerpt {i}." for i in range(5)]

        answer = ResponseComposer(max_excerpts=3).compose("q", context)

        assert "Excerpt 2." in answer
        assert "Excerpt 3." not in answer

    def test_language_hint_does_not_change_answer(self) -> None:
        composer = ResponseComposer()
        assert composer.compose("q", ["x"], language="sr") == composer.compose("q", ["x"])
