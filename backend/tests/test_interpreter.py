import pytest

from app.core.errors import UpstreamFailure
from app.services.interpreter import (
    ANALYSIS_FALLBACK,
    SUMMARY_FALLBACK,
    interpret_analysis,
    interpret_recommendations,
    interpret_summary,
)


def test_analysis_text_is_returned_verbatim():
    assert interpret_analysis("A bold explorer.\n") == "A bold explorer."


@pytest.mark.parametrize("text", [None, "", "   \n"])
def test_empty_text_falls_back(text):
    assert interpret_analysis(text) == ANALYSIS_FALLBACK
    assert interpret_summary(text) == SUMMARY_FALLBACK


def test_recommendations_parse():
    recs = interpret_recommendations(
        '[{"title": "Hyperion", "author": "Dan Simmons", "reason": "Epic scope."}]'
    )
    assert [r.model_dump() for r in recs] == [
        {"title": "Hyperion", "author": "Dan Simmons", "reason": "Epic scope."}
    ]


def test_recommendations_strip_markdown_fences():
    recs = interpret_recommendations('```json\n[{"title": "Hyperion"}]\n```')
    assert recs[0].title == "Hyperion"
    assert recs[0].author == ""


@pytest.mark.parametrize("text", [None, "", "[]"])
def test_empty_output_is_zero_recommendations(text):
    assert interpret_recommendations(text) == []


@pytest.mark.parametrize(
    "text",
    [
        "[{\"title\": \"Hyperion\"",  # truncated
        "Here are some books!",
        '{"title": "Hyperion"}',
        '["Hyperion"]',
        '[{"title": 42, "author": "x", "reason": "y"}]',
    ],
)
def test_malformed_output_is_upstream_failure(text):
    with pytest.raises(UpstreamFailure) as exc_info:
        interpret_recommendations(text)
    assert exc_info.value.safe is False
