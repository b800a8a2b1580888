import pytest

from estateintel.communication import (
    DEFAULT_REPLY, SIGNATURE, analyze_message, detect_topics, detect_urgency, keyword_sentiment,
    sentiment_label, summarize_conversation,
)


class TestSentiment:

    def test_positive_message(self):
        assert keyword_sentiment("Thank you, the repair was great") == 1.0

    def test_mixed_message(self):
        # thank / problem
        assert keyword_sentiment("Thank you, but the problem remains") == 0.0

    def test_no_keywords(self):
        assert keyword_sentiment("See you Tuesday") == 0.0

    @pytest.mark.parametrize("score,label", [
        (0.21, "Positive"), (0.2, "Neutral"), (0.0, "Neutral"), (-0.2, "Neutral"), (-0.21, "Negative"),
    ])
    def test_labels(self, score, label):
        assert sentiment_label(score) == label


class TestUrgencyAndTopics:

    def test_urgency_levels(self):
        assert detect_urgency("This is an emergency") == "High"
        assert detect_urgency("The dryer is broken") == "Medium"
        assert detect_urgency("Just saying hello") == "Low"

    def test_topics_in_declared_order(self):
        assert detect_topics("Can you fix the lock before my lease renewal?") == ["Maintenance", "Lease", "Access"]

    def test_general_inquiry_fallback(self):
        assert detect_topics("What time does the office open") == ["General Inquiry"]


class TestAnalyzeMessage:

    def test_thank_you_note(self):
        analysis = analyze_message("Thank you, the repair was great")
        assert analysis.sentiment == "Positive"
        assert analysis.urgency == "Low"
        assert analysis.detected_topics == ["Maintenance"]
        assert analysis.suggested_reply.startswith("Thank you for reaching out! We've received your maintenance request")
        assert analysis.suggested_reply.endswith(SIGNATURE)
        assert not analysis.requires_attention

    def test_angry_emergency(self):
        analysis = analyze_message("This is an emergency, the heater is broken and I'm frustrated")
        assert analysis.sentiment == "Negative"
        assert analysis.sentiment_score == -1.0
        assert analysis.urgency == "High"
        assert analysis.detected_topics == ["Maintenance", "Utilities"]
        assert analysis.suggested_reply.startswith("We sincerely apologize")
        assert analysis.requires_attention

    def test_unrecognised_topic_gets_default_reply(self):
        analysis = analyze_message("What time does the office open")
        assert analysis.suggested_reply == "Hello! Thank you for contacting us. " + DEFAULT_REPLY + SIGNATURE


class TestSummarize:

    def test_empty(self):
        assert summarize_conversation([]) == "No messages to summarize"

    def test_resolved_thread(self):
        summary = summarize_conversation(["There is a problem with the sink", "Thanks, it is fixed now"])
        assert "- **Messages:** 2" in summary
        assert "- **Issues Raised:** 1" in summary
        assert "- **Status:** All issues appear resolved" in summary

    def test_open_thread(self):
        summary = summarize_conversation(["Another issue with the heat", "Still an issue"])
        assert "- **Status:** Some issues still open" in summary
        assert "Utilities" in summary
