"""Keyword-based analysis of tenant messages."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .features import contains_any, dedupe

logger = logging.getLogger(__name__)

POSITIVE_WORDS = ("thank", "great", "excellent", "appreciate", "wonderful", "happy", "satisfied", "love")
NEGATIVE_WORDS = ("problem", "issue", "broken", "frustrated", "angry", "disappointed", "terrible", "awful", "bad")

HIGH_URGENCY = ("urgent", "emergency", "immediately", "asap", "right away", "critical", "dangerous")
MEDIUM_URGENCY = ("soon", "quickly", "problem", "issue", "not working", "broken")

TOPIC_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Maintenance": ("repair", "fix", "broken", "maintenance", "issue"),
    "Payment": ("rent", "payment", "deposit", "fee", "charge"),
    "Lease": ("lease", "contract", "agreement", "renewal"),
    "Noise": ("noise", "loud", "quiet", "neighbor"),
    "Utilities": ("water", "electric", "gas", "heat", "ac"),
    "Access": ("key", "lock", "access", "entry"),
    "Amenities": ("pool", "gym", "parking", "amenity"),
    "Move": ("move in", "move out", "moving"),
}
GENERAL_TOPIC = "General Inquiry"

GREETINGS = {
    "Positive": "Thank you for reaching out! ",
    "Neutral": "Hello! Thank you for contacting us. ",
    "Negative": "We sincerely apologize for any inconvenience. ",
}
TOPIC_REPLIES = {
    "Maintenance": "We've received your maintenance request and understand the importance of addressing "
                   "this promptly. Our team will review this and assign a technician to resolve the issue. "
                   "You'll receive an update within 24 hours with a scheduled service time.",
    "Payment": "Regarding your payment inquiry, we'd be happy to assist. Our office hours are Monday-Friday, "
               "9 AM to 5 PM. You can also access your payment history and make payments through our "
               "tenant portal.",
    "Lease": "Thank you for your lease inquiry. We'll review your request and respond with the necessary "
             "information within 1-2 business days. If you have any specific questions, feel free to "
             "include them and we'll address them comprehensively.",
    "Noise": "We take noise complaints seriously and will follow up on this matter. We'll contact the "
             "relevant parties to address the situation. Please document any additional incidents with "
             "dates and times.",
    "Utilities": "We'll look into the utility issue you've reported. In the meantime, if this is an "
                 "emergency (such as no heat or water), please call our emergency line at (555) 999-0000.",
}
DEFAULT_REPLY = ("We've received your message and will respond to your inquiry within 24 hours. If this is "
                 "urgent, please don't hesitate to call our office at (555) 123-4567.")
SIGNATURE = "\n\nBest regards,\nProperty Management Team"


@dataclass(frozen=True)
class MessageAnalysis:
    sentiment: str  # Positive, Neutral, Negative
    sentiment_score: float  # -1..1
    urgency: str  # Low, Medium, High
    detected_topics: List[str]
    suggested_reply: str
    requires_attention: bool


def keyword_sentiment(text: str) -> float:
    """(positive hits - negative hits) / all hits, 0.0 without hits"""
    lowered = text.lower()
    positive = sum(1 for w in POSITIVE_WORDS if w in lowered)
    negative = sum(1 for w in NEGATIVE_WORDS if w in lowered)
    total = positive + negative
    return 0.0 if total == 0 else (positive - negative) / total

def sentiment_label(score: float) -> str:
    if score > 0.2:
        return "Positive"
    if score < -0.2:
        return "Negative"
    return "Neutral"

def detect_urgency(text: str) -> str:
    if contains_any(text, HIGH_URGENCY):
        return "High"
    if contains_any(text, MEDIUM_URGENCY):
        return "Medium"
    return "Low"

def detect_topics(text: str) -> List[str]:
    topics = [topic for topic, words in TOPIC_KEYWORDS.items() if contains_any(text, words)]
    return topics or [GENERAL_TOPIC]

def generate_reply(sentiment: str, topics: Sequence[str]) -> str:
    primary = topics[0] if topics else GENERAL_TOPIC
    return GREETINGS[sentiment] + TOPIC_REPLIES.get(primary, DEFAULT_REPLY) + SIGNATURE


def analyze_message(text: str) -> MessageAnalysis:
    score = keyword_sentiment(text)
    sentiment = sentiment_label(score)
    urgency = detect_urgency(text)
    topics = detect_topics(text)
    return MessageAnalysis(
        sentiment=sentiment,
        sentiment_score=score,
        urgency=urgency,
        detected_topics=topics,
        suggested_reply=generate_reply(sentiment, topics),
        requires_attention=score < -0.3 or urgency == "High",
    )


def summarize_conversation(messages: Sequence[str]) -> str:
    """Markdown summary of a thread: counts, top topics and open/resolved status."""
    if not messages:
        return "No messages to summarize"

    topics: List[str] = []
    raised = resolved = 0
    for message in messages:
        topics.extend(detect_topics(message))
        lowered = message.lower()
        if "problem" in lowered or "issue" in lowered:
            raised += 1
        if "resolved" in lowered or "fixed" in lowered:
            resolved += 1

    lines = [
        "**Conversation Summary:**",
        "",
        f"- **Messages:** {len(messages)}",
        f"- **Main Topics:** {', '.join(dedupe(topics)[:3])}",
        f"- **Issues Raised:** {raised}",
        f"- **Issues Resolved:** {resolved}",
    ]
    if raised > 0 and resolved >= raised:
        lines.append("- **Status:** All issues appear resolved")
    elif raised > resolved:
        lines.append("- **Status:** Some issues still open")
    else:
        lines.append("- **Status:** Ongoing communication")
    return "\n".join(lines) + "\n"
