"""Prompt templates for Streamcentives LLM integration.

Each template uses ``{placeholder}`` syntax for variable substitution via
``str.format()``.  Literal braces in the JSON example are doubled.
"""

# ---------------------------------------------------------------------------
# Content moderation
# ---------------------------------------------------------------------------

MODERATION_SYSTEM_PROMPT = """\
You are a content moderation classifier for a creator and fan community. \
You respond with a single JSON object and nothing else."""

MODERATION_PROMPT = """\
Analyze the following content for safety and policy violations.

Content to analyze: "{content}"
Content type: {content_type}
Media URLs: {media_urls}

Provide analysis in this exact JSON format:
{{
  "is_appropriate": boolean,
  "categories": [],
  "severity": "low|medium|high|critical",
  "confidence": 0.0-1.0,
  "flags": [],
  "detected_language": "language_code",
  "ai_analysis": {{
    "reasoning": "explanation",
    "context_notes": "additional context",
    "cultural_considerations": "cultural context if relevant"
  }},
  "recommended_action": "approved|warning|shadow_ban|content_removed|manual_review"
}}

Categories to check (use exact strings):
- "violence_incitement": Threats, terrorism, organized violence, self-harm promotion
- "safety_harassment": Bullying, harassment, doxxing, stalking, intimidation
- "nudity_sexual": Explicit nudity, sexual content, non-consensual intimate imagery
- "hate_speech": Discrimination based on race, religion, gender, sexuality, etc.
- "authenticity_spam": Fake content, spam, coordinated inauthentic behavior
- "privacy_doxxing": Personal information sharing, location tracking without consent
- "intellectual_property": Copyright, trademark violations
- "regulated_goods": Illegal drugs, weapons, adult services promotion
- "community_standards": Election interference, other community guideline breaches
- "misinformation": False information that could cause harm

Severity levels:
- "low": Minor violations, borderline content
- "medium": Clear violations that need attention
- "high": Serious violations requiring immediate action
- "critical": Illegal content, imminent harm, severe violations

Consider context, intent, and cultural nuances. Be accurate but err on the \
side of protecting users from harm.
Return ONLY the JSON object (no markdown fences, no commentary).
"""
