"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Plan short places-search phrases for a user query through a forced tool call.
- Suggest a plausible offering name for a discovered business.
- Graceful fallback when the LLM is unavailable or returns invalid output.
"""
