"""
Sliding-window rate limiting.

Responsibilities:
- Count recent attempts per (identifier, identifier type, function name).
- Admit or reject an attempt and record admitted ones.
- Fail open when the backing store errors.
- Render the rate-limit response headers.
"""
