"""Source adapters for reading releases, tags and commits.

Implementations support multiple forges:
- GitHub REST API (conditional requests, rate-limit aware)
"""
