"""External adapters for the relwatch release notifier.

This package contains all external dependencies (GitHub, Telegram, OpenAI,
SQLite, etc.) and provides implementations of the core port interfaces.

Adapter Organization:

- source/: Adapters for reading releases, tags and commits (GitHub)
- store/: Adapters for tracking-marker persistence (JSON file, SQLite)
- categorizer/: Adapters for LLM-powered categorization (OpenAI, Anthropic)
- notification/: Adapters for delivering payloads (Telegram, stdout)
- scheduler/: Adapters for driving the run loop (daemon, single run)
"""
