"""Delivery adapters for sending notifications to a chat.

Implementations support multiple output channels:
- Telegram Bot API (HTML messages)
- Stdout (dry run, terminal output)
"""
