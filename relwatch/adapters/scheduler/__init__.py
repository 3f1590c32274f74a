"""Scheduler adapters for driving the run loop.

Implementations support multiple scheduling strategies:
- Daemon (asyncio event loop with configurable interval)
- Single run (one pass, for cron jobs and CI schedules)
"""
