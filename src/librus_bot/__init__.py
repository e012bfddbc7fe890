"""
Librus Monitoring Bot

Polls a Librus Synergia account - announcements, calendar, inbox,
grades and the daily lucky number - and forwards every change to a
Discord webhook.
"""

__version__ = "1.0.0"
