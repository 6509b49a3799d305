"""
daytasks: a date-anchored personal task tracker with recurring tasks
and due-time notifications.
"""

__version__ = "0.1.0"
