"""
PeopleDesk HR - Background Tasks Package

Celery background tasks.
"""
