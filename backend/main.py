"""
Time Tracker – Backend API
Start with: uvicorn main:app --reload
"""
from application import create_app
from config import get_settings
from logging_setup import setup_logging

settings = get_settings()
setup_logging(level=settings.log_level, log_dir=settings.log_dir or None)

app = create_app(settings)
