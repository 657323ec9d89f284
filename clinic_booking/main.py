"""Entry point: uvicorn clinic_booking.main:app"""
from .app_factory import create_app

app = create_app()
