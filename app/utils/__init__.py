# app/utils/__init__.py
from .datetime_utils import DateTimeUtils

__all__ = ['DateTimeUtils']
