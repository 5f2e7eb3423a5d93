"""Parsers module for NetMonitor."""

from .line_filter import LineFilter
from .event_parser import EventParser, ClassificationRule, CLASSIFICATION_RULES

__all__ = ['LineFilter', 'EventParser', 'ClassificationRule', 'CLASSIFICATION_RULES']
