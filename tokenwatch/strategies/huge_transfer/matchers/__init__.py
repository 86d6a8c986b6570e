"""
Matcher plugins for the Huge Transfer Strategy.

Matchers recognise multi-event patterns inside one transaction and report
which members of the working set they consumed.
"""

from tokenwatch.strategies.huge_transfer.matchers.base import BaseMatcher, MatchResult, exclude
from tokenwatch.strategies.huge_transfer.matchers.exchange import ExchangeMatcher
from tokenwatch.strategies.huge_transfer.matchers.template import TemplateMatcher

__all__ = [
    'BaseMatcher',
    'MatchResult',
    'exclude',
    'ExchangeMatcher',
    'TemplateMatcher',
]
