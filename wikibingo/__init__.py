"""
Wikipedia Bingo session engine.

Matches live article navigation against a 5x5 grid of target articles,
resolving redirects and fetching article content from Wikipedia.
"""

__version__ = "0.1.0"
