"""Building blocks for web scrapers: requests, responses, XPath extraction, limits, caching and proxies."""

__version__ = "0.1.0"