"""Website crawling and SEO auditing toolkit."""

__version__ = "0.1.0"