"""Target discovery: bucket filtering and scrape target synthesis."""

from .patterns import matches
from .targets import filter_buckets, synthesize, server_target, build_scrape_configs

__all__ = ["matches", "filter_buckets", "synthesize", "server_target", "build_scrape_configs"]
