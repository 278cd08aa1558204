"""Bundled data files for synsyu."""
