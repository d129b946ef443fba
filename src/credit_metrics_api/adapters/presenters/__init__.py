"""Presenters mapping application results to HTTP envelopes."""
