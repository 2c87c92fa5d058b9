# SmartFlow Analytics Module
#
# Submodules are imported directly (e.g. ``smartflow.analytics.sentiment``);
# the public API is re-exported from the top-level ``smartflow`` package.
