"""
RiskBoard Services.

Components:
- monitor: One scoring + alerting pass over the current catalogue
- scheduler: Runs the monitor on a fixed interval
- sources: Catalogue providers (static snapshot, JSON file)
"""
