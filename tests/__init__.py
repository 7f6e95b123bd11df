"""zip-splitter test suite.

- unit/: entry stream, sinks, classifier, rotator, splitter, config and CLI
- integration/: end-to-end splits writing real zip archives
- helpers.py: in-memory entry streams and sink factories
"""
