"""Operator command-line tools for mediaquery.

- ``python -m mediaquery.cli ingest`` -- index a crawler batch from a JSON file
- ``python -m mediaquery.cli clear-site`` -- remove every record of a site
- ``python -m mediaquery.cli sites`` -- list indexed sites
- ``python -m mediaquery.cli generate-api-key`` -- print a fresh API key
"""
