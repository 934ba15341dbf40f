"""
Django settings package for the pharmacy POS platform.

This package contains environment-specific settings modules:
- base.py: Common settings for all environments
- development.py: Development-specific settings
- production.py: Production-specific settings
- test.py: Settings used by the pytest suite

The appropriate settings module is loaded based on the DJANGO_SETTINGS_MODULE
environment variable.
"""
