"""
Integrations
============
Adapters for web frameworks. Import the submodule for the framework in use.
"""
