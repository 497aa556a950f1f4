"""
rpcdiff - differential testing for JSON-RPC servers.

Sends one request to an ordered list of servers, compares adjacent responses
field by field and saves the raw bodies of the first disagreeing pair.
"""

__version__ = "1.0.0"
