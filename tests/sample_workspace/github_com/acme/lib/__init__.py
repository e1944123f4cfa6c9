"""Acme client library."""

from github_com.acme.lib import util
from github_com.acme.lib.client import Client  # re-exported

__all__ = ["Client", "util"]
