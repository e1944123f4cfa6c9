# SPDX-License-Identifier: MIT
"""Base exception for vendorize."""


class VendorizeError(Exception):
    """Base class for all errors raised by vendorize.

    The CLI maps every subclass to exit status 1.
    """

    pass
