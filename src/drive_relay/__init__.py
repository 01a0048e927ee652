"""Drive Relay - stream a remote HTTP resource into Google Drive.

This package relays the body of a URL into a Google Drive resumable upload
session without buffering the payload, authenticating with an OAuth2
refresh token.
"""

__version__ = "0.1.0"
__author__ = "Drive Relay Team"

__all__ = [
    "__version__",
    "__author__",
]
