"""Microsoft Graph access for intunesync.

Public API:

GraphClient : class
    GET/list/POST/DELETE against Graph with pagination and retries.
make_session : function
    Retrying requests.Session used by GraphClient.
"""

from .client import GraphClient, make_session

__all__ = ["GraphClient", "make_session"]
